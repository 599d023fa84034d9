import logging
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from wagers.conf import WagerPolicy
from wagers.exceptions import (
    AccountInactiveError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidInputError,
    MissingDestinationError,
)
from wagers.models import (
    Account,
    AccountStats,
    PayoutDestination,
    StatsDelta,
    TransactionRecord,
)
from wagers.stores import AccountStore, ReconciliationQueue, TransactionLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionOutcome:
    record: TransactionRecord
    stats: AccountStats

    @property
    def new_balance(self) -> int:
        return self.stats.balance


def require_amount(value, name: str = "amount") -> int:
    """Reject anything that is not a plain integer amount of minor units."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name.capitalize()} must be an integer.", field=name)
    return value


class LedgerService:
    """
    Owns every balance change.

    ``apply_delta`` is the single mutation entry point: it runs under the
    account's lock, so the affordability check and the write it guards are
    one step. Deposits and withdrawals are built on it and append their
    TransactionRecord before the lock is released, which keeps each
    account's log in the same order as its balance history.
    """

    def __init__(
        self,
        accounts: AccountStore,
        transactions: TransactionLog,
        policy: WagerPolicy,
        reconciliation: ReconciliationQueue,
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.policy = policy
        self.reconciliation = reconciliation

    # Accounts

    def open_account(self, opening_balance: Optional[int] = None) -> Account:
        """Open an account credited with the welcome bonus unless told otherwise."""
        balance = self.policy.welcome_bonus if opening_balance is None else opening_balance
        require_amount(balance, "opening_balance")
        if balance < 0:
            raise InvalidInputError("Opening balance cannot be negative.", field="opening_balance")
        account = self.accounts.add(Account(balance=balance))
        logger.info("Account opened: account=%s balance=%d", account.uuid, account.balance)
        return account

    def get_account(self, account_id) -> Account:
        return self.accounts.get(account_id)

    def deactivate_account(self, account_id) -> Account:
        with self.accounts.locked(account_id) as account:
            if account.is_active:
                account.is_active = False
                account.updated_at = timezone.now()
                logger.info("Account deactivated: account=%s", account.uuid)
        return self.accounts.get(account_id)

    def get_stats(self, account_id) -> AccountStats:
        with self.accounts.locked(account_id) as account:
            return account.stats()

    # Mutation

    def apply_delta(
        self,
        account_id,
        stake_delta: int,
        prize_delta: int,
        stats: Optional[StatsDelta] = None,
    ) -> AccountStats:
        """
        Apply a balance change and its statistics in one indivisible step.

        ``stake_delta`` (zero or negative) is checked against the current
        balance before ``prize_delta`` is added, so a stake is never covered
        by its own prize.

        Args:
            account_id: Target account.
            stake_delta: Amount debited as a stake, ``<= 0``.
            prize_delta: Amount credited (or, for withdrawals, debited).
            stats: Increments for the cumulative statistics.

        Returns:
            The account's statistics after the change.

        Raises:
            AccountNotFoundError: Unknown account.
            AccountInactiveError: The account has been deactivated.
            InsufficientBalanceError: The balance would go negative.
        """
        if stake_delta > 0:
            raise ValueError("stake_delta must not be positive.")

        with self.accounts.locked(account_id) as account:
            if not account.is_active:
                raise AccountInactiveError(account_id=str(account.uuid))

            after_stake = account.balance + stake_delta
            new_balance = after_stake + prize_delta
            if after_stake < 0 or new_balance < 0:
                raise InsufficientBalanceError(
                    balance=account.balance,
                    required=max(-stake_delta, -(stake_delta + prize_delta)),
                )

            account.balance = new_balance
            if stats is not None:
                account.total_staked += stats.staked
                account.total_won += stats.won
                account.bet_count += stats.bets
            account.updated_at = timezone.now()
            return account.stats()

    # Transactions

    def deposit(self, account_id, amount: int) -> TransactionOutcome:
        """
        Credit ``amount`` to the account and record a COMPLETED deposit.

        Raises:
            BelowMinimumError: ``amount`` is under the minimum deposit.
            AccountNotFoundError, AccountInactiveError
        """
        require_amount(amount)
        if amount < self.policy.min_deposit:
            raise BelowMinimumError(
                f"Minimum deposit is {self.policy.min_deposit} Kz.",
                minimum=self.policy.min_deposit,
            )

        with self.accounts.locked(account_id) as account:
            stats = self.apply_delta(account.uuid, stake_delta=0, prize_delta=amount)
            record = TransactionRecord(
                account_id=account.uuid,
                transaction_type=TransactionRecord.TransactionType.DEPOSIT,
                amount=amount,
                status=TransactionRecord.Status.COMPLETED,
            )
            outcome = TransactionOutcome(record=record, stats=stats)
            self.reconciliation.append_or_hold(self.transactions, record, outcome)

        logger.info(
            "Deposit completed: account=%s amount=%d new_balance=%d tx=%s",
            account.uuid,
            amount,
            stats.balance,
            record.id,
        )
        return outcome

    def withdraw(self, account_id, amount: int, destination) -> TransactionOutcome:
        """
        Debit ``amount`` and record a PENDING withdrawal to ``destination``.

        The balance check and the debit happen under the same lock, so two
        concurrent withdrawals cannot both spend the same funds.

        Raises:
            BelowMinimumError: ``amount`` is under the minimum withdrawal.
            InsufficientBalanceError: ``amount`` exceeds the balance.
            MissingDestinationError: No IBAN or account holder name.
            AccountNotFoundError, AccountInactiveError
        """
        require_amount(amount)
        if amount < self.policy.min_withdrawal:
            raise BelowMinimumError(
                f"Minimum withdrawal is {self.policy.min_withdrawal} Kz.",
                minimum=self.policy.min_withdrawal,
            )

        with self.accounts.locked(account_id) as account:
            if not account.is_active:
                raise AccountInactiveError(account_id=str(account.uuid))
            if amount > account.balance:
                logger.warning(
                    "Withdrawal rejected (insufficient balance): account=%s balance=%d amount=%d",
                    account.uuid,
                    account.balance,
                    amount,
                )
                raise InsufficientBalanceError(balance=account.balance, required=amount)
            destination = parse_destination(destination)

            stats = self.apply_delta(account.uuid, stake_delta=0, prize_delta=-amount)
            record = TransactionRecord(
                account_id=account.uuid,
                transaction_type=TransactionRecord.TransactionType.WITHDRAWAL,
                amount=amount,
                status=TransactionRecord.Status.PENDING,
                destination=destination,
            )
            outcome = TransactionOutcome(record=record, stats=stats)
            self.reconciliation.append_or_hold(self.transactions, record, outcome)

        logger.info(
            "Withdrawal requested: account=%s amount=%d new_balance=%d tx=%s",
            account.uuid,
            amount,
            stats.balance,
            record.id,
        )
        return outcome


def parse_destination(destination) -> PayoutDestination:
    fields = destination.as_dict() if isinstance(destination, PayoutDestination) else destination
    if not isinstance(fields, dict):
        raise MissingDestinationError()

    iban, account_name = fields.get("iban"), fields.get("account_name")
    if not all(isinstance(v, str) and v.strip() for v in (iban, account_name)):
        raise MissingDestinationError()
    return PayoutDestination(iban=iban.strip(), account_name=account_name.strip())
