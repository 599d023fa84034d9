"""
The wager engine as seen by callers: one object wiring the account store,
the logs, the outcome provider and the services together.

The HTTP layer reaches it through ``get_engine()``; tests build their own
with ``WagerEngine(provider=ScriptedOutcomeProvider(...))``.
"""

import logging
import threading
from typing import List, Optional

from django.conf import settings

from wagers.conf import WagerPolicy
from wagers.models import Account, AccountStats, BetRecord, TransactionRecord
from wagers.services import (
    BetOutcome,
    GameResolver,
    LedgerService,
    TransactionOutcome,
    WagerCoordinator,
)
from wagers.stores import AccountStore, BetLog, ReconciliationQueue, TransactionLog
from wagers.utils import RandomOutcomeProvider, build_outcome_provider

logger = logging.getLogger(__name__)


class WagerEngine:
    def __init__(
        self,
        provider: Optional[RandomOutcomeProvider] = None,
        policy: Optional[WagerPolicy] = None,
        accounts: Optional[AccountStore] = None,
        bets: Optional[BetLog] = None,
        transactions: Optional[TransactionLog] = None,
    ):
        self.policy = policy or WagerPolicy()
        self.provider = provider or build_outcome_provider()
        # Empty stores are falsy, so compare against None.
        self.accounts = AccountStore() if accounts is None else accounts
        self.bets = BetLog(capacity=self.policy.log_capacity) if bets is None else bets
        self.transactions = (
            TransactionLog(capacity=self.policy.log_capacity)
            if transactions is None
            else transactions
        )
        self.reconciliation = ReconciliationQueue()

        self.ledger = LedgerService(
            accounts=self.accounts,
            transactions=self.transactions,
            policy=self.policy,
            reconciliation=self.reconciliation,
        )
        self.coordinator = WagerCoordinator(
            ledger=self.ledger,
            resolver=GameResolver(self.provider),
            bets=self.bets,
            policy=self.policy,
            reconciliation=self.reconciliation,
        )

    # Accounts

    def open_account(self, opening_balance: Optional[int] = None) -> Account:
        return self.ledger.open_account(opening_balance)

    def get_account(self, account_id) -> Account:
        return self.ledger.get_account(account_id)

    def deactivate_account(self, account_id) -> Account:
        return self.ledger.deactivate_account(account_id)

    def get_stats(self, account_id) -> AccountStats:
        return self.ledger.get_stats(account_id)

    # Mutations

    def place_bet(self, account_id, game, stake, game_data=None) -> BetOutcome:
        return self.coordinator.place_bet(account_id, game, stake, game_data)

    def deposit(self, account_id, amount) -> TransactionOutcome:
        return self.ledger.deposit(account_id, amount)

    def withdraw(self, account_id, amount, destination) -> TransactionOutcome:
        return self.ledger.withdraw(account_id, amount, destination)

    # History

    def bet_history(self, account_id, limit: Optional[int] = None) -> List[BetRecord]:
        """Most recent bets first, never more than the policy's history limit."""
        self.accounts.get(account_id)
        cap = self.policy.bet_history_limit
        limit = cap if limit is None else min(limit, cap)
        return self.bets.history_for(account_id, limit=limit)

    def transaction_history(
        self, account_id, transaction_type: Optional[str] = None, status: Optional[str] = None
    ) -> List[TransactionRecord]:
        self.accounts.get(account_id)
        return self.transactions.history_for(
            account_id, transaction_type=transaction_type, status=status
        )

    def transaction_detail(self, account_id, transaction_id) -> TransactionRecord:
        self.accounts.get(account_id)
        return self.transactions.get(account_id, transaction_id)

    def reconcile(self) -> int:
        """Retry log appends that failed after their ledger change was applied."""
        return self.reconciliation.drain()


_engine: Optional[WagerEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> WagerEngine:
    """Return the process-wide engine, building it from settings on first use."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = WagerEngine(
                provider=build_outcome_provider(getattr(settings, "WAGERS_RANDOM_SEED", None)),
                policy=WagerPolicy.from_settings(),
            )
            logger.info("Wager engine started: policy=%s", _engine.policy)
        return _engine


def set_engine(engine: Optional[WagerEngine]) -> None:
    """Replace the process-wide engine; ``None`` rebuilds it on next use."""
    global _engine
    with _engine_lock:
        _engine = engine
