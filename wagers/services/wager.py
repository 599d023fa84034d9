import logging
from dataclasses import dataclass
from enum import Enum

from wagers.conf import WagerPolicy
from wagers.exceptions import (
    AccountInactiveError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidGameError,
    InvalidInputError,
    RecordedButUnloggedError,
    WagerError,
)
from wagers.models import (
    AccountStats,
    BetRecord,
    CoinPick,
    CoinSide,
    Game,
    GamePick,
    NumbersPick,
    SlotsPick,
    StatsDelta,
    WheelPick,
)
from wagers.services.games import NUMBERS_RANGE, GameResolver
from wagers.services.ledger import LedgerService, require_amount
from wagers.stores import BetLog, ReconciliationQueue

logger = logging.getLogger(__name__)


class BetState(str, Enum):
    VALIDATING = "validating"
    RESOLVING = "resolving"
    SETTLING = "settling"
    RECORDED = "recorded"
    REJECTED = "rejected"


@dataclass(frozen=True)
class BetOutcome:
    record: BetRecord
    stats: AccountStats

    @property
    def won(self) -> bool:
        return self.record.won

    @property
    def prize(self) -> int:
        return self.record.prize

    @property
    def outcome(self):
        return self.record.outcome

    @property
    def new_balance(self) -> int:
        return self.stats.balance


def parse_pick(game, game_data) -> GamePick:
    """
    Turn a raw game tag and its payload into a typed pick.

    Raises:
        InvalidGameError: ``game`` is not one of the known games.
        InvalidInputError: The payload is missing or out of range for ``game``.
    """
    try:
        game = Game(game)
    except (ValueError, TypeError):
        raise InvalidGameError(game=str(game)) from None

    data = {} if game_data is None else game_data
    if not isinstance(data, dict):
        raise InvalidInputError("Game data must be an object.", field="game_data")

    if game == Game.NUMBERS:
        number = data.get("selected_number")
        if (
            isinstance(number, bool)
            or not isinstance(number, int)
            or not 1 <= number <= NUMBERS_RANGE
        ):
            raise InvalidInputError(
                f"Pick a number between 1 and {NUMBERS_RANGE}.", field="selected_number"
            )
        return NumbersPick(selected_number=number)

    if game == Game.COIN:
        choice = data.get("choice")
        try:
            side = CoinSide(choice.lower() if isinstance(choice, str) else choice)
        except (ValueError, TypeError):
            raise InvalidInputError("Choose heads or tails.", field="choice") from None
        return CoinPick(choice=side)

    if game == Game.SLOTS:
        return SlotsPick()
    return WheelPick()


class WagerCoordinator:
    """
    Places one bet from start to finish.

    A bet moves VALIDATING -> RESOLVING -> SETTLING -> RECORDED, or ends in
    REJECTED. Everything from the balance check to the log append runs while
    the account's lock is held: two bets on the same account are settled one
    after the other and each sees the balance the previous one left behind.
    A rejected bet leaves the account untouched. Bets are never retried.
    """

    def __init__(
        self,
        ledger: LedgerService,
        resolver: GameResolver,
        bets: BetLog,
        policy: WagerPolicy,
        reconciliation: ReconciliationQueue,
    ):
        self.ledger = ledger
        self.resolver = resolver
        self.bets = bets
        self.policy = policy
        self.reconciliation = reconciliation

    def place_bet(self, account_id, game, stake, game_data=None) -> BetOutcome:
        state = BetState.VALIDATING
        try:
            require_amount(stake, "stake")
            if stake < self.policy.min_stake:
                raise BelowMinimumError(
                    f"Minimum stake is {self.policy.min_stake} Kz.",
                    minimum=self.policy.min_stake,
                )

            with self.ledger.accounts.locked(account_id) as account:
                if not account.is_active:
                    raise AccountInactiveError(account_id=str(account.uuid))
                if stake > account.balance:
                    raise InsufficientBalanceError(balance=account.balance, required=stake)
                pick = parse_pick(game, game_data)

                state = self._advance(account.uuid, state, BetState.RESOLVING)
                resolution = self.resolver.resolve(pick, stake)
                prize = resolution.prize if resolution.won else 0

                state = self._advance(account.uuid, state, BetState.SETTLING)
                stats = self.ledger.apply_delta(
                    account.uuid,
                    stake_delta=-stake,
                    prize_delta=prize,
                    stats=StatsDelta(staked=stake, won=prize, bets=1),
                )

                record = BetRecord(
                    account_id=account.uuid,
                    game=pick.game,
                    stake=stake,
                    outcome=resolution.outcome,
                    won=resolution.won,
                    prize=prize,
                )
                outcome = BetOutcome(record=record, stats=stats)
                self.reconciliation.append_or_hold(self.bets, record, outcome)
                state = self._advance(account.uuid, state, BetState.RECORDED)
        except RecordedButUnloggedError:
            raise
        except WagerError as exc:
            self._advance(account_id, state, BetState.REJECTED)
            logger.info(
                "Bet rejected: account=%s game=%s stake=%s reason=%s",
                account_id,
                game,
                stake,
                exc.code,
            )
            raise

        logger.info(
            "Bet recorded: account=%s game=%s stake=%d won=%s prize=%d new_balance=%d bet=%s",
            record.account_id,
            record.game,
            stake,
            record.won,
            prize,
            stats.balance,
            record.id,
        )
        return outcome

    @staticmethod
    def _advance(account_id, current: BetState, target: BetState) -> BetState:
        logger.debug("Bet state: account=%s %s -> %s", account_id, current.value, target.value)
        return target
