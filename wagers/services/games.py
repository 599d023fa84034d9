import logging
from decimal import ROUND_DOWN, Decimal

from wagers.models import (
    CoinOutcome,
    CoinPick,
    CoinSide,
    Game,
    NumbersOutcome,
    NumbersPick,
    Resolution,
    SlotsOutcome,
    SlotsPick,
    WheelOutcome,
    WheelPick,
)
from wagers.utils import RandomOutcomeProvider

logger = logging.getLogger(__name__)

NUMBERS_RANGE = 25
NUMBERS_PAYOUT = 24

SLOT_SYMBOLS = ("cherry", "lemon", "orange", "grape", "diamond", "star", "seven")
SLOTS_PAYOUT = 10

WHEEL_SEGMENTS = tuple(
    Decimal(m) for m in ("2", "0", "1.5", "0", "3", "0", "5", "0")
)

COIN_PAYOUT = 2


class GameResolver:
    """
    Turns a validated pick and stake into a Resolution.

    Resolution is pure apart from the draws taken from ``provider``: the
    same pick, stake and draws always give the same result. Stakes and picks
    are assumed valid; WagerCoordinator checks them before calling in.
    """

    def __init__(self, provider: RandomOutcomeProvider):
        self.provider = provider
        self._rules = {
            Game.NUMBERS: self._resolve_numbers,
            Game.SLOTS: self._resolve_slots,
            Game.WHEEL: self._resolve_wheel,
            Game.COIN: self._resolve_coin,
        }

    def resolve(self, pick, stake: int) -> Resolution:
        resolution = self._rules[pick.game](pick, stake)
        logger.debug(
            "Resolved %s: stake=%d won=%s prize=%d outcome=%s",
            pick.game,
            stake,
            resolution.won,
            resolution.prize,
            resolution.outcome.as_dict(),
        )
        return resolution

    def _resolve_numbers(self, pick: NumbersPick, stake: int) -> Resolution:
        winning = self.provider.draw_uniform(NUMBERS_RANGE) + 1
        won = winning == pick.selected_number
        return Resolution(
            won=won,
            prize=stake * NUMBERS_PAYOUT if won else 0,
            outcome=NumbersOutcome(selected=pick.selected_number, winning=winning),
        )

    def _resolve_slots(self, pick: SlotsPick, stake: int) -> Resolution:
        symbols = tuple(
            SLOT_SYMBOLS[self.provider.draw_uniform(len(SLOT_SYMBOLS))] for _ in range(3)
        )
        won = symbols[0] == symbols[1] == symbols[2]
        return Resolution(
            won=won,
            prize=stake * SLOTS_PAYOUT if won else 0,
            outcome=SlotsOutcome(symbols=symbols),
        )

    def _resolve_wheel(self, pick: WheelPick, stake: int) -> Resolution:
        segment = self.provider.draw_uniform(len(WHEEL_SEGMENTS))
        multiplier = WHEEL_SEGMENTS[segment]
        # Fractional prizes are rounded down to a whole Kwanza unit.
        prize = int((stake * multiplier).to_integral_value(rounding=ROUND_DOWN))
        return Resolution(
            won=multiplier > 0,
            prize=prize,
            outcome=WheelOutcome(segment=segment, multiplier=multiplier),
        )

    def _resolve_coin(self, pick: CoinPick, stake: int) -> Resolution:
        result = CoinSide.HEADS if self.provider.draw_boolean(0.5) else CoinSide.TAILS
        won = result == pick.choice
        return Resolution(
            won=won,
            prize=stake * COIN_PAYOUT if won else 0,
            outcome=CoinOutcome(choice=pick.choice, result=result),
        )
