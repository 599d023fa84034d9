"""Game tags, player picks and the closed set of outcomes they resolve to."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple, Union

from django.db import models


class Game(models.TextChoices):
    NUMBERS = "numbers", "Numbers"
    SLOTS = "slots", "Slots"
    WHEEL = "wheel", "Wheel"
    COIN = "coin", "Coin"


class CoinSide(models.TextChoices):
    HEADS = "heads", "Heads"
    TAILS = "tails", "Tails"


# Player input, one variant per game.


@dataclass(frozen=True)
class NumbersPick:
    selected_number: int
    game = Game.NUMBERS


@dataclass(frozen=True)
class SlotsPick:
    game = Game.SLOTS


@dataclass(frozen=True)
class WheelPick:
    game = Game.WHEEL


@dataclass(frozen=True)
class CoinPick:
    choice: CoinSide
    game = Game.COIN


GamePick = Union[NumbersPick, SlotsPick, WheelPick, CoinPick]


# Outcomes. Each carries enough to tell whether the player won and at which
# multiplier.


@dataclass(frozen=True)
class NumbersOutcome:
    selected: int
    winning: int
    game = Game.NUMBERS

    def as_dict(self) -> dict:
        return {"selected_number": self.selected, "winning_number": self.winning}


@dataclass(frozen=True)
class SlotsOutcome:
    symbols: Tuple[str, str, str]
    game = Game.SLOTS

    def as_dict(self) -> dict:
        return {"symbols": list(self.symbols)}


@dataclass(frozen=True)
class WheelOutcome:
    segment: int
    multiplier: Decimal
    game = Game.WHEEL

    def as_dict(self) -> dict:
        return {"segment": self.segment, "multiplier": float(self.multiplier)}


@dataclass(frozen=True)
class CoinOutcome:
    choice: CoinSide
    result: CoinSide
    game = Game.COIN

    def as_dict(self) -> dict:
        return {"choice": str(self.choice), "result": str(self.result)}


GameOutcome = Union[NumbersOutcome, SlotsOutcome, WheelOutcome, CoinOutcome]


@dataclass(frozen=True)
class Resolution:
    won: bool
    prize: int
    outcome: GameOutcome
