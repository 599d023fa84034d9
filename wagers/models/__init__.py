from wagers.models.account import Account, AccountStats, StatsDelta
from wagers.models.bet import BetRecord
from wagers.models.game import (
    CoinOutcome,
    CoinPick,
    CoinSide,
    Game,
    GameOutcome,
    GamePick,
    NumbersOutcome,
    NumbersPick,
    Resolution,
    SlotsOutcome,
    SlotsPick,
    WheelOutcome,
    WheelPick,
)
from wagers.models.transaction import PayoutDestination, TransactionRecord

__all__ = [
    "Account",
    "AccountStats",
    "StatsDelta",
    "BetRecord",
    "TransactionRecord",
    "PayoutDestination",
    "Game",
    "CoinSide",
    "GamePick",
    "NumbersPick",
    "SlotsPick",
    "WheelPick",
    "CoinPick",
    "GameOutcome",
    "NumbersOutcome",
    "SlotsOutcome",
    "WheelOutcome",
    "CoinOutcome",
    "Resolution",
]
