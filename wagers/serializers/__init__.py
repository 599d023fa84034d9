from wagers.serializers.account import AccountSerializer, StatsSerializer
from wagers.serializers.bet import (
    BetHistoryQuerySerializer,
    BetRecordSerializer,
    PlaceBetSerializer,
)
from wagers.serializers.deposit import DepositSerializer
from wagers.serializers.withdraw import WithdrawSerializer
from wagers.serializers.transaction import TransactionSerializer

__all__ = [
    "AccountSerializer",
    "StatsSerializer",
    "PlaceBetSerializer",
    "BetRecordSerializer",
    "BetHistoryQuerySerializer",
    "DepositSerializer",
    "WithdrawSerializer",
    "TransactionSerializer",
]
