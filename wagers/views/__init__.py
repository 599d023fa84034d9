from wagers.views.account import (
    BalanceView,
    DeactivateAccountView,
    OpenAccountView,
    RetrieveAccountView,
)
from wagers.views.bet import BetHistoryView, PlaceBetView
from wagers.views.deposit import CreateDepositView
from wagers.views.withdraw import CreateWithdrawView
from wagers.views.transaction import TransactionListView, TransactionDetailView
from wagers.views.health import HealthView
from wagers.views.maintenance import ReconcileView

__all__ = [
    "OpenAccountView",
    "RetrieveAccountView",
    "DeactivateAccountView",
    "BalanceView",
    "PlaceBetView",
    "BetHistoryView",
    "CreateDepositView",
    "CreateWithdrawView",
    "TransactionListView",
    "TransactionDetailView",
    "HealthView",
    "ReconcileView",
]
