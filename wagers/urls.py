from django.urls import path

from wagers.views import (
    BalanceView,
    BetHistoryView,
    CreateDepositView,
    CreateWithdrawView,
    DeactivateAccountView,
    OpenAccountView,
    PlaceBetView,
    RetrieveAccountView,
    TransactionDetailView,
    TransactionListView,
)

urlpatterns = [
    path("", OpenAccountView.as_view(), name="account-open"),
    path("<uuid:account_id>/", RetrieveAccountView.as_view(), name="account-detail"),
    path(
        "<uuid:account_id>/deactivate",
        DeactivateAccountView.as_view(),
        name="account-deactivate",
    ),
    path("<uuid:account_id>/balance", BalanceView.as_view(), name="account-balance"),
    path("<uuid:account_id>/bets", PlaceBetView.as_view(), name="bet-place"),
    path("<uuid:account_id>/bets/", BetHistoryView.as_view(), name="bet-history"),
    path("<uuid:account_id>/deposit", CreateDepositView.as_view(), name="account-deposit"),
    path("<uuid:account_id>/withdraw", CreateWithdrawView.as_view(), name="account-withdraw"),
    path(
        "<uuid:account_id>/transactions/",
        TransactionListView.as_view(),
        name="account-transactions",
    ),
    path(
        "<uuid:account_id>/transactions/<uuid:transaction_id>/",
        TransactionDetailView.as_view(),
        name="transaction-detail",
    ),
]
