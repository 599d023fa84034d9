from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass
class Account:
    """
    A player's ledger: Kwanza balance plus lifetime betting statistics.

    Amounts are integers in minor currency units. The balance never goes
    below zero; it is only changed by ``LedgerService.apply_delta`` while
    the account's lock is held. Accounts are never deleted, only
    deactivated.
    """

    uuid: UUID = field(default_factory=uuid4)
    balance: int = 0
    total_staked: int = 0
    total_won: int = 0
    bet_count: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=timezone.now)
    updated_at: datetime = field(default_factory=timezone.now)

    def __str__(self):
        return f"Account {self.uuid} (balance={self.balance})"

    def stats(self) -> "AccountStats":
        return AccountStats(
            balance=self.balance,
            total_staked=self.total_staked,
            total_won=self.total_won,
            bet_count=self.bet_count,
        )


@dataclass(frozen=True)
class AccountStats:
    balance: int
    total_staked: int
    total_won: int
    bet_count: int


@dataclass(frozen=True)
class StatsDelta:
    """Increments applied to the cumulative statistics alongside a balance change."""

    staked: int = 0
    won: int = 0
    bets: int = 0
