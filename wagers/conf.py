from dataclasses import dataclass
from typing import Optional

from django.conf import settings


@dataclass(frozen=True)
class WagerPolicy:
    """House rules, in Kwanza minor units."""

    min_stake: int = 100
    min_deposit: int = 1000
    min_withdrawal: int = 1000
    bet_history_limit: int = 50
    welcome_bonus: int = 100000
    log_capacity: Optional[int] = None

    @classmethod
    def from_settings(cls) -> "WagerPolicy":
        """Build the policy from ``WAGERS_*`` Django settings, keeping defaults for unset ones."""
        defaults = cls()
        return cls(
            min_stake=getattr(settings, "WAGERS_MIN_STAKE", defaults.min_stake),
            min_deposit=getattr(settings, "WAGERS_MIN_DEPOSIT", defaults.min_deposit),
            min_withdrawal=getattr(
                settings, "WAGERS_MIN_WITHDRAWAL", defaults.min_withdrawal
            ),
            bet_history_limit=getattr(
                settings, "WAGERS_BET_HISTORY_LIMIT", defaults.bet_history_limit
            ),
            welcome_bonus=getattr(settings, "WAGERS_WELCOME_BONUS", defaults.welcome_bonus),
            log_capacity=getattr(settings, "WAGERS_LOG_CAPACITY", defaults.log_capacity),
        )
