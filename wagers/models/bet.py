from dataclasses import dataclass, field
from uuid import UUID, uuid4

from wagers.models.base import BaseRecord
from wagers.models.game import Game, GameOutcome


@dataclass(frozen=True, kw_only=True)
class BetRecord(BaseRecord):
    """
    One resolved bet. Immutable once appended to the bet log.

    ``net_result`` is ``+prize`` for a win and ``-stake`` for a loss.
    """

    id: UUID = field(default_factory=uuid4)
    account_id: UUID
    game: Game
    stake: int
    outcome: GameOutcome
    won: bool
    prize: int

    @property
    def net_result(self) -> int:
        return self.prize if self.won else -self.stake

    def __str__(self):
        return f"Bet {self.id} | {self.game} | {self.stake} | {self.net_result:+d}"
