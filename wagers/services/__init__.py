from wagers.services.games import GameResolver
from wagers.services.ledger import LedgerService, TransactionOutcome
from wagers.services.wager import BetOutcome, BetState, WagerCoordinator, parse_pick

__all__ = [
    "GameResolver",
    "LedgerService",
    "TransactionOutcome",
    "WagerCoordinator",
    "BetOutcome",
    "BetState",
    "parse_pick",
]
