from craps_agents.bets.catalog import BetCatalog, BetDefinition, BetKind, BetType
from craps_agents.bets.settlement import Resolution, SettlementEngine, resolve
from craps_agents.bets.wager_book import SubmissionResult, Wager, WagerBook, WagerStatus

__all__ = [
    "BetCatalog",
    "BetDefinition",
    "BetKind",
    "BetType",
    "Resolution",
    "SettlementEngine",
    "SubmissionResult",
    "Wager",
    "WagerBook",
    "WagerStatus",
    "resolve",
]
