from craps_agents.strategies.bot_policy import BotRecord, BotWagerPolicy, WagerIntent
from craps_agents.strategies.personalities import (
    BettingStrategy,
    JsonPersonalityProvider,
    Participant,
    Personality,
    PersonalityProvider,
    StaticPersonalityProvider,
    default_provider,
)

__all__ = [
    "BettingStrategy",
    "BotRecord",
    "BotWagerPolicy",
    "JsonPersonalityProvider",
    "Participant",
    "Personality",
    "PersonalityProvider",
    "StaticPersonalityProvider",
    "WagerIntent",
    "default_provider",
]
