from craps_agents.rolls.base import (
    RandomRollSource,
    RollSource,
    ScriptedRollSource,
    request_roll_with_timeout,
)
from craps_agents.rolls.http_source import HttpRollSource

__all__ = [
    "HttpRollSource",
    "RandomRollSource",
    "RollSource",
    "ScriptedRollSource",
    "request_roll_with_timeout",
]
