"""
Participants and where they come from.

The table never owns a roster. It asks a PersonalityProvider for the bots
sitting down, and treats what it gets back as read-only.
"""

import json
from dataclasses import dataclass
from decimal import Decimal
from importlib import resources
from pathlib import Path
from typing import Optional, Protocol, Sequence

from craps_agents.bets.catalog import BetType
from craps_agents.config import to_money


@dataclass(frozen=True)
class Personality:
    aggressiveness: int  # 0-10, how often the bot wants in
    risk_tolerance: int  # 0-10, how far above base size it will go

    def __post_init__(self):
        for name in ("aggressiveness", "risk_tolerance"):
            value = getattr(self, name)
            if not 0 <= value <= 10:
                raise ValueError(f"{name} must be between 0 and 10, got {value}")


@dataclass(frozen=True)
class BettingStrategy:
    base_bet_size: Decimal
    max_bet_size: Decimal
    preferred_bet_types: tuple[BetType, ...] = (BetType.PASS_LINE,)

    def __post_init__(self):
        if self.base_bet_size <= 0:
            raise ValueError("base_bet_size must be positive")
        if self.max_bet_size < self.base_bet_size:
            raise ValueError("max_bet_size must be >= base_bet_size")


@dataclass(frozen=True)
class Participant:
    """A seat at the table. Bots carry a personality and a strategy; humans don't."""

    participant_id: str
    name: str
    bankroll: Decimal = Decimal("0.00")
    personality: Optional[Personality] = None
    strategy: Optional[BettingStrategy] = None
    tagline: str = ""

    @property
    def is_bot(self) -> bool:
        return self.personality is not None and self.strategy is not None


class PersonalityProvider(Protocol):
    def participants(self) -> Sequence[Participant]: ...

    def get(self, participant_id: str) -> Participant: ...


class StaticPersonalityProvider:
    """Serves a fixed list of participants."""

    def __init__(self, participants: Sequence[Participant]):
        self._participants = tuple(participants)
        self._by_id = {p.participant_id: p for p in self._participants}
        if len(self._by_id) != len(self._participants):
            raise ValueError("Duplicate participant ids in roster")

    def participants(self) -> Sequence[Participant]:
        return self._participants

    def bots(self) -> list[Participant]:
        return [p for p in self._participants if p.is_bot]

    def get(self, participant_id: str) -> Participant:
        try:
            return self._by_id[participant_id]
        except KeyError:
            raise KeyError(f"No participant {participant_id!r} in roster") from None


def participant_from_dict(data: dict) -> Participant:
    personality = strategy = None
    if "personality" in data:
        personality = Personality(
            aggressiveness=int(data["personality"]["aggressiveness"]),
            risk_tolerance=int(data["personality"]["risk_tolerance"]),
        )
    if "strategy" in data:
        s = data["strategy"]
        strategy = BettingStrategy(
            base_bet_size=to_money(s["base_bet_size"]),
            max_bet_size=to_money(s["max_bet_size"]),
            preferred_bet_types=tuple(BetType.parse(b) for b in s.get("preferred_bet_types", ["pass_line"])),
        )
    return Participant(
        participant_id=str(data["id"]),
        name=data.get("name", str(data["id"])),
        bankroll=to_money(data.get("bankroll", "0")),
        personality=personality,
        strategy=strategy,
        tagline=data.get("tagline", ""),
    )


class JsonPersonalityProvider(StaticPersonalityProvider):
    """Loads a roster from a JSON file: {"participants": [...]}."""

    def __init__(self, path):
        self.path = Path(path)
        with open(self.path) as f:
            data = json.load(f)
        super().__init__([participant_from_dict(p) for p in data.get("participants", [])])


def default_provider() -> StaticPersonalityProvider:
    """The house roster of ten bots bundled with the package."""
    raw = resources.files("craps_agents.data").joinpath("bots.json").read_text()
    data = json.loads(raw)
    return StaticPersonalityProvider([participant_from_dict(p) for p in data["participants"]])
