"""
Bet catalog: every wager the table books, what it pays and when it can be placed.

Bets are data, not classes. A definition names the resolver family it
belongs to (line, don't line, one-roll, hardway, place) plus its pay table,
so adding a proposition is a new row here and nothing else.
"""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Iterator, Mapping, Optional

from craps_agents.config import TableConfig
from craps_agents.errors import InvalidWagerError
from craps_agents.game.state_machine import GamePhase

ANY_PHASE = frozenset({GamePhase.COME_OUT, GamePhase.POINT})
COME_OUT_ONLY = frozenset({GamePhase.COME_OUT})
POINT_ONLY = frozenset({GamePhase.POINT})


class BetType(Enum):
    PASS_LINE = "pass_line"
    DONT_PASS = "dont_pass"
    COME = "come"
    DONT_COME = "dont_come"
    FIELD = "field"
    ANY_SEVEN = "any_seven"
    ANY_CRAPS = "any_craps"
    ACES = "aces"
    ACE_DEUCE = "ace_deuce"
    YO = "yo"
    BOXCARS = "boxcars"
    HARD_4 = "hard_4"
    HARD_6 = "hard_6"
    HARD_8 = "hard_8"
    HARD_10 = "hard_10"
    PLACE_4 = "place_4"
    PLACE_5 = "place_5"
    PLACE_6 = "place_6"
    PLACE_8 = "place_8"
    PLACE_9 = "place_9"
    PLACE_10 = "place_10"

    @classmethod
    def parse(cls, value) -> "BetType":
        """Accept a BetType, its value ("dont_pass") or its name ("DONT_PASS")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        try:
            return cls(key.lower())
        except ValueError:
            pass
        try:
            return cls[key.upper()]
        except KeyError:
            raise InvalidWagerError(f"Unknown bet type: {value!r}") from None


class BetKind(Enum):
    LINE = "line"            # Pass Line, Come
    DONT_LINE = "dont_line"  # Don't Pass, Don't Come
    ONE_ROLL = "one_roll"    # Field and single-roll propositions
    HARDWAY = "hardway"
    PLACE = "place"


@dataclass(frozen=True)
class BetDefinition:
    bet_type: BetType
    label: str
    kind: BetKind
    valid_phases: frozenset
    payout_ratio: Fraction = Fraction(1)
    # Per-total ratios. For one-roll bets these are also the winning totals.
    total_ratios: Mapping[int, Fraction] = field(default_factory=dict)
    number: int = 0
    house_edge: float = 0.0

    def ratio_for(self, total: int) -> Fraction:
        return self.total_ratios.get(total, self.payout_ratio)

    def is_valid_in(self, phase: GamePhase) -> bool:
        return phase in self.valid_phases

    @property
    def winning_totals(self) -> tuple[int, ...]:
        return tuple(sorted(self.total_ratios))


def _one_roll(bet_type, label, ratios, edge) -> BetDefinition:
    return BetDefinition(
        bet_type=bet_type,
        label=label,
        kind=BetKind.ONE_ROLL,
        valid_phases=ANY_PHASE,
        total_ratios={total: Fraction(r) for total, r in ratios.items()},
        house_edge=edge,
    )


def default_definitions(rules: Optional[TableConfig] = None) -> list[BetDefinition]:
    """The standard layout. Field 2/12 payouts follow the table rules."""
    rules = rules or TableConfig()

    definitions = [
        BetDefinition(BetType.PASS_LINE, "Pass Line", BetKind.LINE, COME_OUT_ONLY, house_edge=1.41),
        BetDefinition(BetType.DONT_PASS, "Don't Pass", BetKind.DONT_LINE, COME_OUT_ONLY, house_edge=1.36),
        BetDefinition(BetType.COME, "Come", BetKind.LINE, POINT_ONLY, house_edge=1.41),
        BetDefinition(BetType.DONT_COME, "Don't Come", BetKind.DONT_LINE, POINT_ONLY, house_edge=1.36),
    ]

    field_ratios = {2: rules.field_two_payout, 3: 1, 4: 1, 9: 1, 10: 1, 11: 1, 12: rules.field_twelve_payout}
    field_edge = {(2, 2): 5.56, (2, 3): 2.78, (3, 3): 0.0}.get(
        (rules.field_two_payout, rules.field_twelve_payout), 5.56
    )
    definitions += [
        _one_roll(BetType.FIELD, "Field", field_ratios, field_edge),
        _one_roll(BetType.ANY_SEVEN, "Any Seven", {7: 4}, 16.67),
        _one_roll(BetType.ANY_CRAPS, "Any Craps", {2: 7, 3: 7, 12: 7}, 11.11),
        _one_roll(BetType.ACES, "Aces", {2: 30}, 13.89),
        _one_roll(BetType.ACE_DEUCE, "Ace Deuce", {3: 15}, 11.11),
        _one_roll(BetType.YO, "Yo (11)", {11: 15}, 11.11),
        _one_roll(BetType.BOXCARS, "Boxcars", {12: 30}, 13.89),
    ]

    hardways = {4: (7, 11.11), 6: (9, 9.09), 8: (9, 9.09), 10: (7, 11.11)}
    for number, (ratio, edge) in hardways.items():
        definitions.append(BetDefinition(
            BetType[f"HARD_{number}"], f"Hard {number}", BetKind.HARDWAY, ANY_PHASE,
            payout_ratio=Fraction(ratio), number=number, house_edge=edge,
        ))

    places = {
        4: (Fraction(9, 5), 6.67), 5: (Fraction(7, 5), 4.00), 6: (Fraction(7, 6), 1.52),
        8: (Fraction(7, 6), 1.52), 9: (Fraction(7, 5), 4.00), 10: (Fraction(9, 5), 6.67),
    }
    for number, (ratio, edge) in places.items():
        definitions.append(BetDefinition(
            BetType[f"PLACE_{number}"], f"Place {number}", BetKind.PLACE, ANY_PHASE,
            payout_ratio=ratio, number=number, house_edge=edge,
        ))

    return definitions


class BetCatalog:
    """Lookup table of bet definitions for one table."""

    def __init__(self, definitions: Optional[list[BetDefinition]] = None,
                 rules: Optional[TableConfig] = None):
        self._definitions: dict[BetType, BetDefinition] = {}
        for definition in definitions if definitions is not None else default_definitions(rules):
            self.register(definition)

    def register(self, definition: BetDefinition):
        self._definitions[definition.bet_type] = definition

    def get(self, bet_type) -> BetDefinition:
        bet_type = BetType.parse(bet_type)
        try:
            return self._definitions[bet_type]
        except KeyError:
            raise InvalidWagerError(f"{bet_type.value} is not offered at this table") from None

    def __contains__(self, bet_type) -> bool:
        try:
            bet_type = BetType.parse(bet_type)
        except InvalidWagerError:
            return False
        return bet_type in self._definitions

    def __iter__(self) -> Iterator[BetDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def payout_ratio(self, bet_type, total: Optional[int] = None) -> Fraction:
        definition = self.get(bet_type)
        return definition.payout_ratio if total is None else definition.ratio_for(total)

    def valid_for(self, phase: GamePhase) -> list[BetType]:
        return [d.bet_type for d in self if d.is_valid_in(phase)]

    def is_valid(self, bet_type, phase: GamePhase) -> bool:
        bet_type = BetType.parse(bet_type)
        return bet_type in self._definitions and self._definitions[bet_type].is_valid_in(phase)
