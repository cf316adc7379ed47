"""
Game phase state machine.

Owns the current series (shooter, point, rolls) and is the only thing that
moves the table between IDLE, COME_OUT and POINT.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from craps_agents.errors import InvalidStateTransition
from craps_agents.game.dice import DiceRoll

POINT_NUMBERS = (4, 5, 6, 8, 9, 10)
NATURALS = (7, 11)
CRAPS = (2, 3, 12)


class GamePhase(Enum):
    IDLE = "idle"          # No series running
    COME_OUT = "come_out"  # Series running, no point
    POINT = "point"        # Point established


class RollEvent(Enum):
    NATURAL = "natural"
    CRAPS = "craps"
    POINT_ESTABLISHED = "point_established"
    POINT_MADE = "point_made"
    SEVEN_OUT = "seven_out"
    NO_DECISION = "no_decision"


@dataclass
class GameSeries:
    series_id: int
    shooter: str
    phase: GamePhase = GamePhase.COME_OUT
    point: int = 0
    rolls: list[DiceRoll] = field(default_factory=list)
    concluded: bool = False
    auto_opened: bool = False  # opened by the machine when the previous series ended


@dataclass(frozen=True)
class Transition:
    """What one roll did to the game."""

    roll: DiceRoll
    event: RollEvent
    series_id: int
    phase_before: GamePhase
    point_before: int
    phase_after: GamePhase
    point_after: int

    @property
    def concludes_series(self) -> bool:
        return self.event in (RollEvent.POINT_MADE, RollEvent.SEVEN_OUT)


@dataclass(frozen=True)
class GameStateSnapshot:
    """Read-only view for display layers."""

    series_id: int
    phase: GamePhase
    point: int
    last_roll: Optional[DiceRoll]
    shooter: Optional[str]


class GameStateMachine:
    """
    Applies rolls to the current series.

    series_end_phase decides where a finished series leaves the table:
    IDLE waits for start_new_series(); COME_OUT opens the next series for
    the same shooter straight away, and hand_dice() can pass that series to
    a new shooter before its first roll.
    """

    def __init__(self, series_end_phase: GamePhase = GamePhase.IDLE):
        if series_end_phase not in (GamePhase.IDLE, GamePhase.COME_OUT):
            raise ValueError("Series can only end in IDLE or COME_OUT")
        self.series_end_phase = series_end_phase
        self.series: Optional[GameSeries] = None
        self.history: list[GameSeries] = []
        self._next_series_id = 1

    @property
    def phase(self) -> GamePhase:
        if self.series is None or self.series.concluded:
            return GamePhase.IDLE
        return self.series.phase

    @property
    def point(self) -> int:
        if self.phase is GamePhase.POINT:
            return self.series.point
        return 0

    @property
    def series_id(self) -> int:
        return self.series.series_id if self.series else 0

    @property
    def last_roll(self) -> Optional[DiceRoll]:
        for series in ([self.series] if self.series else []) + self.history[::-1]:
            if series.rolls:
                return series.rolls[-1]
        return None

    def start_new_series(self, shooter: str) -> GameSeries:
        """Open a fresh series in COME_OUT with a new series id."""
        current = self.series
        if current is not None and not current.concluded:
            raise InvalidStateTransition(
                f"Series {current.series_id} is still in play ({current.phase.value}, "
                f"point {current.point})"
            )
        if current is not None:
            self.history.append(current)

        self.series = GameSeries(series_id=self._next_series_id, shooter=shooter)
        self._next_series_id += 1
        return self.series

    def hand_dice(self, shooter: str) -> GameSeries:
        """
        Give an auto-opened series to a different shooter.

        Only valid before its first roll; any other series keeps its shooter
        until it concludes.
        """
        current = self.series
        if current is None or not current.auto_opened or current.rolls:
            raise InvalidStateTransition("Dice can only be handed over on a fresh auto-opened series")
        current.shooter = shooter
        return current

    def evaluate(self, roll: DiceRoll) -> Transition:
        """Work out what apply_roll would do, without changing anything."""
        phase = self.phase
        if phase is GamePhase.IDLE:
            raise InvalidStateTransition("No series in play; start a new series first")

        point = self.point
        total = roll.total
        phase_after, point_after = phase, point

        if phase is GamePhase.COME_OUT:
            if total in NATURALS:
                event = RollEvent.NATURAL
            elif total in CRAPS:
                event = RollEvent.CRAPS
            else:
                event = RollEvent.POINT_ESTABLISHED
                phase_after, point_after = GamePhase.POINT, total
        elif total == point:
            event = RollEvent.POINT_MADE
            phase_after, point_after = self.series_end_phase, 0
        elif total == 7:
            event = RollEvent.SEVEN_OUT
            phase_after, point_after = self.series_end_phase, 0
        else:
            event = RollEvent.NO_DECISION

        return Transition(
            roll=replace(roll, sequence_number=len(self.series.rolls) + 1),
            event=event,
            series_id=self.series.series_id,
            phase_before=phase,
            point_before=point,
            phase_after=phase_after,
            point_after=point_after,
        )

    def apply_roll(self, roll: DiceRoll) -> Transition:
        """Apply a roll to the current series. The only way the phase moves."""
        transition = self.evaluate(roll)
        series = self.series
        series.rolls.append(transition.roll)

        if transition.concludes_series:
            series.phase = GamePhase.IDLE
            series.point = 0
            series.concluded = True
            if self.series_end_phase is GamePhase.COME_OUT:
                self.start_new_series(series.shooter).auto_opened = True
        else:
            series.phase = transition.phase_after
            series.point = transition.point_after

        return transition

    def snapshot(self) -> GameStateSnapshot:
        return GameStateSnapshot(
            series_id=self.series_id,
            phase=self.phase,
            point=self.point,
            last_roll=self.last_roll,
            shooter=self.series.shooter if self.series else None,
        )
