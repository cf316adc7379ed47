"""
Wager Book - who has what riding on the felt.

Handles:
- Bettor bankrolls (stakes are debited when a wager is booked)
- The betting window, which is either open for a phase or closed
- Table limits and per-bettor open wager caps
- Committing settled wagers and paying out winners
"""

import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from craps_agents.bets.catalog import BetCatalog, BetType
from craps_agents.config import TableConfig, to_money
from craps_agents.errors import InvalidAmount, InvalidStateTransition, InvalidWagerError
from craps_agents.game.state_machine import GamePhase

if TYPE_CHECKING:
    from craps_agents.bets.settlement import Resolution


class WagerStatus(Enum):
    OPEN = "open"
    WON = "won"
    LOST = "lost"
    PUSHED = "pushed"


@dataclass
class Wager:
    wager_id: str
    bettor_id: str
    bet_type: BetType
    amount: Decimal
    placed_in_phase: GamePhase
    placed_at_point: int
    series_id: int
    bet_point: int = 0  # own point for line-class bets, 0 until established
    status: WagerStatus = WagerStatus.OPEN
    payout: Decimal = Decimal("0.00")
    placed_at: float = field(default_factory=time.time)

    @property
    def is_open(self) -> bool:
        return self.status is WagerStatus.OPEN


@dataclass(frozen=True)
class SubmissionResult:
    accepted: bool
    wager: Optional[Wager] = None
    reason: str = ""


class WagerBook:
    """
    Books wagers for a single table.

    The window is an enforced state: nothing is booked while it is closed,
    and only the table reopens it for the next roll.
    """

    def __init__(self, catalog: BetCatalog, rules: Optional[TableConfig] = None):
        self.catalog = catalog
        self.rules = rules or TableConfig()
        self.balances: dict[str, Decimal] = {}
        self.wagers: dict[str, Wager] = {}
        self.archive: list[Wager] = []
        self.window_open = False
        self.window_phase = GamePhase.IDLE
        self.window_point = 0
        self.window_series = 0

    # -- bankrolls ---------------------------------------------------------

    def fund(self, bettor_id: str, amount) -> Decimal:
        try:
            amount = to_money(amount)
        except ArithmeticError:
            raise InvalidAmount(f"Invalid funding amount: {amount!r}") from None
        if amount <= 0:
            raise InvalidAmount(f"Funding amount must be positive, got {amount}")
        self.balances[bettor_id] = self.balances.get(bettor_id, Decimal("0.00")) + amount
        return self.balances[bettor_id]

    def balance_of(self, bettor_id: str) -> Decimal:
        return self.balances.get(bettor_id, Decimal("0.00"))

    def exposure(self, bettor_id: Optional[str] = None) -> Decimal:
        """Total stake riding on open wagers."""
        return sum((w.amount for w in self.open_wagers(bettor_id)), Decimal("0.00"))

    # -- betting window ----------------------------------------------------

    def open_window(self, series_id: int, phase: GamePhase, point: int):
        if phase is GamePhase.IDLE:
            raise InvalidStateTransition("Cannot open a betting window with no series in play")
        self.window_open = True
        self.window_series = series_id
        self.window_phase = phase
        self.window_point = point

    def close_window(self):
        self.window_open = False

    # -- booking -----------------------------------------------------------

    def place(self, bettor_id: str, bet_type, amount) -> Wager:
        """Book a wager or raise InvalidWagerError explaining why not."""
        if not self.window_open:
            raise InvalidWagerError("Betting window is closed")

        definition = self.catalog.get(bet_type)
        if not definition.is_valid_in(self.window_phase):
            raise InvalidWagerError(
                f"{definition.label} cannot be placed during {self.window_phase.value}"
            )

        try:
            amount = to_money(amount)
        except ArithmeticError:
            raise InvalidWagerError(f"Invalid amount: {amount!r}") from None
        if amount <= 0:
            raise InvalidWagerError("Wager amount must be positive")
        if amount < self.rules.min_bet:
            raise InvalidWagerError(f"Below table minimum of {self.rules.min_bet}")
        if amount > self.rules.max_bet:
            raise InvalidWagerError(f"Above table maximum of {self.rules.max_bet}")

        if len(self.open_wagers(bettor_id)) >= self.rules.max_open_wagers:
            raise InvalidWagerError(f"Already {self.rules.max_open_wagers} wagers open")

        balance = self.balance_of(bettor_id)
        if amount > balance:
            raise InvalidWagerError(f"Insufficient balance: have {balance}, need {amount}")

        wager = Wager(
            wager_id=f"wgr_{uuid.uuid4().hex[:10]}",
            bettor_id=bettor_id,
            bet_type=definition.bet_type,
            amount=amount,
            placed_in_phase=self.window_phase,
            placed_at_point=self.window_point,
            series_id=self.window_series,
        )
        self.balances[bettor_id] = balance - amount
        self.wagers[wager.wager_id] = wager
        return wager

    def submit_wager(self, bettor_id: str, bet_type, amount) -> SubmissionResult:
        """Sink interface for callers: never raises for a rejected wager."""
        try:
            wager = self.place(bettor_id, bet_type, amount)
        except InvalidWagerError as e:
            return SubmissionResult(accepted=False, reason=e.reason)
        return SubmissionResult(accepted=True, wager=wager)

    def open_wagers(self, bettor_id: Optional[str] = None) -> list[Wager]:
        return [
            w for w in self.wagers.values()
            if w.is_open and (bettor_id is None or w.bettor_id == bettor_id)
        ]

    # -- settlement --------------------------------------------------------

    def commit(self, resolutions: Iterable["Resolution"]) -> list[Wager]:
        """
        Apply settled resolutions. Winners get stake + payout back, pushes
        get their stake, losers get nothing. Returns the wagers that closed.
        """
        resolutions = list(resolutions)
        for resolution in resolutions:
            wager = self.wagers.get(resolution.wager_id)
            if wager is None or not wager.is_open:
                raise InvalidWagerError(f"Wager {resolution.wager_id} is not open in this book")

        closed = []
        for resolution in resolutions:
            wager = self.wagers[resolution.wager_id]
            wager.bet_point = resolution.bet_point
            if resolution.status is WagerStatus.OPEN:
                continue

            wager.status = resolution.status
            wager.payout = resolution.payout
            if resolution.status is WagerStatus.WON:
                self.balances[wager.bettor_id] = self.balance_of(wager.bettor_id) + wager.amount + wager.payout
            elif resolution.status is WagerStatus.PUSHED:
                self.balances[wager.bettor_id] = self.balance_of(wager.bettor_id) + wager.amount

            del self.wagers[wager.wager_id]
            self.archive.append(wager)
            closed.append(wager)

        return closed
