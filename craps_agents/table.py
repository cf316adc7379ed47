"""
The Table - one craps game, start to finish.

Per round:
1. Open the betting window for the current phase
2. Bots (and anyone else) submit wagers
3. Close the window and await the dice
4. Work out the transition and settle every open wager
5. Push the house result through the escrow pool
6. Commit: phase moves, wagers close, winners get paid

Steps 4-5 are computed before anything is committed, so a roll failure or an
escrow imbalance leaves phase, wagers and balances as they were before the
roll. Only the window stays shut.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from craps_agents.bets.catalog import BetCatalog
from craps_agents.bets.settlement import SettlementEngine
from craps_agents.bets.wager_book import SubmissionResult, Wager, WagerBook, WagerStatus
from craps_agents.config import CasinoConfig
from craps_agents.errors import EscrowImbalanceError, InvalidStateTransition, RollSourceError
from craps_agents.escrow.pool import EscrowPool, LiquidityProvider
from craps_agents.game.dice import DiceRoll
from craps_agents.game.state_machine import (
    GamePhase,
    GameStateMachine,
    GameStateSnapshot,
    RollEvent,
    Transition,
)
from craps_agents.rolls.base import RandomRollSource, RollSource, request_roll_with_timeout
from craps_agents.strategies.bot_policy import BotWagerPolicy
from craps_agents.strategies.personalities import Participant, PersonalityProvider

logger = logging.getLogger(__name__)

HOUSE_SHOOTER = "house"


def derive_seeds(seed: Optional[int]) -> tuple[int, int]:
    """Independent (bot decisions, local dice) seeds from one table seed."""
    parent = random.Random(seed)
    return parent.getrandbits(64), parent.getrandbits(64)


@dataclass(frozen=True)
class WagerResult:
    wager: Wager
    outcome: WagerStatus
    payout: Decimal


@dataclass
class RoundReport:
    round_number: int
    series_id: int
    roll: DiceRoll
    event: RollEvent
    phase: GamePhase
    point: int
    results: list[WagerResult] = field(default_factory=list)
    house_net: Decimal = Decimal("0.00")
    escrow_deltas: dict[str, Decimal] = field(default_factory=dict)
    leaderboard: list[LiquidityProvider] = field(default_factory=list)
    still_open: int = 0
    verified: bool = True

    @property
    def winners(self) -> list[WagerResult]:
        return [r for r in self.results if r.outcome is WagerStatus.WON]


class CrapsTable:
    """
    A single table: one series at a time, one round in flight.

    Multiple tables share nothing; give each its own state machine, wager
    book and escrow pool.
    """

    def __init__(self, config: Optional[CasinoConfig] = None,
                 roll_source: Optional[RollSource] = None,
                 provider: Optional[PersonalityProvider] = None,
                 pool: Optional[EscrowPool] = None,
                 rng: Optional[random.Random] = None,
                 fallback_source: Optional[RollSource] = None):
        self.config = config or CasinoConfig()
        policy_seed, dice_seed = derive_seeds(self.config.engine.seed)
        self.rng = rng or random.Random(policy_seed)

        self.catalog = BetCatalog(rules=self.config.table)
        self.machine = GameStateMachine(GamePhase[self.config.engine.series_end_phase])
        self.book = WagerBook(self.catalog, self.config.table)
        self.engine = SettlementEngine(self.catalog)
        self.policy = BotWagerPolicy(self.catalog, self.rng)
        if pool is None:
            pool = EscrowPool()
            for lp_id, amount in self.config.escrow.deposits.items():
                pool.record_deposit(lp_id, amount)
        self.pool = pool
        self.roll_source = roll_source or RandomRollSource(seed=dice_seed)
        self.fallback_source = fallback_source

        self.participants: dict[str, Participant] = {}
        self.shooter_order: list[str] = []
        self._shooter_index = 0
        self.round_number = 0
        self.reports: list[RoundReport] = []

        if provider is not None:
            for participant in provider.participants():
                self.seat(participant)

    # -- seating -----------------------------------------------------------

    def seat(self, participant: Participant):
        """Sit a participant down and buy in their bankroll."""
        if participant.participant_id in self.participants:
            raise ValueError(f"{participant.participant_id} is already seated")
        self.participants[participant.participant_id] = participant
        self.shooter_order.append(participant.participant_id)
        if participant.bankroll > 0:
            self.book.fund(participant.participant_id, participant.bankroll)

    @property
    def bots(self) -> list[Participant]:
        return [p for p in self.participants.values() if p.is_bot]

    @property
    def current_shooter(self) -> str:
        if not self.shooter_order:
            return HOUSE_SHOOTER
        return self.shooter_order[self._shooter_index % len(self.shooter_order)]

    def _pass_dice(self):
        if self.shooter_order:
            self._shooter_index = (self._shooter_index + 1) % len(self.shooter_order)

    # -- round flow --------------------------------------------------------

    def snapshot(self) -> GameStateSnapshot:
        return self.machine.snapshot()

    def open_round(self) -> GameStateSnapshot:
        """Make sure a series is running and open the betting window."""
        if self.machine.phase is GamePhase.IDLE:
            series = self.machine.start_new_series(self.current_shooter)
            logger.info("Series %d starts, %s has the dice", series.series_id, series.shooter)
        self.book.open_window(self.machine.series_id, self.machine.phase, self.machine.point)
        return self.snapshot()

    def submit_wager(self, bettor_id: str, bet_type, amount) -> SubmissionResult:
        result = self.book.submit_wager(bettor_id, bet_type, amount)
        if not result.accepted:
            logger.debug("Rejected %s %s from %s: %s", bet_type, amount, bettor_id, result.reason)
        return result

    def collect_bot_wagers(self) -> list[SubmissionResult]:
        """Ask every seated bot for a wager and submit what they decide."""
        results = []
        phase, point = self.machine.phase, self.machine.point
        for bot in self.bots:
            intent = self.policy.decide_for(bot, phase, point, self.config.table)
            if intent is None:
                continue
            results.append(self.submit_wager(bot.participant_id, intent.bet_type, intent.amount))
        return results

    async def _obtain_roll(self, series_id: int, timeout: Optional[float]) -> tuple[DiceRoll, bool]:
        try:
            roll = await request_roll_with_timeout(self.roll_source, series_id, timeout)
            return roll, True
        except RollSourceError as e:
            if self.fallback_source is None or not self.config.engine.allow_unverified_rolls:
                raise
            logger.warning("Roll source failed (%s); rolling from %s, round is UNVERIFIED",
                           e, self.fallback_source.name)
            roll = await request_roll_with_timeout(self.fallback_source, series_id, timeout)
            return roll, False

    async def resolve_round(self, timeout: Optional[float] = None) -> RoundReport:
        """
        Close the window, roll, settle and commit.

        timeout bounds the wait for the dice in seconds and defaults to
        roll_timeout_secs from the engine config.

        Raises RollSourceError or EscrowImbalanceError without changing any
        table state; the window stays closed until open_round() is called.
        """
        if not self.book.window_open:
            raise InvalidStateTransition("No betting window open; call open_round() first")

        self.book.close_window()
        series_id, phase, point = self.machine.series_id, self.machine.phase, self.machine.point

        if timeout is None:
            timeout = self.config.engine.roll_timeout_secs
        roll, verified = await self._obtain_roll(series_id, timeout)
        transition = self.machine.evaluate(roll)

        open_wagers = self.book.open_wagers()
        resolutions = self.engine.settle(open_wagers, transition.roll, phase, point)
        house_net = self.engine.house_net(open_wagers, resolutions)

        try:
            deltas = self.pool.allocate(house_net)
            self.pool.apply_round_result(
                deltas, house_net,
                note=f"series {series_id} roll {transition.roll.sequence_number}",
            )
        except EscrowImbalanceError as e:
            logger.warning("Round rejected, nothing settled: %s", e)
            raise

        # Commit. Nothing below can fail on a consistent table.
        self.machine.apply_roll(roll)
        closed = self.book.commit(resolutions)
        self._record_bot_results(closed)
        self._after_transition(transition)

        self.round_number += 1
        report = RoundReport(
            round_number=self.round_number,
            series_id=series_id,
            roll=transition.roll,
            event=transition.event,
            phase=self.machine.phase,
            point=self.machine.point,
            results=[WagerResult(w, w.status, w.payout) for w in closed],
            house_net=house_net,
            escrow_deltas=deltas,
            leaderboard=[replace(lp) for lp in self.pool.leaderboard()],
            still_open=len(self.book.open_wagers()),
            verified=verified,
        )
        self.reports.append(report)
        logger.info("Round %d: %s %s, %d settled, house %+.2f%s", report.round_number,
                    transition.roll, transition.event.value, len(closed), house_net,
                    "" if verified else " [unverified]")
        return report

    async def play_round(self, timeout: Optional[float] = None) -> RoundReport:
        """Open the window, let the bots bet, and resolve."""
        self.open_round()
        self.collect_bot_wagers()
        return await self.resolve_round(timeout)

    async def run(self, rounds: int, timeout: Optional[float] = None) -> list[RoundReport]:
        reports = []
        for _ in range(rounds):
            reports.append(await self.play_round(timeout))
        return reports

    # -- bookkeeping -------------------------------------------------------

    def _record_bot_results(self, closed: list[Wager]):
        for wager in closed:
            participant = self.participants.get(wager.bettor_id)
            if participant is None or not participant.is_bot:
                continue
            if wager.status is WagerStatus.WON:
                pnl = wager.payout
            elif wager.status is WagerStatus.LOST:
                pnl = -wager.amount
            else:
                pnl = Decimal("0.00")
            self.policy.record_result(wager.bettor_id, wager.status.value, pnl)

    def _after_transition(self, transition: Transition):
        if transition.event is RollEvent.SEVEN_OUT:
            self._pass_dice()
            # In COME_OUT mode the machine already opened a fresh series for
            # the old shooter; hand it over before its first roll.
            if self.machine.phase is GamePhase.COME_OUT:
                self.machine.hand_dice(self.current_shooter)
