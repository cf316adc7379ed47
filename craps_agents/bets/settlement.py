"""
Settlement engine.

Judges open wagers against a roll. Resolution is a pure function of
(wager, roll, phase before the roll, point before the roll): no randomness,
no side effects. Committing the outcome is the wager book's job.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from fractions import Fraction
from typing import Iterable

from craps_agents.bets.catalog import BetCatalog, BetKind
from craps_agents.bets.wager_book import Wager, WagerStatus
from craps_agents.config import CENT
from craps_agents.game.dice import DiceRoll
from craps_agents.game.state_machine import CRAPS, NATURALS, GamePhase

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Resolution:
    wager_id: str
    status: WagerStatus
    payout: Decimal = ZERO  # net winnings; the stake is returned separately
    bet_point: int = 0


def compute_payout(amount: Decimal, ratio: Fraction) -> Decimal:
    """amount * ratio, rounded down to the cent."""
    raw = amount * ratio.numerator / ratio.denominator
    return raw.quantize(CENT, rounding=ROUND_DOWN)


def _line(wager: Wager, roll: DiceRoll):
    total = roll.total
    if not wager.bet_point:
        if total in NATURALS:
            return WagerStatus.WON, 0
        if total in CRAPS:
            return WagerStatus.LOST, 0
        return WagerStatus.OPEN, total
    if total == wager.bet_point:
        return WagerStatus.WON, wager.bet_point
    if total == 7:
        return WagerStatus.LOST, wager.bet_point
    return WagerStatus.OPEN, wager.bet_point


def _dont_line(wager: Wager, roll: DiceRoll):
    total = roll.total
    if not wager.bet_point:
        if total in (2, 3):
            return WagerStatus.WON, 0
        if total == 12:
            return WagerStatus.PUSHED, 0  # bar the 12
        if total in NATURALS:
            return WagerStatus.LOST, 0
        return WagerStatus.OPEN, total
    if total == 7:
        return WagerStatus.WON, wager.bet_point
    if total == wager.bet_point:
        return WagerStatus.LOST, wager.bet_point
    return WagerStatus.OPEN, wager.bet_point


def resolve(wager: Wager, roll: DiceRoll, phase: GamePhase, point: int,
            catalog: BetCatalog) -> Resolution:
    """
    Resolve one wager against one roll.

    Line bets (Pass/Come and their don'ts) play against their own point,
    stored on the wager, so a Come bet travels to its number independently
    of the table point. Place bets are off on come-out rolls.
    """
    definition = catalog.get(wager.bet_type)
    total = roll.total
    bet_point = wager.bet_point

    if definition.kind is BetKind.LINE:
        status, bet_point = _line(wager, roll)
    elif definition.kind is BetKind.DONT_LINE:
        status, bet_point = _dont_line(wager, roll)
    elif definition.kind is BetKind.ONE_ROLL:
        status = WagerStatus.WON if total in definition.total_ratios else WagerStatus.LOST
    elif definition.kind is BetKind.HARDWAY:
        if total == definition.number and roll.is_hard:
            status = WagerStatus.WON
        elif total in (definition.number, 7):
            status = WagerStatus.LOST
        else:
            status = WagerStatus.OPEN
    elif definition.kind is BetKind.PLACE:
        if phase is not GamePhase.POINT:
            status = WagerStatus.OPEN
        elif total == definition.number:
            status = WagerStatus.WON
        elif total == 7:
            status = WagerStatus.LOST
        else:
            status = WagerStatus.OPEN
    else:
        raise ValueError(f"No resolver for {definition.kind}")

    payout = ZERO
    if status is WagerStatus.WON:
        payout = compute_payout(wager.amount, definition.ratio_for(total))

    return Resolution(wager_id=wager.wager_id, status=status, payout=payout, bet_point=bet_point)


class SettlementEngine:
    """Resolves every open wager for a roll and totals the house result."""

    def __init__(self, catalog: BetCatalog):
        self.catalog = catalog

    def resolve(self, wager: Wager, roll: DiceRoll, phase: GamePhase, point: int) -> Resolution:
        return resolve(wager, roll, phase, point, self.catalog)

    def settle(self, wagers: Iterable[Wager], roll: DiceRoll, phase: GamePhase,
               point: int) -> list[Resolution]:
        resolutions = []
        for wager in wagers:
            resolution = self.resolve(wager, roll, phase, point)
            if resolution.status is not WagerStatus.OPEN:
                logger.debug("%s %s %s on %s (payout %s)", wager.bettor_id, wager.bet_type.value,
                             resolution.status.value, roll.total, resolution.payout)
            resolutions.append(resolution)
        return resolutions

    @staticmethod
    def house_net(wagers: Iterable[Wager], resolutions: Iterable[Resolution]) -> Decimal:
        """Lost stakes minus winning payouts. Pushes and open wagers count zero."""
        stakes = {w.wager_id: w.amount for w in wagers}
        net = ZERO
        for resolution in resolutions:
            if resolution.status is WagerStatus.LOST:
                net += stakes[resolution.wager_id]
            elif resolution.status is WagerStatus.WON:
                net -= resolution.payout
        return net
