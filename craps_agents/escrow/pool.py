"""
Escrow Pool - the liquidity providers' money behind the table.

Manages:
- LP deposits, withdrawals and balances
- Pro-rata allocation of each round's house result
- Atomic application of round results (all LPs or none)
- ROI leaderboard
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

from craps_agents.config import CENT, to_money
from craps_agents.errors import EscrowImbalanceError, InvalidAmount

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class LiquidityProvider:
    lp_id: str
    initial_deposit: Decimal = ZERO
    current_balance: Decimal = ZERO
    cumulative_winnings: Decimal = ZERO
    cumulative_losses: Decimal = ZERO
    total_withdrawn: Decimal = ZERO

    @property
    def roi(self) -> Decimal:
        """Return on deposits, counting withdrawn capital as returned."""
        if self.initial_deposit == 0:
            return Decimal(0)
        return (self.current_balance + self.total_withdrawn - self.initial_deposit) / self.initial_deposit

    @property
    def is_balanced(self) -> bool:
        return self.current_balance == (
            self.initial_deposit + self.cumulative_winnings
            - self.cumulative_losses - self.total_withdrawn
        )


@dataclass
class EscrowRound:
    round_id: int
    realized_net: Decimal
    deltas: dict[str, Decimal]
    pool_total_after: Decimal
    note: str = ""
    timestamp: float = field(default_factory=time.time)


class EscrowPool:
    """
    Pooled house capital.

    Shares are never cached: every share_of() call divides by the pool total
    as it stands right now.
    """

    def __init__(self):
        self.providers: dict[str, LiquidityProvider] = {}
        self.history: list[EscrowRound] = []

    @property
    def pool_total(self) -> Decimal:
        return sum((lp.current_balance for lp in self.providers.values()), ZERO)

    @property
    def total_deposits(self) -> Decimal:
        return sum((lp.initial_deposit for lp in self.providers.values()), ZERO)

    @property
    def total_withdrawn(self) -> Decimal:
        return sum((lp.total_withdrawn for lp in self.providers.values()), ZERO)

    @property
    def total_return_pct(self) -> Decimal:
        deposits = self.total_deposits
        if deposits == 0:
            return Decimal(0)
        return (self.pool_total + self.total_withdrawn - deposits) / deposits * 100

    def record_deposit(self, lp_id: str, amount) -> LiquidityProvider:
        """Add capital for an LP, creating the LP on first deposit."""
        try:
            amount = to_money(amount)
        except ArithmeticError:
            raise InvalidAmount(f"Invalid deposit amount: {amount!r}") from None
        if amount <= 0:
            raise InvalidAmount(f"Deposit must be positive, got {amount}")

        lp = self.providers.setdefault(lp_id, LiquidityProvider(lp_id=lp_id))
        lp.initial_deposit += amount
        lp.current_balance += amount
        logger.info("LP %s deposited %s (balance %s)", lp_id, amount, lp.current_balance)
        return lp

    def record_withdrawal(self, lp_id: str, amount) -> LiquidityProvider:
        """
        Pay capital back out to an LP.

        Every remaining LP's share grows accordingly; the exiting LP keeps its
        record (at zero balance if it withdrew everything) for the leaderboard.
        """
        if lp_id not in self.providers:
            raise KeyError(f"Unknown liquidity provider {lp_id!r}")
        try:
            amount = to_money(amount)
        except ArithmeticError:
            raise InvalidAmount(f"Invalid withdrawal amount: {amount!r}") from None
        if amount <= 0:
            raise InvalidAmount(f"Withdrawal must be positive, got {amount}")

        lp = self.providers[lp_id]
        if amount > lp.current_balance:
            raise InvalidAmount(f"LP {lp_id} cannot withdraw {amount} (balance {lp.current_balance})")

        lp.current_balance -= amount
        lp.total_withdrawn += amount
        logger.info("LP %s withdrew %s (balance %s)", lp_id, amount, lp.current_balance)
        return lp

    def share_of(self, lp_id: str) -> Decimal:
        """Fraction of the pool owned by an LP."""
        if lp_id not in self.providers:
            raise KeyError(f"Unknown liquidity provider {lp_id!r}")
        total = self.pool_total
        if total == 0:
            return Decimal(0)
        return self.providers[lp_id].current_balance / total

    def allocate(self, realized_net) -> dict[str, Decimal]:
        """
        Split a house result across LPs by current share.

        Works in whole cents: everyone gets the floor of their share and the
        leftover cents go to the largest fractional remainders (ties by LP id),
        so the deltas always sum exactly to realized_net.
        """
        realized_net = to_money(realized_net)
        if realized_net == 0:
            return {lp_id: ZERO for lp_id in self.providers}

        total = self.pool_total
        if total <= 0:
            raise EscrowImbalanceError(f"Pool has no capital to absorb a result of {realized_net}")

        cents = int(abs(realized_net) / CENT)
        whole: dict[str, int] = {}
        remainders = []
        for lp in sorted(self.providers.values(), key=lambda p: p.lp_id):
            exact = Decimal(cents) * lp.current_balance / total
            whole[lp.lp_id] = int(exact)
            remainders.append((exact - whole[lp.lp_id], lp.lp_id))

        leftover = cents - sum(whole.values())
        for _, lp_id in sorted(remainders, key=lambda r: (-r[0], r[1]))[:leftover]:
            whole[lp_id] += 1

        sign = 1 if realized_net > 0 else -1
        return {lp_id: sign * c * CENT for lp_id, c in whole.items()}

    def apply_round_result(self, deltas: Mapping[str, Decimal], realized_net,
                           note: str = "") -> EscrowRound:
        """
        Apply per-LP deltas for one round, all or nothing.

        The deltas must reference known LPs, sum to the realized net of the
        round's wagers, and leave no LP below zero. Otherwise
        EscrowImbalanceError is raised and no balance changes.
        """
        try:
            realized_net = to_money(realized_net)
            deltas = {lp_id: to_money(delta) for lp_id, delta in deltas.items()}
        except ArithmeticError:
            raise EscrowImbalanceError("Round result contains a non-numeric amount") from None

        unknown = sorted(set(deltas) - set(self.providers))
        if unknown:
            raise EscrowImbalanceError(f"Round references unknown LPs: {', '.join(unknown)}")

        delta_sum = sum(deltas.values(), ZERO)
        if delta_sum != realized_net:
            raise EscrowImbalanceError(
                f"LP deltas sum to {delta_sum} but the round realized {realized_net}"
            )

        for lp_id, delta in deltas.items():
            if self.providers[lp_id].current_balance + delta < 0:
                raise EscrowImbalanceError(
                    f"LP {lp_id} cannot cover {delta} (balance {self.providers[lp_id].current_balance})"
                )

        for lp_id, delta in deltas.items():
            lp = self.providers[lp_id]
            lp.current_balance += delta
            if delta > 0:
                lp.cumulative_winnings += delta
            elif delta < 0:
                lp.cumulative_losses += -delta

        record = EscrowRound(
            round_id=len(self.history) + 1,
            realized_net=realized_net,
            deltas=deltas,
            pool_total_after=self.pool_total,
            note=note,
        )
        self.history.append(record)
        return record

    def leaderboard(self) -> list[LiquidityProvider]:
        """LPs ordered by ROI, best first; equal ROI ordered by LP id."""
        return sorted(self.providers.values(), key=lambda lp: (-lp.roi, lp.lp_id))

    def get(self, lp_id: str) -> Optional[LiquidityProvider]:
        return self.providers.get(lp_id)

    def get_pool_summary(self) -> dict:
        """Pool summary for display."""
        wins = [r.realized_net for r in self.history if r.realized_net > 0]
        losses = [r.realized_net for r in self.history if r.realized_net < 0]
        return {
            "pool_total": f"{self.pool_total:,.2f}",
            "deposits": f"{self.total_deposits:,.2f}",
            "withdrawn": f"{self.total_withdrawn:,.2f}",
            "total_return": f"{self.total_return_pct:+.2f}%",
            "providers": len(self.providers),
            "rounds": len(self.history),
            "house_winning_rounds": len(wins),
            "house_losing_rounds": len(losses),
            "largest_win": f"{max(wins, default=ZERO):+,.2f}",
            "largest_loss": f"{min(losses, default=ZERO):+,.2f}",
        }
