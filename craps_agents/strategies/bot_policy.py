"""
Bot Wager Policy - how a bot decides whether, what and how much to bet.

Decision layers:
1. Appetite - aggressiveness sets the chance of betting at all, nudged up on
   come-out rolls (fresh start, everyone's in) and down once a point is on
2. Selection - first preferred bet type the current phase allows
3. Sizing - base bet stretched by risk tolerance, clamped to the bot's own
   cap and the table limits

All randomness comes from an injected random.Random, so a fixed seed gives
a fixed sequence of decisions.
"""

import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from craps_agents.bets.catalog import BetCatalog, BetType
from craps_agents.config import TableConfig, to_money
from craps_agents.game.state_machine import GamePhase
from craps_agents.strategies.personalities import BettingStrategy, Participant, Personality

COME_OUT_BOOST = 1.2
POINT_DAMPING = 0.8


@dataclass(frozen=True)
class WagerIntent:
    bet_type: BetType
    amount: Decimal
    bettor_id: str = ""


@dataclass
class BotRecord:
    """Running results for one bot, for reports."""

    wins: int = 0
    losses: int = 0
    pushes: int = 0
    net: Decimal = Decimal("0.00")
    streak: int = 0  # positive = consecutive wins, negative = consecutive losses
    history: list = field(default_factory=list)

    @property
    def decided(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return self.wins / self.decided if self.decided else 0.0


class BotWagerPolicy:
    """
    Turns a personality and a strategy into wager intents.

    The policy never books anything; submitting the intent to the wager book
    is a separate step that can still be refused.
    """

    def __init__(self, catalog: BetCatalog, rng: Optional[random.Random] = None,
                 come_out_boost: float = COME_OUT_BOOST,
                 point_damping: float = POINT_DAMPING):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.come_out_boost = come_out_boost
        self.point_damping = point_damping
        self.records: dict[str, BotRecord] = {}

    def bet_probability(self, personality: Personality, phase: GamePhase) -> float:
        """aggressiveness / 10, scaled by phase and clamped to [0, 1]."""
        if phase is GamePhase.IDLE:
            return 0.0
        p = personality.aggressiveness / 10
        p *= self.come_out_boost if phase is GamePhase.COME_OUT else self.point_damping
        return max(min(p, 1.0), 0.0)

    def select_bet_type(self, strategy: BettingStrategy, phase: GamePhase) -> Optional[BetType]:
        for bet_type in strategy.preferred_bet_types:
            if bet_type in self.catalog and self.catalog.is_valid(bet_type, phase):
                return bet_type
        return None

    def size_bet(self, personality: Personality, strategy: BettingStrategy,
                 limits: TableConfig) -> Optional[Decimal]:
        """
        base * (1 + u * risk/10), u uniform in [0, 1), clamped to
        [table min, min(bot max, table max)]. None if that range is empty.
        """
        floor = limits.min_bet
        ceiling = min(strategy.max_bet_size, limits.max_bet)
        variance = Decimal(str(self.rng.random())) * personality.risk_tolerance / 10
        amount = to_money(strategy.base_bet_size * (1 + variance))
        if floor > ceiling:
            return None
        return max(floor, min(amount, ceiling))

    def decide(self, personality: Personality, strategy: BettingStrategy, phase: GamePhase,
               point: int, limits: TableConfig) -> Optional[WagerIntent]:
        """
        Decide one wager for the coming roll, or None to sit it out.

        point is accepted for parity with the game snapshot; selection
        currently keys off the phase alone.
        """
        p = self.bet_probability(personality, phase)
        if p <= 0 or self.rng.random() >= p:
            return None

        bet_type = self.select_bet_type(strategy, phase)
        if bet_type is None:
            return None

        amount = self.size_bet(personality, strategy, limits)
        if amount is None:
            return None

        return WagerIntent(bet_type=bet_type, amount=amount)

    def decide_for(self, bot: Participant, phase: GamePhase, point: int,
                   limits: TableConfig) -> Optional[WagerIntent]:
        if not bot.is_bot:
            return None
        intent = self.decide(bot.personality, bot.strategy, phase, point, limits)
        if intent is None:
            return None
        return WagerIntent(bet_type=intent.bet_type, amount=intent.amount, bettor_id=bot.participant_id)

    def record_result(self, bettor_id: str, outcome: str, pnl: Decimal):
        """Track wins, losses and streaks per bot. outcome is won/lost/pushed."""
        record = self.records.setdefault(bettor_id, BotRecord())
        record.net += pnl

        if outcome == "won":
            record.wins += 1
            record.streak = record.streak + 1 if record.streak > 0 else 1
        elif outcome == "lost":
            record.losses += 1
            record.streak = record.streak - 1 if record.streak < 0 else -1
        else:
            record.pushes += 1

        record.history.append({"outcome": outcome, "pnl": pnl})
        if len(record.history) > 100:
            record.history.pop(0)

    def get_status_report(self, bettor_id: str) -> dict:
        record = self.records.get(bettor_id, BotRecord())
        if record.streak:
            streak = f"{'W' if record.streak > 0 else 'L'}{abs(record.streak)}"
        else:
            streak = "N/A"
        return {
            "wins": record.wins,
            "losses": record.losses,
            "pushes": record.pushes,
            "win_rate": f"{record.win_rate:.1%}",
            "net": f"{record.net:+.2f}",
            "streak": streak,
        }
