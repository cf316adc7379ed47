"""
Roll sources: where the dice come from.

The engine only knows request_roll(series_id). Whether the dice come from
a seeded PRNG, a replayed tape or a randomness oracle is the source's
business.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from craps_agents.errors import RollSourceUnavailable, RollTimeout
from craps_agents.game.dice import DiceRoll


class RollSource(ABC):
    """Anything that can produce a roll for a series."""

    name = "roll-source"

    @abstractmethod
    async def request_roll(self, series_id: int) -> DiceRoll:
        """
        Produce the next roll for a series.

        Raises:
            RollTimeout: the source gave up waiting
            RollSourceUnavailable: the source failed
        """

    async def close(self):
        """Release any resources held by the source."""


class RandomRollSource(RollSource):
    """Local PRNG dice. Seed it for reproducible sessions."""

    name = "random"

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random(seed)

    async def request_roll(self, series_id: int) -> DiceRoll:
        return DiceRoll(self.rng.randint(1, 6), self.rng.randint(1, 6))


class ScriptedRollSource(RollSource):
    """
    Replays a fixed list of (die1, die2) pairs.

    Raises RollSourceUnavailable once the script runs out.
    """

    name = "scripted"

    def __init__(self, rolls: Iterable[tuple[int, int]]):
        self.rolls = [tuple(r) for r in rolls]
        self.index = 0

    async def request_roll(self, series_id: int) -> DiceRoll:
        if self.index >= len(self.rolls):
            raise RollSourceUnavailable(f"Roll script exhausted after {self.index} rolls")
        die1, die2 = self.rolls[self.index]
        self.index += 1
        return DiceRoll(die1, die2)

    @property
    def remaining(self) -> int:
        return len(self.rolls) - self.index


async def request_roll_with_timeout(source: RollSource, series_id: int,
                                    timeout: Optional[float]) -> DiceRoll:
    """
    Await a roll, giving up after timeout seconds (None waits forever).

    Cancelling the awaiting task cancels the request too.
    """
    try:
        return await asyncio.wait_for(source.request_roll(series_id), timeout)
    except asyncio.TimeoutError:
        raise RollTimeout(
            f"{source.name} did not deliver a roll for series {series_id} within {timeout}s"
        ) from None
