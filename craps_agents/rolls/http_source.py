"""
HTTP roll source.

Talks to a randomness gateway (a VRF relayer, a dice service) over HTTP:

    GET <url>?series=<id>
      200 {"die1": 3, "die2": 4}    roll is ready
      202                           still being fulfilled, ask again later

Fulfilment can take a while, so the source keeps polling. The caller's
timeout bounds the whole wait.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from craps_agents.config import RollSourceConfig
from craps_agents.errors import RollSourceUnavailable
from craps_agents.game.dice import DiceRoll
from craps_agents.rolls.base import RollSource

logger = logging.getLogger(__name__)


class HttpRollSource(RollSource):
    """Polls an HTTP randomness gateway for dice."""

    name = "http"

    def __init__(self, config: Optional[RollSourceConfig] = None, url: Optional[str] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.config = config or RollSourceConfig()
        self.url = url or self.config.url
        if not self.url:
            raise ValueError("HttpRollSource needs a URL (set ROLL_SOURCE_URL)")
        self.poll_interval = self.config.poll_interval_secs
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"Accept": "application/json"})
            self._owns_session = True
        return self._session

    async def request_roll(self, series_id: int) -> DiceRoll:
        session = await self._get_session()
        attempts = 0
        while True:
            attempts += 1
            try:
                async with session.get(self.url, params={"series": str(series_id)}) as response:
                    if response.status == 202:
                        logger.debug("Roll for series %s pending (attempt %d)", series_id, attempts)
                        await asyncio.sleep(self.poll_interval)
                        continue
                    if response.status != 200:
                        raise RollSourceUnavailable(
                            f"Roll gateway answered HTTP {response.status} for series {series_id}"
                        )
                    data = await response.json(content_type=None)
            except aiohttp.ClientError as e:
                raise RollSourceUnavailable(f"Roll gateway unreachable: {e}") from e

            return self._parse(data)

    @staticmethod
    def _parse(data) -> DiceRoll:
        try:
            return DiceRoll(int(data["die1"]), int(data["die2"]))
        except (KeyError, TypeError, ValueError) as e:
            raise RollSourceUnavailable(f"Roll gateway returned a malformed roll: {data!r}") from e

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()
