"""Periodic round time-limit enforcement."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL = 5.0  # seconds between enforcement ticks

# (game_id) -> whether the game was auto-paused
EnforceCallback = Callable[[str], Awaitable[bool]]


class RoundEnforcer:
    """Auto-pause games whose round time limit has run out.

    Runs on its own asyncio task, independent of request traffic. Each tick
    evaluates all live games concurrently through the enforce callback (which
    takes the game's lock), so one busy or failing game never holds up the
    rest.
    """

    def __init__(
        self,
        *,
        list_game_ids: Callable[[], list[str]],
        enforce: EnforceCallback,
        interval: float = _DEFAULT_INTERVAL,
    ) -> None:
        self._list_game_ids = list_game_ids
        self._enforce = enforce
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the enforcement loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def tick(self) -> int:
        """Evaluate every live game once. Returns how many were auto-paused."""
        game_ids = self._list_game_ids()
        if not game_ids:
            return 0
        results = await asyncio.gather(
            *(self._enforce(game_id) for game_id in game_ids),
            return_exceptions=True,
        )
        paused = 0
        for game_id, result in zip(game_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("round enforcement failed for game %s", game_id, exc_info=result)
            elif result:
                paused += 1
        if paused:
            logger.info("round enforcer auto-paused %d game(s)", paused)
        return paused

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("round enforcer encountered an error")
