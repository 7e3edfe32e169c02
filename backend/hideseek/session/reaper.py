"""Idle game cleanup and periodic registry stats."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from hideseek.logic.clock import Clock
from hideseek.logic.models import Game
from hideseek.logic.stats import registry_stats

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL = 3600.0  # seconds between reaper passes
_DEFAULT_IDLE_TTL = 12 * 3600  # seconds without activity before a game is deleted

# (game_id, cutoff_ms) -> whether the game was deleted
DeleteIfIdleCallback = Callable[[str, int], Awaitable[bool]]


class GameReaper:
    """Delete games nobody has touched for idle_ttl_seconds.

    Candidates are picked from a snapshot of the registry; the delete
    callback re-checks idleness under the game's lock, so a game that saw
    activity in the meantime survives.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        list_games: Callable[[], list[Game]],
        delete_if_idle: DeleteIfIdleCallback,
        idle_ttl_seconds: int = _DEFAULT_IDLE_TTL,
        interval: float = _DEFAULT_INTERVAL,
    ) -> None:
        self._clock = clock
        self._list_games = list_games
        self._delete_if_idle = delete_if_idle
        self._idle_ttl_ms = idle_ttl_seconds * 1000
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        """Start the reaper loop. Idempotent; disabled when the TTL is not positive."""
        if self._idle_ttl_ms <= 0:
            return
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def reap(self) -> int:
        """Delete idle games once. Returns how many were removed."""
        cutoff = self._clock.now_ms() - self._idle_ttl_ms
        candidates = [g.id for g in self._list_games() if g.last_activity_time < cutoff]
        deleted = 0
        for game_id in candidates:
            try:
                if await self._delete_if_idle(game_id, cutoff):
                    deleted += 1
            except Exception:
                logger.exception("failed to reap game %s", game_id)
        if deleted:
            logger.info("reaped %d idle game(s)", deleted)
        return deleted

    def log_stats(self) -> None:
        stats = registry_stats(self._list_games())
        logger.info(
            "live games: total=%d %s total_teams=%d",
            stats.total,
            " ".join(f"{status}={count}" for status, count in stats.by_status.items()),
            stats.total_teams,
        )

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.reap()
                self.log_stats()
            except Exception:
                logger.exception("game reaper encountered an error")
