"""Per-game subscriber sets with bounded, best-effort fan-out."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hideseek.messaging.protocol import ConnectionProtocol

logger = logging.getLogger(__name__)

_DEFAULT_SEND_TIMEOUT = 2.0  # seconds a single listener may take to accept a message


class BroadcastHub:
    """Fan game snapshots out to every connection subscribed to a game.

    A listener whose send raises or exceeds the timeout is unsubscribed and
    closed. Publishing never raises. Sends run concurrently and so do the
    closes that follow, each bounded by the same timeout, so a publish waits
    at most two timeouts.
    """

    def __init__(self, send_timeout: float = _DEFAULT_SEND_TIMEOUT) -> None:
        self._send_timeout = send_timeout
        self._subscribers: dict[str, dict[str, ConnectionProtocol]] = {}  # game_id -> connection_id -> conn

    def subscribe(self, game_id: str, listener: ConnectionProtocol) -> None:
        self._subscribers.setdefault(game_id, {})[listener.connection_id] = listener

    def unsubscribe(self, game_id: str, listener: ConnectionProtocol) -> None:
        listeners = self._subscribers.get(game_id)
        if listeners is None:
            return
        listeners.pop(listener.connection_id, None)
        if not listeners:
            self._subscribers.pop(game_id, None)

    def subscriber_count(self, game_id: str) -> int:
        return len(self._subscribers.get(game_id, {}))

    def is_subscribed(self, game_id: str, listener: ConnectionProtocol) -> bool:
        return listener.connection_id in self._subscribers.get(game_id, {})

    async def publish(self, game_id: str, message: dict[str, Any]) -> None:
        """Send message to every listener of game_id, pruning the ones that fail."""
        # Snapshot the listeners: a concurrent unsubscribe must not mutate what we iterate
        listeners = list(self._subscribers.get(game_id, {}).values())
        if not listeners:
            return
        results = await asyncio.gather(*(self._send(listener, message) for listener in listeners))
        failed = [listener for listener, ok in zip(listeners, results, strict=True) if not ok]
        for listener in failed:
            logger.info("dropping listener %s from game %s after failed send", listener.connection_id, game_id)
            self.unsubscribe(game_id, listener)
        await asyncio.gather(*(self._close(listener, 1011, "send_failed") for listener in failed))

    async def close_game(self, game_id: str) -> None:
        """Drop every listener of a deleted game and close their connections."""
        listeners = self._subscribers.pop(game_id, {})
        await asyncio.gather(*(self._close(listener, 1000, "game_deleted") for listener in listeners.values()))

    async def _send(self, listener: ConnectionProtocol, message: dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(listener.send_message(message), timeout=self._send_timeout)
        except Exception as e:
            logger.debug("send to %s failed: %r", listener.connection_id, e)
            return False
        return True

    async def _close(self, listener: ConnectionProtocol, code: int, reason: str) -> None:
        try:
            await asyncio.wait_for(listener.close(code=code, reason=reason), timeout=self._send_timeout)
        except Exception as e:
            logger.debug("close of %s failed: %r", listener.connection_id, e)
