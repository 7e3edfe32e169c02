"""Per-game event history, kept in memory and mirrored to the structured log."""

from collections import deque
from typing import Any, Protocol

import structlog
from pydantic import Field

from hideseek.logic.clock import Clock
from hideseek.logic.enums import GameEventType
from hideseek.logic.models import WireModel

logger = structlog.get_logger()

_DEFAULT_HISTORY_LIMIT = 500


class GameEvent(WireModel):
    game_id: str
    type: GameEventType
    actor: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: int


class EventRecorder(Protocol):
    def record(
        self,
        game_id: str,
        event_type: GameEventType,
        actor: str | None,
        payload: dict[str, Any],
    ) -> None: ...


class GameEventLog:
    """Bounded per-game event history.

    The oldest events are dropped once a game's history is full.
    """

    def __init__(self, clock: Clock, limit: int = _DEFAULT_HISTORY_LIMIT) -> None:
        self._clock = clock
        self._limit = limit
        self._events: dict[str, deque[GameEvent]] = {}

    def record(
        self,
        game_id: str,
        event_type: GameEventType,
        actor: str | None,
        payload: dict[str, Any],
    ) -> None:
        event = GameEvent(
            game_id=game_id,
            type=event_type,
            actor=actor,
            payload=payload,
            timestamp=self._clock.now_ms(),
        )
        self._events.setdefault(game_id, deque(maxlen=self._limit)).append(event)
        logger.info("game event", game_id=game_id, event_type=event_type, actor=actor, payload=payload)

    def history(self, game_id: str) -> list[GameEvent]:
        return list(self._events.get(game_id, ()))

    def clear(self, game_id: str) -> None:
        self._events.pop(game_id, None)
