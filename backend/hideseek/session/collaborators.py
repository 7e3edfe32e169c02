"""
Outbound collaborators: clue text generation and push notifications.

Both are pluggable. Clue generation is synchronous and its failure rejects the
purchase; push delivery is fire-and-forget and its failures are only logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from hideseek.logic.clues import ClueTextGenerator
from hideseek.logic.enums import ClueKind
from hideseek.logic.geo import compass_direction, distance_meters

if TYPE_CHECKING:
    from hideseek.logic.models import ClueType, Location, Team

logger = logging.getLogger(__name__)

__all__ = [
    "ClueTextGenerator",
    "NullPushNotifier",
    "PushDispatcher",
    "PushNotifier",
    "TemplateClueGenerator",
    "WebhookPushNotifier",
]

_WEBHOOK_TIMEOUT = 5.0


class TemplateClueGenerator:
    """Render clue text from distances and bearings between teams."""

    def generate_clue_text(self, clue_type: ClueType, hiders: list[Team], seeker_location: Location) -> str:
        if not hiders:
            raise ValueError("no hiders to describe")
        located = [h for h in hiders if h.location is not None]
        if len(located) != len(hiders):
            raise ValueError("every hider in a clue needs a location")

        if clue_type.kind == ClueKind.EXACT_LOCATION:
            lines = [f"{h.name}: {h.location.latitude:.6f}, {h.location.longitude:.6f}" for h in located]
            return "Exact locations of hiders within range:\n" + "\n".join(lines)

        if clue_type.kind == ClueKind.DIRECTION:
            if len(located) == 1:
                hider = located[0]
                direction = compass_direction(seeker_location, hider.location)
                return f"The hider ({hider.name}) is generally to the {direction} of your current position."
            lines = [
                f"- {h.name}: {compass_direction(seeker_location, h.location)} "
                f"({distance_meters(seeker_location, h.location):.0f}m away)"
                for h in located
            ]
            return f"Found {len(located)} hiders within range:\n" + "\n".join(lines)

        if len(located) == 1:
            hider = located[0]
            distance = distance_meters(seeker_location, hider.location)
            return f"Your distance to the hider ({hider.name}) is approximately {distance:.0f} meters."
        lines = [f"- {h.name}: {distance_meters(seeker_location, h.location):.0f}m away" for h in located]
        return f"Found {len(located)} hiders within range:\n" + "\n".join(lines)


class PushNotifier(Protocol):
    async def notify(self, game_id: str, title: str, body: str) -> None: ...


class NullPushNotifier:
    async def notify(self, game_id: str, title: str, body: str) -> None:
        logger.debug("push skipped for game %s: %s", game_id, title)


class WebhookPushNotifier:
    """POST notifications as JSON to a push relay."""

    def __init__(self, url: str, timeout: float = _WEBHOOK_TIMEOUT) -> None:
        self._url = url
        self._timeout = timeout

    async def notify(self, game_id: str, title: str, body: str) -> None:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json={"gameId": game_id, "title": title, "body": body})
            response.raise_for_status()


class PushDispatcher:
    """Send push notifications as detached tasks so commands never wait on them."""

    def __init__(self, notifier: PushNotifier) -> None:
        self._notifier = notifier
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, game_id: str, title: str, body: str) -> None:
        task = asyncio.create_task(self._deliver(game_id, title, body))
        # Keep a reference until done so the task is not garbage collected mid-flight
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight notifications (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _deliver(self, game_id: str, title: str, body: str) -> None:
        try:
            await self._notifier.notify(game_id, title, body)
        except Exception:
            logger.exception("push notification failed for game %s", game_id)
