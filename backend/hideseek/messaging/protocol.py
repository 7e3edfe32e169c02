"""Send side of a subscribed client connection."""

from abc import ABC, abstractmethod
from typing import Any

from hideseek.messaging.encoder import encode


class ConnectionProtocol(ABC):
    """
    What the broadcast hub and session manager need from a subscriber.

    Reading frames is the socket endpoint's business; everything downstream
    only pushes snapshots and may close the connection, so tests can stand in
    plain recorders for real WebSockets.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str: ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None:
        """Send one frame. Raises ConnectionError (or OSError) once the peer is gone."""

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))
