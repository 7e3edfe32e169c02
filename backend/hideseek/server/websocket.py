"""Subscription socket: clients join a game and receive its snapshots."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from hideseek.messaging.encoder import DecodeError, decode
from hideseek.messaging.protocol import ConnectionProtocol
from hideseek.messaging.types import ErrorMessage, SessionErrorCode

if TYPE_CHECKING:
    from hideseek.messaging.router import MessageRouter

logger = structlog.get_logger()

MAX_BAD_FRAMES = 5
CLOSE_TOO_MANY_BAD_FRAMES = 4004


class WebSocketSubscriber(ConnectionProtocol):
    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._connection_id = str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        if self._websocket.application_state != WebSocketState.CONNECTED:
            raise ConnectionError("websocket is closed")
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect as e:
            raise ConnectionError(f"websocket disconnected ({e.code})") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def _serve(websocket: WebSocket, subscriber: WebSocketSubscriber, router: MessageRouter) -> None:
    bad_frames = 0
    while True:
        frame = await websocket.receive()
        if frame["type"] == "websocket.disconnect":
            return

        payload = frame.get("bytes")
        try:
            if payload is None:
                raise DecodeError("expected a binary MessagePack frame")
            data = decode(payload)
        except DecodeError as e:
            bad_frames += 1
            logger.warning("bad frame", error=str(e), bad_frames=bad_frames)
            await subscriber.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
            )
            if bad_frames >= MAX_BAD_FRAMES:
                logger.info("closing connection after repeated bad frames")
                await subscriber.close(code=CLOSE_TOO_MANY_BAD_FRAMES, reason="too_many_decode_errors")
                return
            continue

        bad_frames = 0
        await router.handle_message(subscriber, data)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    structlog.contextvars.bind_contextvars(connection_id=subscriber.connection_id)
    logger.info("subscriber connected")
    try:
        await _serve(websocket, subscriber, router)
    except (WebSocketDisconnect, ConnectionError):
        pass
    finally:
        await router.handle_disconnect(subscriber)
        logger.info("subscriber disconnected")
        structlog.contextvars.clear_contextvars()
