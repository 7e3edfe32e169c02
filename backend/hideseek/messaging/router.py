from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from hideseek.messaging.types import (
    ErrorMessage,
    JoinGameMessage,
    LeaveGameMessage,
    PingMessage,
    SessionErrorCode,
    parse_client_message,
)

if TYPE_CHECKING:
    from hideseek.messaging.protocol import ConnectionProtocol
    from hideseek.session.manager import GameSessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Dispatches decoded socket messages to the session manager.

    The socket is read-mostly: clients subscribe to one game at a time and
    receive snapshots. Every command that changes a game goes over HTTP.
    """

    def __init__(self, session_manager: GameSessionManager) -> None:
        self._sessions = session_manager

    async def handle_message(self, connection: ConnectionProtocol, raw_message: dict[str, Any]) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, ValueError) as e:
            logger.warning("rejected message from %s: %s", connection.connection_id, e)
            error = ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e))
            await connection.send_message(error.model_dump())
            return

        match message:
            case JoinGameMessage(game=game_ref):
                await self._sessions.join_game(connection, game_ref)
            case LeaveGameMessage():
                await self._sessions.leave_game(connection)
            case PingMessage():
                await self._sessions.handle_ping(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._sessions.leave_game(connection, notify_player=False)
