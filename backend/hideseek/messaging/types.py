from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


class ClientMessageType(StrEnum):
    JOIN = "join"
    LEAVE = "leave"
    PING = "ping"


class ServerMessageType(StrEnum):
    GAME_STATE = "game_state"
    LEFT = "left"
    PONG = "pong"
    ERROR = "error"


class SessionErrorCode(StrEnum):
    """Error codes for WebSocket session problems.

    Command failures reuse FailureKind values; these cover what only the
    socket layer can get wrong.
    """

    INVALID_MESSAGE = "invalid_message"
    NOT_JOINED = "not_joined"


class JoinGameMessage(BaseModel):
    """Subscribe to a game by id or by its 6-letter code."""

    type: Literal[ClientMessageType.JOIN] = ClientMessageType.JOIN
    game: str = Field(min_length=1, max_length=64, pattern=r"^[a-zA-Z0-9-]+$")


class LeaveGameMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE] = ClientMessageType.LEAVE


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    JoinGameMessage | LeaveGameMessage | PingMessage,
    Field(discriminator="type"),
]


class GameStateMessage(BaseModel):
    type: Literal[ServerMessageType.GAME_STATE] = ServerMessageType.GAME_STATE
    game: dict[str, Any]


class LeftGameMessage(BaseModel):
    type: Literal[ServerMessageType.LEFT] = ServerMessageType.LEFT
    game_id: str


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: str
    message: str


_client_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> JoinGameMessage | LeaveGameMessage | PingMessage:
    return _client_adapter.validate_python(data)
