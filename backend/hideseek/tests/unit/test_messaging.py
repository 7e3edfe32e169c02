"""Tests for client message parsing and the WebSocket message router."""

import pytest
from pydantic import ValidationError

from hideseek.logic.models import TeamSpec
from hideseek.messaging.router import MessageRouter
from hideseek.messaging.types import (
    ClientMessageType,
    JoinGameMessage,
    PingMessage,
    ServerMessageType,
    SessionErrorCode,
    parse_client_message,
)
from hideseek.tests.mocks import MockConnection


class TestParseClientMessage:
    def test_parse_join(self):
        message = parse_client_message({"type": "join", "game": "ABCDEF"})
        assert isinstance(message, JoinGameMessage)
        assert message.game == "ABCDEF"

    def test_parse_ping(self):
        assert isinstance(parse_client_message({"type": ClientMessageType.PING}), PingMessage)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "start_game"})

    def test_join_rejects_bad_reference(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "join", "game": "../etc"})


class TestMessageRouter:
    @pytest.fixture
    def router(self, manager):
        return MessageRouter(manager)

    @pytest.fixture
    def game(self, manager):
        return manager.create_game([TeamSpec(name="Red"), TeamSpec(name="Blue")])

    async def test_join_by_code_sends_snapshot_and_subscribes(self, router, manager, game):
        conn = MockConnection()

        await router.handle_message(conn, {"type": "join", "game": game.code})

        [message] = conn.sent_messages
        assert message["type"] == ServerMessageType.GAME_STATE
        assert message["game"]["id"] == game.id
        assert message["game"]["code"] == game.code
        assert manager.hub.is_subscribed(game.id, conn)
        assert manager.subscribed_game(conn.connection_id) == game.id

    async def test_join_unknown_game_sends_error(self, router, manager):
        conn = MockConnection()

        await router.handle_message(conn, {"type": "join", "game": "ZZZZZZ"})

        [message] = conn.sent_messages
        assert message["type"] == ServerMessageType.ERROR
        assert message["code"] == "not_found"
        assert manager.subscribed_game(conn.connection_id) is None

    async def test_invalid_message_sends_error(self, router):
        conn = MockConnection()

        await router.handle_message(conn, {"type": "bogus"})

        [message] = conn.sent_messages
        assert message["type"] == ServerMessageType.ERROR
        assert message["code"] == SessionErrorCode.INVALID_MESSAGE

    async def test_ping(self, router):
        conn = MockConnection()
        await router.handle_message(conn, {"type": "ping"})
        assert conn.sent_messages == [{"type": ServerMessageType.PONG}]

    async def test_leave(self, router, manager, game):
        conn = MockConnection()
        await router.handle_message(conn, {"type": "join", "game": game.id})
        conn.clear()

        await router.handle_message(conn, {"type": "leave"})

        assert conn.sent_messages == [{"type": ServerMessageType.LEFT, "game_id": game.id}]
        assert not manager.hub.is_subscribed(game.id, conn)

    async def test_leave_without_join(self, router):
        conn = MockConnection()
        await router.handle_message(conn, {"type": "leave"})
        assert conn.sent_messages[0]["code"] == SessionErrorCode.NOT_JOINED

    async def test_joining_another_game_moves_subscription(self, router, manager, game):
        other = manager.create_game([TeamSpec(name="Red"), TeamSpec(name="Blue")])
        conn = MockConnection()

        await router.handle_message(conn, {"type": "join", "game": game.id})
        await router.handle_message(conn, {"type": "join", "game": other.id})

        assert not manager.hub.is_subscribed(game.id, conn)
        assert manager.hub.is_subscribed(other.id, conn)

    async def test_disconnect_unsubscribes_silently(self, router, manager, game):
        conn = MockConnection()
        await router.handle_message(conn, {"type": "join", "game": game.id})
        conn.clear()

        await router.handle_disconnect(conn)

        assert conn.sent_messages == []
        assert manager.hub.subscriber_count(game.id) == 0
