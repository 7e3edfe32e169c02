from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from hideseek.logic.clock import SystemClock
from hideseek.logic.content import load_content
from hideseek.logic.exceptions import GameRuleError
from hideseek.logic.stats import registry_stats
from hideseek.messaging.router import MessageRouter
from hideseek.server import handlers
from hideseek.server.settings import GameServerSettings
from hideseek.server.websocket import websocket_endpoint
from hideseek.session.broadcast import BroadcastHub
from hideseek.session.collaborators import NullPushNotifier, WebhookPushNotifier
from hideseek.session.enforcer import RoundEnforcer
from hideseek.session.manager import GameSessionManager
from hideseek.session.reaper import GameReaper
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from hideseek.logic.clock import Clock
    from hideseek.session.collaborators import PushNotifier


async def health(request: Request) -> JSONResponse:
    settings: GameServerSettings = request.app.state.settings
    return JSONResponse({"status": "ok", "version": settings.app_version})


async def status(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    settings: GameServerSettings = request.app.state.settings
    stats = registry_stats(session_manager.list_games())
    return JSONResponse(
        {
            "status": "ok",
            "version": settings.app_version,
            "games": stats.by_status,
            "total_teams": stats.total_teams,
            "capacity_used": stats.total,
            "max_capacity": settings.max_capacity,
        },
    )


def build_session_manager(settings: GameServerSettings, clock: Clock | None = None) -> GameSessionManager:
    """Wire a session manager from settings: content, rules, hub and push delivery."""
    push_notifier: PushNotifier = NullPushNotifier()
    if settings.push_webhook_url:
        push_notifier = WebhookPushNotifier(settings.push_webhook_url)
    return GameSessionManager(
        clock=clock or SystemClock(),
        rules=settings.to_rules(),
        content=load_content(settings.content_path),
        hub=BroadcastHub(send_timeout=settings.broadcast_timeout_seconds),
        push_notifier=push_notifier,
        max_capacity=settings.max_capacity,
    )


def create_app(
    settings: GameServerSettings | None = None,
    session_manager: GameSessionManager | None = None,
    clock: Clock | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    clock = clock or SystemClock()
    if session_manager is None:
        session_manager = build_session_manager(settings, clock)

    message_router = MessageRouter(session_manager)
    enforcer = RoundEnforcer(
        list_game_ids=session_manager.registry.game_ids,
        enforce=session_manager.enforce_round_limit,
        interval=settings.enforcer_interval_seconds,
    )
    reaper = GameReaper(
        clock=clock,
        list_games=session_manager.list_games,
        delete_if_idle=session_manager.delete_if_idle,
        idle_ttl_seconds=settings.idle_ttl_seconds,
        interval=settings.reaper_interval_seconds,
    )

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    game_path = "/games/{game_id}"
    team_path = f"{game_path}/teams/{{team_id}}"
    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/content", handlers.content, methods=["GET"]),
        Route("/games", handlers.create_game, methods=["POST"]),
        Route("/games", handlers.list_games, methods=["GET"]),
        Route("/games/code/{code}", handlers.get_game_by_code, methods=["GET"]),
        Route(game_path, handlers.get_game, methods=["GET"]),
        Route(game_path, handlers.delete_game, methods=["DELETE"]),
        Route(f"{game_path}/start", handlers.start_game, methods=["POST"]),
        Route(f"{game_path}/pause", handlers.pause_game, methods=["POST"]),
        Route(f"{game_path}/resume", handlers.resume_game, methods=["POST"]),
        Route(f"{game_path}/next-round", handlers.next_round, methods=["POST"]),
        Route(f"{game_path}/end", handlers.end_game, methods=["POST"]),
        Route(f"{game_path}/restart", handlers.restart_game, methods=["POST"]),
        Route(f"{game_path}/stats", handlers.game_stats, methods=["GET"]),
        Route(f"{game_path}/events", handlers.event_history, methods=["GET"]),
        Route(f"{game_path}/clues", handlers.clue_history, methods=["GET"]),
        Route(f"{game_path}/curse-targets", handlers.curse_targets, methods=["GET"]),
        Route(f"{team_path}/role", handlers.update_role, methods=["PUT"]),
        Route(f"{team_path}/tokens", handlers.update_tokens, methods=["PUT"]),
        Route(f"{team_path}/location", handlers.update_location, methods=["PUT"]),
        Route(f"{team_path}/found", handlers.mark_found, methods=["POST"]),
        Route(f"{team_path}/challenges/draw", handlers.draw_challenge, methods=["POST"]),
        Route(f"{team_path}/cards/draw", handlers.draw_card, methods=["POST"]),
        Route(f"{team_path}/challenges/complete", handlers.complete_challenge, methods=["POST"]),
        Route(f"{team_path}/challenges/refuse", handlers.refuse_challenge, methods=["POST"]),
        Route(f"{team_path}/curses", handlers.curse_team, methods=["POST"]),
        Route(f"{team_path}/curses/complete", handlers.complete_curse, methods=["POST"]),
        Route(f"{team_path}/clues", handlers.purchase_clue, methods=["POST"]),
        Route(f"{team_path}/clues", handlers.clue_history, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        enforcer.start()
        reaper.start()
        logger.info("background tasks started")
        yield
        await enforcer.stop()
        await reaper.stop()
        await session_manager.push.drain()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={GameRuleError: handlers.game_rule_error_handler},
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager
    app.state.enforcer = enforcer
    app.state.reaper = reaper

    logger.info("game server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = GameServerSettings()
    setup_logging(settings.log_dir, level=settings.log_level, log_format=settings.log_format)
    return create_app(settings=settings)
