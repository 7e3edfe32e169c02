"""HTTP handlers for the game command surface.

Handlers parse and validate the request body, call the session manager and
serialize the result. Rejected commands surface as GameRuleError and are
turned into JSON error responses by ``game_rule_error_handler``.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse, Response

from hideseek.logic.enums import FailureKind
from hideseek.logic.exceptions import GameRuleError, InvalidInputError
from hideseek.server.types import (
    CompleteChallengeRequest,
    CompleteCurseRequest,
    CreateGameRequest,
    CurseTeamRequest,
    MarkFoundRequest,
    PurchaseClueRequest,
    UpdateLocationRequest,
    UpdateRoleRequest,
    UpdateTokensRequest,
)
from hideseek.session.manager import GameSessionManager

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request

    from hideseek.logic.models import Game

logger = structlog.get_logger()

_MAX_REQUEST_BODY_SIZE = 4096

FAILURE_STATUS: dict[FailureKind, HTTPStatus] = {
    FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    FailureKind.INVALID_TRANSITION: HTTPStatus.CONFLICT,
    FailureKind.PRECONDITION_FAILED: HTTPStatus.CONFLICT,
    FailureKind.EXHAUSTED: HTTPStatus.CONFLICT,
    FailureKind.CLUE_GENERATION_FAILED: HTTPStatus.BAD_GATEWAY,
    FailureKind.INVALID_INPUT: HTTPStatus.BAD_REQUEST,
}


async def game_rule_error_handler(_request: Request, exc: Exception) -> Response:
    if not isinstance(exc, GameRuleError):  # pragma: no cover
        raise exc
    status = FAILURE_STATUS[exc.kind]
    logger.info("command rejected", kind=exc.kind, message=exc.message, status=status.value)
    return JSONResponse({"error": exc.to_dict()}, status_code=status)


def _manager(request: Request) -> GameSessionManager:
    return request.app.state.session_manager


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


async def _parse_body[M: BaseModel](request: Request, model: type[M]) -> M:
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        msg = "request body too large"
        raise InvalidInputError(msg)
    try:
        body = json.loads(raw_body) if raw_body else {}
        return model.model_validate(body)
    except (ValueError, UnicodeDecodeError, ValidationError) as e:
        msg = f"invalid request body: {e}"
        raise InvalidInputError(msg) from None


# --- Games ---


async def create_game(request: Request) -> JSONResponse:
    manager = _manager(request)
    body = await _parse_body(request, CreateGameRequest)
    game = manager.create_game(body.teams, body.round_length_minutes)
    return JSONResponse(manager.snapshot(game.id), status_code=HTTPStatus.CREATED)


async def list_games(request: Request) -> JSONResponse:
    manager = _manager(request)
    return JSONResponse({"games": [manager.snapshot(g.id) for g in manager.list_games()]})


async def get_game(request: Request) -> JSONResponse:
    manager = _manager(request)
    return JSONResponse(manager.snapshot(request.path_params["game_id"]))


async def get_game_by_code(request: Request) -> JSONResponse:
    manager = _manager(request)
    game = manager.get_game_by_code(request.path_params["code"])
    return JSONResponse(manager.snapshot(game.id))


async def delete_game(request: Request) -> Response:
    await _manager(request).delete_game(request.path_params["game_id"])
    return Response(status_code=HTTPStatus.NO_CONTENT)


def game_command(
    command: Callable[[GameSessionManager, str], Awaitable[Game]],
) -> Callable[[Request], Awaitable[JSONResponse]]:
    """Build a handler for a body-less lifecycle command (start, pause, ...)."""

    async def handler(request: Request) -> JSONResponse:
        manager = _manager(request)
        game = await command(manager, request.path_params["game_id"])
        return JSONResponse(manager.snapshot(game.id))

    return handler


start_game = game_command(GameSessionManager.start_game)
pause_game = game_command(GameSessionManager.pause_game)
resume_game = game_command(GameSessionManager.resume_game)
next_round = game_command(GameSessionManager.next_round)
end_game = game_command(GameSessionManager.end_game)
restart_game = game_command(GameSessionManager.restart_game)


async def game_stats(request: Request) -> JSONResponse:
    stats = _manager(request).game_stats(request.path_params["game_id"])
    return JSONResponse(_dump(stats))


async def event_history(request: Request) -> JSONResponse:
    events = _manager(request).event_history(request.path_params["game_id"])
    return JSONResponse({"events": [_dump(e) for e in events]})


async def clue_history(request: Request) -> JSONResponse:
    team_id = request.path_params.get("team_id")
    history = _manager(request).clue_history(request.path_params["game_id"], team_id)
    return JSONResponse({"clues": [_dump(c) for c in history]})


async def curse_targets(request: Request) -> JSONResponse:
    targets = _manager(request).available_curse_targets(request.path_params["game_id"])
    return JSONResponse({"teams": [{"id": t.id, "name": t.name} for t in targets]})


async def content(request: Request) -> JSONResponse:
    return JSONResponse(_dump(_manager(request).content))


# --- Teams ---


async def update_role(request: Request) -> JSONResponse:
    body = await _parse_body(request, UpdateRoleRequest)
    team = await _manager(request).update_role(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.role,
    )
    return JSONResponse(_dump(team))


async def update_tokens(request: Request) -> JSONResponse:
    body = await _parse_body(request, UpdateTokensRequest)
    team = await _manager(request).update_tokens(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.tokens,
    )
    return JSONResponse(_dump(team))


async def update_location(request: Request) -> JSONResponse:
    body = await _parse_body(request, UpdateLocationRequest)
    team = await _manager(request).update_location(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.latitude,
        body.longitude,
    )
    return JSONResponse(_dump(team))


async def mark_found(request: Request) -> JSONResponse:
    body = await _parse_body(request, MarkFoundRequest)
    team = await _manager(request).mark_found(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.found_by_team_id,
    )
    return JSONResponse(_dump(team))


async def draw_challenge(request: Request) -> JSONResponse:
    challenge = await _manager(request).draw_challenge(
        request.path_params["game_id"],
        request.path_params["team_id"],
    )
    return JSONResponse(_dump(challenge))


async def draw_card(request: Request) -> JSONResponse:
    card = await _manager(request).draw_card(
        request.path_params["game_id"],
        request.path_params["team_id"],
    )
    return JSONResponse(_dump(card))


async def complete_challenge(request: Request) -> JSONResponse:
    body = await _parse_body(request, CompleteChallengeRequest)
    team = await _manager(request).complete_challenge(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.tokens_earned,
    )
    return JSONResponse(_dump(team))


async def refuse_challenge(request: Request) -> JSONResponse:
    team = await _manager(request).refuse_challenge(
        request.path_params["game_id"],
        request.path_params["team_id"],
    )
    return JSONResponse(_dump(team))


async def curse_team(request: Request) -> JSONResponse:
    body = await _parse_body(request, CurseTeamRequest)
    curse = await _manager(request).curse_team(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.target_team_id,
    )
    return JSONResponse(_dump(curse), status_code=HTTPStatus.CREATED)


async def complete_curse(request: Request) -> JSONResponse:
    body = await _parse_body(request, CompleteCurseRequest)
    team = await _manager(request).mark_curse_completed(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.curse_id,
    )
    return JSONResponse(_dump(team))


async def purchase_clue(request: Request) -> JSONResponse:
    body = await _parse_body(request, PurchaseClueRequest)
    clue = await _manager(request).purchase_clue(
        request.path_params["game_id"],
        request.path_params["team_id"],
        body.clue_type_id,
    )
    return JSONResponse(_dump(clue), status_code=HTTPStatus.CREATED)
