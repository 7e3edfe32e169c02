"""Read-side views of a game: broadcast snapshots, leaderboards and status counts."""

from collections import Counter
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from hideseek.logic.enums import GameStatus
from hideseek.logic.models import Game, WireModel
from hideseek.logic.settings import MS_PER_MINUTE
from hideseek.logic.timing import compute_game_duration, compute_round_duration, live_hider_time


def build_snapshot(game: Game, now: int) -> dict[str, Any]:
    """Full camelCase game state with the derived durations filled in."""
    data = game.model_dump(mode="json", by_alias=True)
    data["gameDuration"] = compute_game_duration(game, now)
    data["roundDuration"] = compute_round_duration(game, now)
    return data


class TeamStanding(WireModel):
    team_id: str
    team_name: str
    role: str
    tokens: int
    hider_time: int
    challenges_completed: int


class GameStats(WireModel):
    game_id: str
    code: str
    status: GameStatus
    round: int
    game_duration: int
    round_duration: int
    round_remaining: int | None
    standings: list[TeamStanding]


def game_stats(game: Game, now: int) -> GameStats:
    """Durations and a leaderboard ordered by hider time, longest first."""
    round_duration = compute_round_duration(game, now)
    remaining = None
    if game.round_length_minutes is not None:
        remaining = max(0, game.round_length_minutes * MS_PER_MINUTE - round_duration)

    standings = [
        TeamStanding(
            team_id=team.id,
            team_name=team.name,
            role=team.role.value,
            tokens=team.tokens,
            hider_time=live_hider_time(team, now),
            challenges_completed=len(team.completed_challenge_ids),
        )
        for team in game.teams
    ]
    standings.sort(key=lambda s: s.hider_time, reverse=True)
    return GameStats(
        game_id=game.id,
        code=game.code,
        status=game.status,
        round=game.round,
        game_duration=compute_game_duration(game, now),
        round_duration=round_duration,
        round_remaining=remaining,
        standings=standings,
    )


class RegistryStats(BaseModel):
    total: int
    by_status: dict[str, int]
    total_teams: int


def registry_stats(games: Iterable[Game]) -> RegistryStats:
    counts: Counter[str] = Counter({status.value: 0 for status in GameStatus})
    total = 0
    teams = 0
    for game in games:
        total += 1
        teams += len(game.teams)
        counts[game.status.value] += 1
    return RegistryStats(total=total, by_status=dict(counts), total_teams=teams)
