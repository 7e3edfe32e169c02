"""
Time accounting for games and teams.

Pure functions over Game and Team models: no I/O, no registry access, and
"now" is always passed in by the caller. All values are epoch milliseconds.

Hider time accrues only while a team is a hider and the game is active. A
session is opened with start_hider_session and closed (folded into
total_hider_time) on every transition away from that state.
"""

from hideseek.logic.exceptions import PreconditionFailedError
from hideseek.logic.models import Game, Team


def fold_hider_session(team: Team, now: int) -> None:
    """Close the team's open hider session, adding its length to the total.

    A no-op when no session is open, so folding twice is safe.
    """
    if team.hider_start_time is None:
        return
    team.total_hider_time += max(0, now - team.hider_start_time)
    team.hider_start_time = None


def start_hider_session(team: Team, now: int) -> None:
    if not team.is_hider:
        msg = f"team {team.name} is not a hider"
        raise PreconditionFailedError(msg)
    team.hider_start_time = now


def start_all_hider_sessions(game: Game, now: int) -> None:
    for team in game.hiders:
        start_hider_session(team, now)


def fold_all_hider_sessions(game: Game, now: int) -> None:
    for team in game.teams:
        fold_hider_session(team, now)


def live_hider_time(team: Team, now: int) -> int:
    """Total hider time including the currently open session, if any."""
    if team.hider_start_time is None:
        return team.total_hider_time
    return team.total_hider_time + max(0, now - team.hider_start_time)


def pending_pause(game: Game, now: int) -> int:
    """Length of the in-progress pause, zero when the game is not paused."""
    if game.pause_time is None:
        return 0
    end = game.end_time if game.end_time is not None else now
    return max(0, end - game.pause_time)


def _reference_time(game: Game, now: int) -> int:
    return game.end_time if game.end_time is not None else now


def compute_game_duration(game: Game, now: int) -> int:
    """Active play time since the game first started, excluding pauses."""
    if game.game_start_time is None:
        return 0
    elapsed = _reference_time(game, now) - game.game_start_time
    paused = game.total_paused_duration + pending_pause(game, now)
    return max(0, elapsed - paused)


def compute_round_duration(game: Game, now: int) -> int:
    """Active play time in the current round.

    Only pause time accrued since the round started counts against it, which
    is what paused_duration_at_round_start tracks.
    """
    if game.round_start_time is None:
        return 0
    elapsed = _reference_time(game, now) - game.round_start_time
    paused = game.total_paused_duration - game.paused_duration_at_round_start + pending_pause(game, now)
    return max(0, elapsed - paused)


def enter_pause(game: Game, now: int) -> None:
    game.pause_time = now
    fold_all_hider_sessions(game, now)


def close_pending_pause(game: Game, now: int) -> None:
    """Add the in-progress pause to total_paused_duration and clear pause_time."""
    if game.pause_time is None:
        return
    game.total_paused_duration += max(0, now - game.pause_time)
    game.pause_time = None


def exit_pause(game: Game, now: int) -> None:
    close_pending_pause(game, now)
    start_all_hider_sessions(game, now)
