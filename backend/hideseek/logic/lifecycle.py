"""
Round lifecycle state machine.

Every status change goes through one of the transition functions below. Each
checks its source status against TRANSITIONS and its guards before touching
any field, so a rejected transition leaves the game exactly as it was.
"""

from hideseek.logic.enums import GameStatus, TeamRole, Transition
from hideseek.logic.exceptions import InvalidTransitionError, PreconditionFailedError
from hideseek.logic.models import Game, Team
from hideseek.logic.settings import MS_PER_MINUTE, GameRules
from hideseek.logic.timing import (
    close_pending_pause,
    compute_round_duration,
    enter_pause,
    exit_pause,
    fold_all_hider_sessions,
    fold_hider_session,
    start_all_hider_sessions,
)

# transition -> (allowed source statuses, target status)
TRANSITIONS: dict[Transition, tuple[frozenset[GameStatus], GameStatus]] = {
    Transition.START: (frozenset({GameStatus.WAITING}), GameStatus.ACTIVE),
    Transition.PAUSE: (frozenset({GameStatus.ACTIVE}), GameStatus.PAUSED),
    Transition.AUTO_PAUSE: (frozenset({GameStatus.ACTIVE}), GameStatus.PAUSED),
    Transition.RESUME: (frozenset({GameStatus.PAUSED}), GameStatus.ACTIVE),
    Transition.NEXT_ROUND: (frozenset({GameStatus.PAUSED}), GameStatus.ACTIVE),
    Transition.END: (frozenset({GameStatus.ACTIVE, GameStatus.PAUSED}), GameStatus.ENDED),
    Transition.RESTART: (frozenset({GameStatus.ENDED}), GameStatus.WAITING),
}


def can_transition(game: Game, transition: Transition) -> bool:
    sources, _ = TRANSITIONS[transition]
    return game.status in sources


def _check_source(game: Game, transition: Transition) -> GameStatus:
    """Return the target status, raising if the game is in the wrong state."""
    sources, target = TRANSITIONS[transition]
    if game.status not in sources:
        allowed = ", ".join(sorted(s.value for s in sources))
        msg = f"cannot {transition.value} a game that is {game.status.value} (requires {allowed})"
        raise InvalidTransitionError(msg)
    return target


def _require_both_roles(game: Game, transition: Transition) -> None:
    if not game.seekers or not game.hiders:
        msg = f"cannot {transition.value}: at least one seeker and one hider are required"
        raise InvalidTransitionError(msg)


def start(game: Game, now: int) -> None:
    target = _check_source(game, Transition.START)
    _require_both_roles(game, Transition.START)

    game.status = target
    game.start_time = now
    game.round_start_time = now
    game.game_start_time = now
    game.pause_time = None
    game.end_time = None
    game.paused_by_time_limit = False
    game.paused_duration_at_round_start = game.total_paused_duration
    for team in game.hiders:
        team.total_hider_time = max(team.total_hider_time, 0)
    start_all_hider_sessions(game, now)


def pause(game: Game, now: int) -> None:
    target = _check_source(game, Transition.PAUSE)
    game.status = target
    game.paused_by_time_limit = False
    enter_pause(game, now)


def auto_pause(game: Game, now: int) -> None:
    """Pause a game whose round time limit has run out."""
    target = _check_source(game, Transition.AUTO_PAUSE)
    if not is_round_expired(game, now):
        msg = "round time limit has not been reached"
        raise InvalidTransitionError(msg)
    game.status = target
    game.paused_by_time_limit = True
    enter_pause(game, now)


def resume(game: Game, now: int) -> None:
    target = _check_source(game, Transition.RESUME)
    if game.paused_by_time_limit:
        msg = "round time limit reached; start the next round instead"
        raise InvalidTransitionError(msg)
    if not game.hiders:
        msg = "no hiders remain; start the next round instead"
        raise InvalidTransitionError(msg)
    game.status = target
    exit_pause(game, now)


def next_round(game: Game, now: int) -> None:
    target = _check_source(game, Transition.NEXT_ROUND)
    _require_both_roles(game, Transition.NEXT_ROUND)

    close_pending_pause(game, now)
    game.status = target
    game.round += 1
    game.paused_by_time_limit = False
    game.start_time = now
    game.round_start_time = now
    game.paused_duration_at_round_start = game.total_paused_duration
    start_all_hider_sessions(game, now)


def end(game: Game, now: int) -> None:
    target = _check_source(game, Transition.END)
    close_pending_pause(game, now)
    fold_all_hider_sessions(game, now)
    game.status = target
    game.end_time = now


def restart(game: Game, rules: GameRules) -> None:
    """Return an ended game to the lobby with fresh per-round state.

    Team ids, names and roles survive; everything else is reset.
    """
    target = _check_source(game, Transition.RESTART)
    game.status = target
    game.round = 1
    game.start_time = None
    game.game_start_time = None
    game.round_start_time = None
    game.pause_time = None
    game.total_paused_duration = 0
    game.paused_duration_at_round_start = 0
    game.end_time = None
    game.paused_by_time_limit = False
    for team in game.teams:
        team.tokens = rules.starting_tokens
        team.location = None
        team.completed_challenge_ids = set()
        team.completed_curse_ids = set()
        team.active_challenge = None
        team.active_curses = []
        team.applied_curses = []
        team.veto_end_time = None
        team.hider_start_time = None
        team.total_hider_time = 0


def mark_found(game: Game, team: Team, now: int) -> bool:
    """Flip a found hider to seeker.

    Returns True when this was the last hider and the game was paused to
    force a round change.
    """
    if game.status != GameStatus.ACTIVE:
        msg = f"cannot mark a team found while the game is {game.status.value}"
        raise InvalidTransitionError(msg)
    if not team.is_hider:
        msg = f"team {team.name} is not a hider"
        raise PreconditionFailedError(msg)

    fold_hider_session(team, now)
    team.role = TeamRole.SEEKER
    if game.hiders:
        return False

    game.status = GameStatus.PAUSED
    game.paused_by_time_limit = False
    enter_pause(game, now)
    return True


def is_round_expired(game: Game, now: int) -> bool:
    if game.status != GameStatus.ACTIVE or game.round_length_minutes is None:
        return False
    return compute_round_duration(game, now) >= game.round_length_minutes * MS_PER_MINUTE
