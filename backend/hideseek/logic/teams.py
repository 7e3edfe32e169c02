"""
Team-level guards and admin mutations (role, tokens, location).
"""

from hideseek.logic.enums import GameStatus, TeamRole
from hideseek.logic.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    PreconditionFailedError,
)
from hideseek.logic.models import Game, Location, Team
from hideseek.logic.timing import fold_hider_session, start_hider_session


def require_active(game: Game, action: str) -> None:
    if game.status != GameStatus.ACTIVE:
        msg = f"cannot {action} while the game is {game.status.value}"
        raise InvalidTransitionError(msg)


def require_role(team: Team, role: TeamRole, action: str) -> None:
    if team.role != role:
        msg = f"only {role.value}s can {action}; team {team.name} is a {team.role.value}"
        raise PreconditionFailedError(msg)


def update_role(game: Game, team: Team, role: TeamRole, now: int) -> bool:
    """Change a team's role, keeping hider-time accounting consistent.

    Returns False when the team already had the requested role.
    """
    if team.role == role:
        return False
    fold_hider_session(team, now)
    team.role = role
    if role == TeamRole.HIDER and game.status == GameStatus.ACTIVE:
        start_hider_session(team, now)
    return True


def update_tokens(team: Team, tokens: int) -> int:
    """Admin override of a team's balance; may set a negative value."""
    previous = team.tokens
    team.tokens = tokens
    return previous


def update_location(team: Team, latitude: float, longitude: float, now: int) -> Location:
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        msg = f"coordinates out of range: {latitude}, {longitude}"
        raise InvalidInputError(msg)
    location = Location(latitude=latitude, longitude=longitude, timestamp=now)
    team.location = location
    return location
