"""
Curse handlers.

A seeker spends tokens to place a random curse on a hider. A hider carries
at most one unexpired curse; expired entries are pruned whenever a team is
read or targeted, so no background sweep is needed.
"""

import random

from hideseek.logic.content import GameContent
from hideseek.logic.enums import TeamRole
from hideseek.logic.exceptions import ExhaustedError, NotFoundError, PreconditionFailedError
from hideseek.logic.models import ActiveCurse, AppliedCurse, Curse, Game, Team
from hideseek.logic.settings import MS_PER_MINUTE, GameRules
from hideseek.logic.teams import require_active, require_role


def curse_duration_ms(curse: Curse, rules: GameRules) -> int:
    if curse.duration_seconds is not None:
        return curse.duration_seconds * 1000
    return rules.default_curse_minutes * MS_PER_MINUTE


def has_live_curse(team: Team, now: int) -> bool:
    return any(not c.is_expired(now) for c in team.active_curses)


def available_curse_targets(game: Game, now: int) -> list[Team]:
    """Hiders that could be cursed right now. Read-only: expired curses are ignored, not pruned."""
    return [team for team in game.hiders if not has_live_curse(team, now)]


def curse_team(
    game: Game,
    seeker: Team,
    target: Team,
    content: GameContent,
    rules: GameRules,
    now: int,
    rng: random.Random,
) -> ActiveCurse:
    """Draw a random curse and place it on target, paid for by seeker."""
    require_active(game, "curse a team")
    require_role(seeker, TeamRole.SEEKER, "curse other teams")
    if not target.is_hider:
        msg = f"team {target.name} is not a hider and cannot be cursed"
        raise PreconditionFailedError(msg)

    target.prune_expired_curses(now)
    seeker.prune_expired_curses(now)
    if has_live_curse(target, now):
        msg = f"team {target.name} already has an active curse"
        raise PreconditionFailedError(msg)
    if not content.curses:
        msg = "no curses are available"
        raise ExhaustedError(msg)

    curse = rng.choice(content.curses)
    if seeker.tokens < curse.token_cost:
        msg = f"curse {curse.title} costs {curse.token_cost} tokens, team {seeker.name} has {seeker.tokens}"
        raise PreconditionFailedError(msg)

    end_time = now + curse_duration_ms(curse, rules)
    seeker.tokens -= curse.token_cost
    active = ActiveCurse(curse=curse, start_time=now, end_time=end_time)
    target.active_curses.append(active)
    seeker.applied_curses.append(
        AppliedCurse(
            curse=curse,
            target_team_id=target.id,
            target_team_name=target.name,
            start_time=now,
            end_time=end_time,
        ),
    )
    return active


def mark_curse_completed(team: Team, curse_id: str, now: int) -> ActiveCurse:
    require_role(team, TeamRole.HIDER, "complete curses")
    team.prune_expired_curses(now)
    for active in team.active_curses:
        if active.curse.id != curse_id:
            continue
        if active.completed:
            msg = f"curse {active.curse.title} is already completed"
            raise PreconditionFailedError(msg)
        active.completed = True
        active.completed_at = now
        return active
    msg = f"Curse not active on team {team.name}: {curse_id}"
    raise NotFoundError(msg)
