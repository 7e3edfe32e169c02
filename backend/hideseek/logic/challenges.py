"""
Challenge card handlers: draw, complete and refuse.

Only seekers work through challenges. Refusing one opens a veto window
during which the team cannot draw, and applies the challenge's penalty curse
to the refusing team when it has one.

Two draws exist. draw_challenge picks from the challenges the team has not
completed. draw_card uses the mixed deck: a coin flip between a challenge
and a curse card, and always a curse card once the challenges run out.
Curse cards do not repeat for a team until every curse has been drawn.
"""

import random

from hideseek.logic.content import GameContent
from hideseek.logic.enums import CardType, TeamRole
from hideseek.logic.exceptions import ExhaustedError, InvalidInputError, PreconditionFailedError
from hideseek.logic.models import ActiveChallenge, ActiveCurse, Challenge, Curse, DrawnCard, Game, Team
from hideseek.logic.settings import MS_PER_MINUTE, GameRules
from hideseek.logic.teams import require_active, require_role


def _remaining_veto_minutes(team: Team, now: int) -> int:
    remaining = (team.veto_end_time or now) - now
    return remaining // MS_PER_MINUTE + 1


def _check_can_draw(game: Game, team: Team, now: int) -> None:
    require_active(game, "draw a challenge")
    require_role(team, TeamRole.SEEKER, "draw challenges")
    if team.active_challenge is not None:
        msg = f"team {team.name} already has an active challenge: {team.active_challenge.challenge.title}"
        raise PreconditionFailedError(msg)
    if team.in_veto_window(now):
        msg = f"team {team.name} must wait {_remaining_veto_minutes(team, now)} more minutes before drawing"
        raise PreconditionFailedError(msg)


def _open_challenges(team: Team, content: GameContent) -> list[Challenge]:
    return [c for c in content.challenges if c.id not in team.completed_challenge_ids]


def _assign(team: Team, challenge: Challenge, now: int) -> None:
    team.veto_end_time = None
    team.active_challenge = ActiveChallenge(challenge=challenge, start_time=now)


def draw_challenge(
    game: Game,
    team: Team,
    content: GameContent,
    now: int,
    rng: random.Random,
) -> Challenge:
    _check_can_draw(game, team, now)
    eligible = _open_challenges(team, content)
    if not eligible:
        msg = f"team {team.name} has completed every challenge"
        raise ExhaustedError(msg)

    challenge = rng.choice(eligible)
    _assign(team, challenge, now)
    return challenge


def _draw_curse_card(team: Team, content: GameContent, rng: random.Random) -> Curse:
    unseen = [c for c in content.curses if c.id not in team.completed_curse_ids]
    if not unseen:
        team.completed_curse_ids = set()
        unseen = list(content.curses)
    curse = rng.choice(unseen)
    team.completed_curse_ids.add(curse.id)
    return curse


def draw_card(
    game: Game,
    team: Team,
    content: GameContent,
    now: int,
    rng: random.Random,
) -> DrawnCard:
    """Draw from the mixed deck.

    A challenge card becomes the team's active challenge. A curse card is
    handed to the seekers to play and changes nothing but the team's record
    of curse cards seen.
    """
    _check_can_draw(game, team, now)
    eligible = _open_challenges(team, content)
    if not eligible and not content.curses:
        msg = f"team {team.name} has no cards left to draw"
        raise ExhaustedError(msg)

    if eligible and (not content.curses or rng.random() < 0.5):
        challenge = rng.choice(eligible)
        _assign(team, challenge, now)
        return DrawnCard(type=CardType.CHALLENGE, challenge=challenge, remaining_challenges=len(eligible) - 1)

    team.veto_end_time = None
    curse = _draw_curse_card(team, content, rng)
    return DrawnCard(type=CardType.CURSE, curse=curse, remaining_challenges=len(eligible))


def complete_challenge(game: Game, team: Team, tokens_earned: int | None = None) -> int:
    """Finish the team's active challenge and pay out its reward.

    Challenges with a dynamic reward (token_reward is None) take the amount
    from tokens_earned. Returns the tokens added.
    """
    require_active(game, "complete a challenge")
    require_role(team, TeamRole.SEEKER, "complete challenges")
    active = team.active_challenge
    if active is None:
        msg = f"team {team.name} has no active challenge"
        raise PreconditionFailedError(msg)

    reward = active.challenge.token_reward
    if reward is None:
        if tokens_earned is None:
            msg = f"challenge {active.challenge.title} needs the number of tokens earned"
            raise PreconditionFailedError(msg)
        if tokens_earned < 0:
            msg = "tokens earned cannot be negative"
            raise InvalidInputError(msg)
        reward = tokens_earned

    team.tokens += reward
    team.completed_challenge_ids.add(active.challenge.id)
    team.active_challenge = None
    return reward


def refuse_challenge(game: Game, team: Team, rules: GameRules, now: int) -> ActiveCurse | None:
    """Refuse the active challenge. Returns the penalty curse, if one was applied."""
    require_active(game, "refuse a challenge")
    require_role(team, TeamRole.SEEKER, "refuse challenges")
    active = team.active_challenge
    if active is None:
        msg = f"team {team.name} has no active challenge"
        raise PreconditionFailedError(msg)

    penalty = None
    if active.challenge.curse is not None:
        team.prune_expired_curses(now)
        penalty = ActiveCurse(
            curse=active.challenge.curse,
            start_time=now,
            end_time=now + rules.refusal_curse_ms,
        )
        team.active_curses.append(penalty)

    team.veto_end_time = now + rules.veto_ms
    team.active_challenge = None
    return penalty
