"""
Clue purchase handler.

A seeker with a known location buys a clue about every located hider within
the clue type's range. The clue text is produced before any tokens move, so
a generator failure costs the team nothing.
"""

import logging
import uuid
from typing import Protocol

from hideseek.logic.enums import TeamRole
from hideseek.logic.exceptions import ClueGenerationError, PreconditionFailedError
from hideseek.logic.geo import distance_meters
from hideseek.logic.models import ClueType, Game, Location, PurchasedClue, Team
from hideseek.logic.teams import require_active, require_role

logger = logging.getLogger(__name__)


class ClueTextGenerator(Protocol):
    def generate_clue_text(
        self,
        clue_type: ClueType,
        hiders: list[Team],
        seeker_location: Location,
    ) -> str: ...


def hiders_within_range(game: Game, origin: Location, range_meters: float | None) -> list[Team]:
    """Located hiders no farther than range_meters from origin (None means any distance)."""
    located = [t for t in game.hiders if t.location is not None]
    if range_meters is None:
        return located
    return [t for t in located if distance_meters(origin, t.location) <= range_meters]


def purchase_clue(
    game: Game,
    seeker: Team,
    clue_type: ClueType,
    generator: ClueTextGenerator,
    now: int,
) -> PurchasedClue:
    require_active(game, "buy a clue")
    require_role(seeker, TeamRole.SEEKER, "buy clues")
    if seeker.location is None:
        msg = f"team {seeker.name} has no known location"
        raise PreconditionFailedError(msg)
    if seeker.tokens < clue_type.cost:
        msg = f"clue {clue_type.name} costs {clue_type.cost} tokens, team {seeker.name} has {seeker.tokens}"
        raise PreconditionFailedError(msg)

    targets = hiders_within_range(game, seeker.location, clue_type.range_meters)
    if not targets:
        msg = "no hiders found within range; no tokens deducted"
        raise PreconditionFailedError(msg)

    try:
        text = generator.generate_clue_text(clue_type, targets, seeker.location)
    except Exception as e:
        logger.warning("clue generation failed for clue type %s: %s", clue_type.id, e)
        msg = f"could not generate a {clue_type.name} clue"
        raise ClueGenerationError(msg) from e
    if not text:
        msg = f"could not generate a {clue_type.name} clue"
        raise ClueGenerationError(msg)

    seeker.tokens -= clue_type.cost
    return PurchasedClue(
        id=str(uuid.uuid4()),
        team_id=seeker.id,
        clue_type_id=clue_type.id,
        clue_type_name=clue_type.name,
        text=text,
        cost=clue_type.cost,
        timestamp=now,
        target_team_ids=[t.id for t in targets],
    )
