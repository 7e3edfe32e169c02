from __future__ import annotations

import random
from typing import TYPE_CHECKING

import pytest

from hideseek.logic.content import GameContent
from hideseek.logic.enums import ClueKind, GameStatus, TeamRole
from hideseek.logic.models import Challenge, ClueType, Curse, Game, Location, Team
from hideseek.logic.settings import GameRules
from hideseek.session.broadcast import BroadcastHub
from hideseek.session.events import GameEventLog
from hideseek.session.manager import GameSessionManager
from hideseek.tests.mocks import DEFAULT_NOW, FakeClock, RecordingPushNotifier, StubClueGenerator

if TYPE_CHECKING:
    from collections.abc import Sequence


# ============================================================================
# Test State Builder Helpers
# ============================================================================

# Points due north of ORIGIN (one degree of latitude is ~111.2km)
ORIGIN = (52.5200, 13.4050)
NORTH_250M = (52.52225, 13.4050)
NORTH_1KM = (52.5290, 13.4050)
NORTH_3KM = (52.5470, 13.4050)
EAST_1KM = (52.5200, 13.4198)
MUNICH = (48.1374, 11.5755)


def make_location(point: tuple[float, float], timestamp: int = DEFAULT_NOW) -> Location:
    return Location(latitude=point[0], longitude=point[1], timestamp=timestamp)


def make_team(
    name: str,
    role: TeamRole = TeamRole.HIDER,
    *,
    team_id: str | None = None,
    tokens: int = 10,
    location: tuple[float, float] | None = None,
) -> Team:
    """Create a Team with sensible defaults for testing."""
    return Team(
        id=team_id or name.lower(),
        name=name,
        role=role,
        tokens=tokens,
        location=make_location(location) if location is not None else None,
    )


def make_game(
    teams: Sequence[Team] | None = None,
    *,
    status: GameStatus = GameStatus.WAITING,
    round_length_minutes: int | None = None,
    now: int = DEFAULT_NOW,
) -> Game:
    """Create a waiting Game. Defaults to one seeker (Red) and one hider (Blue)."""
    if teams is None:
        teams = [make_team("Red", TeamRole.SEEKER), make_team("Blue", TeamRole.HIDER)]
    return Game(
        id="game-1",
        code="ABCDEF",
        status=status,
        round_length_minutes=round_length_minutes,
        created_at=now,
        last_activity_time=now,
        teams=list(teams),
    )


def make_content() -> GameContent:
    """Small deterministic catalog: one curse, three challenges, three clue types."""
    return GameContent(
        challenges=[
            Challenge(id="pose", title="Strike a Pose", token_reward=2),
            Challenge(
                id="high-five",
                title="High Five Chain",
                token_reward=3,
                curse=Curse(id="slow-walk", title="Slow Walk", duration_seconds=300),
            ),
            Challenge(id="dice", title="Lucky Dice", token_reward=None),
        ],
        curses=[Curse(id="hop", title="Hop Along", token_cost=3, duration_seconds=120)],
        clue_types=[
            ClueType(id="distance", name="Distance", kind=ClueKind.DISTANCE, cost=2, range_meters=2000),
            ClueType(id="exact", name="Exact Location", kind=ClueKind.EXACT_LOCATION, cost=8, range_meters=500),
            ClueType(id="far", name="Long Range Distance", kind=ClueKind.DISTANCE, cost=5),
        ],
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rules():
    return GameRules()


@pytest.fixture
def content():
    return make_content()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clue_generator():
    return StubClueGenerator()


@pytest.fixture
def push_notifier():
    return RecordingPushNotifier()


@pytest.fixture
def manager(clock, rules, content, clue_generator, push_notifier):
    return GameSessionManager(
        clock=clock,
        rules=rules,
        content=content,
        hub=BroadcastHub(send_timeout=0.1),
        clue_generator=clue_generator,
        push_notifier=push_notifier,
        event_log=GameEventLog(clock),
        rng=random.Random(1234),
    )
