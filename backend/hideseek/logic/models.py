"""
Game state models for hide-and-seek sessions.

Models are mutable: a Game is owned by whichever command holds its lock and is
modified in place. Field names are snake_case in Python and camelCase on the
wire (``model_dump(by_alias=True)``), which is what connected clients expect.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hideseek.logic.enums import CardType, ClueKind, GameStatus, TeamRole
from hideseek.logic.exceptions import NotFoundError


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(WireModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp: int


class Curse(WireModel):
    id: str
    title: str
    description: str = ""
    token_cost: int = Field(default=0, ge=0)
    duration_seconds: int | None = Field(default=None, ge=1)
    penalty: int | None = None


class Challenge(WireModel):
    id: str
    title: str
    description: str = ""
    token_reward: int | None = None  # None: reward is decided when the challenge is completed
    curse: Curse | None = None  # applied to the team that refuses the challenge


class ClueType(WireModel):
    id: str
    name: str
    description: str = ""
    kind: ClueKind
    cost: int = Field(ge=0)
    range_meters: float | None = Field(default=None, gt=0)


class ActiveChallenge(WireModel):
    challenge: Challenge
    start_time: int


class ActiveCurse(WireModel):
    curse: Curse
    start_time: int
    end_time: int
    completed: bool = False
    completed_at: int | None = None

    def is_expired(self, now: int) -> bool:
        return self.end_time <= now


class AppliedCurse(WireModel):
    """Seeker-side record of a curse placed on another team."""

    curse: Curse
    target_team_id: str
    target_team_name: str
    start_time: int
    end_time: int

    def is_expired(self, now: int) -> bool:
        return self.end_time <= now


class DrawnCard(WireModel):
    """Result of a draw from the mixed deck: exactly one of challenge or curse is set."""

    type: CardType
    challenge: Challenge | None = None
    curse: Curse | None = None
    remaining_challenges: int


class PurchasedClue(WireModel):
    id: str
    team_id: str
    clue_type_id: str
    clue_type_name: str
    text: str
    cost: int
    timestamp: int
    target_team_ids: list[str] = Field(default_factory=list)


class Team(WireModel):
    id: str = Field(frozen=True)
    name: str = Field(frozen=True)
    role: TeamRole
    tokens: int
    location: Location | None = None
    completed_challenge_ids: set[str] = Field(default_factory=set)
    completed_curse_ids: set[str] = Field(default_factory=set)  # curse cards drawn since the deck last reset
    active_challenge: ActiveChallenge | None = None
    active_curses: list[ActiveCurse] = Field(default_factory=list)
    applied_curses: list[AppliedCurse] = Field(default_factory=list)
    veto_end_time: int | None = None
    hider_start_time: int | None = None
    total_hider_time: int = 0

    @property
    def is_hider(self) -> bool:
        return self.role == TeamRole.HIDER

    @property
    def is_seeker(self) -> bool:
        return self.role == TeamRole.SEEKER

    def prune_expired_curses(self, now: int) -> None:
        """Drop active and applied curses whose end time has passed."""
        self.active_curses = [c for c in self.active_curses if not c.is_expired(now)]
        self.applied_curses = [c for c in self.applied_curses if not c.is_expired(now)]

    def in_veto_window(self, now: int) -> bool:
        return self.veto_end_time is not None and now < self.veto_end_time


class TeamSpec(WireModel):
    """Team requested at game creation. Role defaults by position when omitted."""

    name: str = Field(min_length=1, max_length=50)
    role: TeamRole | None = None


class Game(WireModel):
    id: str = Field(frozen=True)
    code: str = Field(frozen=True)
    status: GameStatus = GameStatus.WAITING
    round: int = Field(default=1, ge=1)
    round_length_minutes: int | None = None
    start_time: int | None = None  # start of the current round
    game_start_time: int | None = None
    round_start_time: int | None = None
    pause_time: int | None = None
    total_paused_duration: int = 0
    paused_duration_at_round_start: int = 0
    end_time: int | None = None
    paused_by_time_limit: bool = False
    created_at: int
    last_activity_time: int
    teams: list[Team] = Field(default_factory=list)

    def find_team(self, team_id: str) -> Team:
        for team in self.teams:
            if team.id == team_id:
                return team
        raise NotFoundError(f"Team not found: {team_id}")

    def teams_with_role(self, role: TeamRole) -> list[Team]:
        return [t for t in self.teams if t.role == role]

    @property
    def hiders(self) -> list[Team]:
        return self.teams_with_role(TeamRole.HIDER)

    @property
    def seekers(self) -> list[Team]:
        return self.teams_with_role(TeamRole.SEEKER)

    @property
    def has_both_roles(self) -> bool:
        return bool(self.hiders) and bool(self.seekers)
