"""Request bodies for the HTTP command routes."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hideseek.logic.enums import TeamRole
from hideseek.logic.models import TeamSpec
from hideseek.logic.settings import MAX_ROUND_LENGTH_MINUTES


class RequestModel(BaseModel):
    """Accept camelCase (mobile clients) and snake_case field names; reject unknown fields."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class CreateGameRequest(RequestModel):
    teams: list[TeamSpec] = Field(min_length=1, max_length=20)
    round_length_minutes: int | None = Field(default=None, ge=1, le=MAX_ROUND_LENGTH_MINUTES)


class UpdateRoleRequest(RequestModel):
    role: TeamRole


class UpdateTokensRequest(RequestModel):
    tokens: int = Field(strict=True)


class UpdateLocationRequest(RequestModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class CompleteChallengeRequest(RequestModel):
    tokens_earned: int | None = Field(default=None, ge=0)


class CurseTeamRequest(RequestModel):
    target_team_id: str = Field(min_length=1, max_length=64)


class CompleteCurseRequest(RequestModel):
    curse_id: str = Field(min_length=1, max_length=64)


class MarkFoundRequest(RequestModel):
    found_by_team_id: str | None = Field(default=None, min_length=1, max_length=64)


class PurchaseClueRequest(RequestModel):
    clue_type_id: str = Field(min_length=1, max_length=64)
