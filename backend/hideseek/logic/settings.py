"""Centralized gameplay rules for hide-and-seek sessions."""

from pydantic import BaseModel, ConfigDict, Field

MS_PER_MINUTE = 60_000
MAX_ROUND_LENGTH_MINUTES = 999
GAME_CODE_LENGTH = 6


class GameRules(BaseModel):
    """
    Configurable gameplay rules.

    Defaults match the values the mobile clients were designed around.
    """

    model_config = ConfigDict(frozen=True)

    starting_tokens: int = Field(default=10, ge=0)
    veto_minutes: int = Field(default=5, ge=0)  # cooldown after refusing a challenge
    refusal_curse_minutes: int = Field(default=5, ge=1)
    default_curse_minutes: int = Field(default=5, ge=1)  # curses whose content has no duration

    @property
    def veto_ms(self) -> int:
        return self.veto_minutes * MS_PER_MINUTE

    @property
    def refusal_curse_ms(self) -> int:
        return self.refusal_curse_minutes * MS_PER_MINUTE
