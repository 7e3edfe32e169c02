"""Game server configuration via environment variables."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource

from hideseek.logic.settings import GameRules

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo
    from pydantic_settings.sources.base import PydanticBaseSettingsSource

_STRING_LIST_FIELDS = {"cors_origins"}


def parse_string_list(value: str | list[str]) -> list[str]:
    """Parse a list given either as a JSON array string or comma separated."""
    if isinstance(value, list):
        return value

    stripped = value.strip()
    if not stripped:
        raise ValueError("String list value must not be empty")

    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            raise ValueError("JSON value must be an array of strings")
        return parsed

    return [item.strip() for item in stripped.split(",") if item.strip()]


class StringListEnvSettingsSource(EnvSettingsSource):
    """Hand list fields to their validator as raw strings.

    pydantic-settings would otherwise insist on JSON for list-typed env vars,
    rejecting the comma-separated form.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "HIDESEEK_"}

    app_version: str = "dev"
    max_capacity: int = Field(default=500, ge=1)
    cors_origins: list[str] = ["http://localhost:8081"]
    log_dir: str | None = Field(default=None, min_length=1)
    log_format: Literal["console", "json"] = "console"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    enforcer_interval_seconds: float = Field(default=5.0, gt=0)
    reaper_interval_seconds: float = Field(default=3600.0, gt=0)
    idle_ttl_seconds: int = Field(default=12 * 3600, ge=0)  # 0 disables idle cleanup
    broadcast_timeout_seconds: float = Field(default=2.0, gt=0)

    content_path: Path | None = None  # None: packaged content.yaml
    push_webhook_url: str | None = None

    starting_tokens: int = Field(default=10, ge=0)
    veto_minutes: int = Field(default=5, ge=0)
    refusal_curse_minutes: int = Field(default=5, ge=1)
    default_curse_minutes: int = Field(default=5, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @field_validator("log_format", "log_level", mode="before")
    @classmethod
    def normalize_case(cls, v: object) -> object:
        if not isinstance(v, str):
            return v
        return v.lower() if v.lower() in {"console", "json"} else v.upper()

    def to_rules(self) -> GameRules:
        return GameRules(
            starting_tokens=self.starting_tokens,
            veto_minutes=self.veto_minutes,
            refusal_curse_minutes=self.refusal_curse_minutes,
            default_curse_minutes=self.default_curse_minutes,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
