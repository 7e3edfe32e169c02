"""Challenge, curse and clue-type catalogs loaded from YAML."""

import logging
from pathlib import Path
from typing import Self

import yaml
from pydantic import Field, model_validator

from hideseek.logic.exceptions import NotFoundError
from hideseek.logic.models import Challenge, ClueType, Curse, WireModel

logger = logging.getLogger(__name__)


def default_content_path() -> Path:
    """Return the packaged content file."""
    return Path(__file__).parent.parent / "data" / "content.yaml"


class GameContent(WireModel):
    challenges: list[Challenge] = Field(default_factory=list)
    curses: list[Curse] = Field(default_factory=list)
    clue_types: list[ClueType] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> Self:
        for label, items in (
            ("challenge", self.challenges),
            ("curse", self.curses),
            ("clue type", self.clue_types),
        ):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"duplicate {label} id: {item.id}")
                seen.add(item.id)
        return self

    def get_challenge(self, challenge_id: str) -> Challenge:
        for challenge in self.challenges:
            if challenge.id == challenge_id:
                return challenge
        raise NotFoundError(f"Challenge not found: {challenge_id}")

    def get_curse(self, curse_id: str) -> Curse:
        for curse in self.curses:
            if curse.id == curse_id:
                return curse
        raise NotFoundError(f"Curse not found: {curse_id}")

    def get_clue_type(self, clue_type_id: str) -> ClueType:
        for clue_type in self.clue_types:
            if clue_type.id == clue_type_id:
                return clue_type
        raise NotFoundError(f"Clue type not found: {clue_type_id}")


def _warn_missing_durations(content: GameContent) -> None:
    curses = list(content.curses)
    curses.extend(c.curse for c in content.challenges if c.curse is not None)
    for curse in curses:
        if curse.duration_seconds is None:
            logger.warning(
                "curse %s (%s) has no duration_seconds, the default curse duration applies",
                curse.id,
                curse.title,
            )


def load_content(path: Path | None = None) -> GameContent:
    """Load and validate the content catalog.

    Raises FileNotFoundError when the file is missing and pydantic's
    ValidationError when an entry is malformed.
    """
    content_path = path or default_content_path()
    with content_path.open() as f:
        data = yaml.safe_load(f) or {}

    content = GameContent.model_validate(data)
    _warn_missing_durations(content)
    logger.info(
        "loaded content from %s: %d challenges, %d curses, %d clue types",
        content_path,
        len(content.challenges),
        len(content.curses),
        len(content.clue_types),
    )
    return content
