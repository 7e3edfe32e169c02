"""Typed domain exceptions for game rule violations.

Every failure a command can report is a subclass of GameRuleError carrying a
FailureKind. Handlers raise before mutating any field, so a caught
GameRuleError always means the game is unchanged. The transport layer
converts these into structured error responses.
"""

from typing import ClassVar

from hideseek.logic.enums import FailureKind


class GameRuleError(Exception):
    """Base exception for rejected game commands."""

    kind: ClassVar[FailureKind]

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class NotFoundError(GameRuleError):
    """Unknown game, team, code, challenge, curse or clue type."""

    kind = FailureKind.NOT_FOUND


class GameNotFoundError(NotFoundError):
    def __init__(self, game_ref: str) -> None:
        self.game_ref = game_ref
        super().__init__(f"Game not found: {game_ref}")


class InvalidTransitionError(GameRuleError):
    """Status guard violation (wrong source state or missing roles)."""

    kind = FailureKind.INVALID_TRANSITION


class PreconditionFailedError(GameRuleError):
    """Role mismatch, insufficient tokens, veto window, conflicting challenge or curse."""

    kind = FailureKind.PRECONDITION_FAILED


class ExhaustedError(GameRuleError):
    """No eligible cards remain to draw."""

    kind = FailureKind.EXHAUSTED


class ClueGenerationError(GameRuleError):
    """The clue text collaborator failed; no tokens were spent."""

    kind = FailureKind.CLUE_GENERATION_FAILED


class InvalidInputError(GameRuleError):
    """Malformed command input that passed transport validation."""

    kind = FailureKind.INVALID_INPUT
