"""
String enum definitions for hide-and-seek game concepts.
"""

from enum import StrEnum


class GameStatus(StrEnum):
    """Lifecycle status of a game session."""

    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class TeamRole(StrEnum):
    SEEKER = "seeker"
    HIDER = "hider"


class Transition(StrEnum):
    """Status transitions driven by the round lifecycle."""

    START = "start"
    PAUSE = "pause"
    AUTO_PAUSE = "auto_pause"
    RESUME = "resume"
    NEXT_ROUND = "next_round"
    END = "end"
    RESTART = "restart"


class FailureKind(StrEnum):
    """Machine-readable failure kinds returned at the command boundary."""

    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    PRECONDITION_FAILED = "precondition_failed"
    EXHAUSTED = "exhausted"
    CLUE_GENERATION_FAILED = "clue_generation_failed"
    INVALID_INPUT = "invalid_input"


class GameEventType(StrEnum):
    """Event types recorded in the per-game event history."""

    GAME_CREATED = "game_created"
    GAME_STARTED = "game_started"
    GAME_PAUSED = "game_paused"
    GAME_AUTO_PAUSED = "game_auto_paused"
    GAME_RESUMED = "game_resumed"
    ROUND_STARTED = "round_started"
    GAME_ENDED = "game_ended"
    GAME_RESTARTED = "game_restarted"
    ROLE_CHANGED = "role_changed"
    TOKENS_UPDATED = "tokens_updated"
    CHALLENGE_DRAWN = "challenge_drawn"
    CURSE_CARD_DRAWN = "curse_card_drawn"
    CHALLENGE_COMPLETED = "challenge_completed"
    CHALLENGE_REFUSED = "challenge_refused"
    CURSE_APPLIED = "curse_applied"
    CURSE_COMPLETED = "curse_completed"
    TEAM_FOUND = "team_found"
    CLUE_PURCHASED = "clue_purchased"


class CardType(StrEnum):
    """Face of a card drawn from the mixed challenge and curse deck."""

    CHALLENGE = "challenge"
    CURSE = "curse"


class ClueKind(StrEnum):
    """How clue text is rendered for a clue type."""

    DISTANCE = "distance"
    DIRECTION = "direction"
    EXACT_LOCATION = "exact_location"
