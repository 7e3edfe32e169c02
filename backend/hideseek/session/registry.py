"""
In-memory registry of live games.

Games are keyed by id and by their shareable code. Each game owns an
asyncio.Lock; every read-modify-write on a game runs inside ``locked()``, so
commands for the same game are serialized while different games never wait
on each other.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import string
import uuid
from typing import TYPE_CHECKING

from hideseek.logic.enums import TeamRole
from hideseek.logic.exceptions import GameNotFoundError, InvalidInputError, PreconditionFailedError
from hideseek.logic.models import Game, Team, TeamSpec
from hideseek.logic.settings import GAME_CODE_LENGTH, MAX_ROUND_LENGTH_MINUTES, GameRules

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from hideseek.logic.clock import Clock

logger = logging.getLogger(__name__)


class GameRegistry:
    def __init__(
        self,
        clock: Clock,
        rules: GameRules | None = None,
        max_capacity: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._clock = clock
        self._rules = rules or GameRules()
        self._max_capacity = max_capacity
        self._rng = rng or random.Random()  # noqa: S311
        self._games: dict[str, Game] = {}  # game_id -> Game
        self._codes: dict[str, str] = {}  # code -> game_id
        self._locks: dict[str, asyncio.Lock] = {}  # game_id -> Lock

    @property
    def game_count(self) -> int:
        return len(self._games)

    def create(self, team_specs: Sequence[TeamSpec], round_length_minutes: int | None = None) -> Game:
        """Create a game in the waiting state.

        When a spec has no role, the first team seeks and the rest hide.
        """
        self._validate_create(team_specs, round_length_minutes)

        now = self._clock.now_ms()
        teams = [
            Team(
                id=str(uuid.uuid4()),
                name=spec.name.strip(),
                role=spec.role or (TeamRole.SEEKER if index == 0 else TeamRole.HIDER),
                tokens=self._rules.starting_tokens,
            )
            for index, spec in enumerate(team_specs)
        ]
        game = Game(
            id=str(uuid.uuid4()),
            code=self._generate_code(),
            round_length_minutes=round_length_minutes,
            created_at=now,
            last_activity_time=now,
            teams=teams,
        )
        self._games[game.id] = game
        self._codes[game.code] = game.id
        self._locks[game.id] = asyncio.Lock()
        logger.info("game %s created with code %s, %d teams", game.id, game.code, len(teams))
        return game

    def get(self, game_id: str) -> Game:
        game = self._games.get(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    def get_by_code(self, code: str) -> Game:
        game_id = self._codes.get(code.strip().upper())
        if game_id is None:
            raise GameNotFoundError(code)
        return self.get(game_id)

    def resolve(self, game_ref: str) -> Game:
        """Look a game up by id, falling back to its code."""
        game = self._games.get(game_ref)
        if game is not None:
            return game
        return self.get_by_code(game_ref)

    def list_all(self) -> list[Game]:
        return list(self._games.values())

    def game_ids(self) -> list[str]:
        return list(self._games)

    def update(self, game: Game) -> None:
        """Write back a mutated game and stamp its activity time."""
        if self._games.get(game.id) is not game:
            raise GameNotFoundError(game.id)
        game.last_activity_time = self._clock.now_ms()

    @contextlib.asynccontextmanager
    async def locked(self, game_id: str) -> AsyncIterator[Game]:
        """Hold the game's lock and yield the live game.

        Raises GameNotFoundError if the game is unknown, or if it was deleted
        while this caller was waiting for the lock.
        """
        lock = self._locks.get(game_id)
        if lock is None:
            raise GameNotFoundError(game_id)
        async with lock:
            game = self._games.get(game_id)
            if game is None:
                raise GameNotFoundError(game_id)
            yield game

    def discard(self, game_id: str) -> Game | None:
        """Remove a game and its lock. Callers should hold the game's lock."""
        game = self._games.pop(game_id, None)
        if game is None:
            return None
        self._codes.pop(game.code, None)
        # Waiters still hold a reference to the lock and re-check existence
        self._locks.pop(game_id, None)
        logger.info("game %s removed", game_id)
        return game

    async def delete(self, game_id: str) -> Game:
        async with self.locked(game_id) as game:
            self.discard(game_id)
        return game

    def _validate_create(self, team_specs: Sequence[TeamSpec], round_length_minutes: int | None) -> None:
        if self._max_capacity is not None and len(self._games) >= self._max_capacity:
            msg = f"server is at capacity ({self._max_capacity} games)"
            raise PreconditionFailedError(msg)
        if not team_specs:
            msg = "a game needs at least one team"
            raise InvalidInputError(msg)
        names = [spec.name.strip().casefold() for spec in team_specs]
        if any(not name for name in names):
            msg = "team names cannot be blank"
            raise InvalidInputError(msg)
        if len(set(names)) != len(names):
            msg = "team names must be unique within a game"
            raise InvalidInputError(msg)
        if round_length_minutes is not None and not 1 <= round_length_minutes <= MAX_ROUND_LENGTH_MINUTES:
            msg = f"round length must be between 1 and {MAX_ROUND_LENGTH_MINUTES} minutes"
            raise InvalidInputError(msg)

    def _generate_code(self) -> str:
        while True:
            code = "".join(self._rng.choices(string.ascii_uppercase, k=GAME_CODE_LENGTH))
            if code not in self._codes:
                return code
