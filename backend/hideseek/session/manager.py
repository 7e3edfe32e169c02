"""
Command surface for hide-and-seek games.

Every mutating command follows the same sequence: resolve the game, take its
lock, validate and apply the change (the logic layer raises before touching
any field), stamp activity through the registry, then publish the fresh
snapshot to subscribers. Event recording and push delivery ride along but
never decide whether a command succeeds.
"""

from __future__ import annotations

import contextlib
import random
from typing import TYPE_CHECKING, Any

import structlog

from hideseek.logic import challenges, clues, curses, lifecycle, teams
from hideseek.logic.clock import SystemClock
from hideseek.logic.content import GameContent
from hideseek.logic.enums import GameEventType, TeamRole
from hideseek.logic.exceptions import GameNotFoundError
from hideseek.logic.settings import GameRules
from hideseek.logic.stats import build_snapshot, game_stats
from hideseek.messaging.types import ErrorMessage, GameStateMessage, LeftGameMessage, PongMessage, SessionErrorCode
from hideseek.session.broadcast import BroadcastHub
from hideseek.session.collaborators import NullPushNotifier, PushDispatcher, TemplateClueGenerator
from hideseek.session.events import GameEventLog
from hideseek.session.registry import GameRegistry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from hideseek.logic.clock import Clock
    from hideseek.logic.clues import ClueTextGenerator
    from hideseek.logic.models import ActiveCurse, Challenge, DrawnCard, Game, PurchasedClue, Team, TeamSpec
    from hideseek.logic.stats import GameStats
    from hideseek.messaging.protocol import ConnectionProtocol
    from hideseek.session.collaborators import PushNotifier
    from hideseek.session.events import GameEvent

logger = structlog.get_logger()


class GameSessionManager:
    def __init__(
        self,
        *,
        clock: Clock | None = None,
        rules: GameRules | None = None,
        content: GameContent | None = None,
        hub: BroadcastHub | None = None,
        clue_generator: ClueTextGenerator | None = None,
        push_notifier: PushNotifier | None = None,
        event_log: GameEventLog | None = None,
        max_capacity: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._rules = rules or GameRules()
        self._content = content or GameContent()
        self._rng = rng or random.Random()  # noqa: S311
        self._registry = GameRegistry(self._clock, self._rules, max_capacity=max_capacity, rng=self._rng)
        self._hub = hub or BroadcastHub()
        self._clue_generator = clue_generator or TemplateClueGenerator()
        self._push = PushDispatcher(push_notifier or NullPushNotifier())
        self._events = event_log or GameEventLog(self._clock)
        self._clue_history: dict[str, list[PurchasedClue]] = {}  # game_id -> clues, oldest first
        self._subscriptions: dict[str, str] = {}  # connection_id -> game_id

    @property
    def registry(self) -> GameRegistry:
        return self._registry

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    @property
    def push(self) -> PushDispatcher:
        return self._push

    @property
    def content(self) -> GameContent:
        return self._content

    @property
    def rules(self) -> GameRules:
        return self._rules

    @property
    def game_count(self) -> int:
        return self._registry.game_count

    # --- Game lookup ---

    def create_game(self, team_specs: Sequence[TeamSpec], round_length_minutes: int | None = None) -> Game:
        game = self._registry.create(team_specs, round_length_minutes)
        self._record(
            game.id,
            GameEventType.GAME_CREATED,
            None,
            {"code": game.code, "teams": [t.name for t in game.teams]},
        )
        return game

    def get_game(self, game_id: str) -> Game:
        """The game as it reads right now. Expired curses are left out, not pruned."""
        return self._current_view(self._registry.get(game_id))

    def get_game_by_code(self, code: str) -> Game:
        return self._current_view(self._registry.get_by_code(code))

    def list_games(self) -> list[Game]:
        return self._registry.list_all()

    def snapshot(self, game_id: str) -> dict[str, Any]:
        """Current wire snapshot of a game, derived durations included."""
        return build_snapshot(self.get_game(game_id), self._clock.now_ms())

    def game_stats(self, game_id: str) -> GameStats:
        return game_stats(self.get_game(game_id), self._clock.now_ms())

    def clue_history(self, game_id: str, team_id: str | None = None) -> list[PurchasedClue]:
        game = self._registry.get(game_id)
        history = self._clue_history.get(game.id, [])
        if team_id is not None:
            game.find_team(team_id)
            return [c for c in history if c.team_id == team_id]
        return list(history)

    def event_history(self, game_id: str) -> list[GameEvent]:
        game = self._registry.get(game_id)
        return self._events.history(game.id)

    def available_curse_targets(self, game_id: str) -> list[Team]:
        game = self._registry.get(game_id)
        return curses.available_curse_targets(game, self._clock.now_ms())

    async def delete_game(self, game_id: str) -> None:
        async with self._registry.locked(game_id) as game:
            await self._remove(game)

    async def delete_if_idle(self, game_id: str, cutoff: int) -> bool:
        """Delete the game if it has seen no activity since cutoff (epoch ms)."""
        try:
            async with self._registry.locked(game_id) as game:
                if game.last_activity_time >= cutoff:
                    return False
                logger.info("deleting idle game", game_id=game_id, last_activity_time=game.last_activity_time)
                await self._remove(game)
                return True
        except GameNotFoundError:
            return False

    # --- Round lifecycle ---

    async def start_game(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, now):
            lifecycle.start(game, now)
            self._record(game.id, GameEventType.GAME_STARTED, None, {"round": game.round})
            self._push.dispatch(game.id, "Game started", "The hiders are out. Good luck!")
        return game

    async def pause_game(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, now):
            lifecycle.pause(game, now)
            self._record(game.id, GameEventType.GAME_PAUSED, None, {"round": game.round})
            self._push.dispatch(game.id, "Game paused", f"Round {game.round} is paused.")
        return game

    async def resume_game(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, now):
            lifecycle.resume(game, now)
            self._record(game.id, GameEventType.GAME_RESUMED, None, {"round": game.round})
            self._push.dispatch(game.id, "Game resumed", f"Round {game.round} is back on.")
        return game

    async def next_round(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, now):
            lifecycle.next_round(game, now)
            self._record(game.id, GameEventType.ROUND_STARTED, None, {"round": game.round})
            self._push.dispatch(game.id, f"Round {game.round} started", "New round, new hiders. Go!")
        return game

    async def end_game(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, now):
            lifecycle.end(game, now)
            self._record(game.id, GameEventType.GAME_ENDED, None, {"round": game.round})
            self._push.dispatch(game.id, "Game over", "The game has ended.")
        return game

    async def restart_game(self, game_id: str) -> Game:
        async with self._command(game_id) as (game, _now):
            lifecycle.restart(game, self._rules)
            self._clue_history.pop(game.id, None)
            self._record(game.id, GameEventType.GAME_RESTARTED, None, {})
        return game

    async def enforce_round_limit(self, game_id: str) -> bool:
        """Auto-pause the game if its round time limit has run out.

        Called by the round enforcer. Returns True when the game was paused; a
        game deleted in the meantime is simply skipped.
        """
        try:
            async with self._registry.locked(game_id) as game:
                now = self._clock.now_ms()
                if not lifecycle.is_round_expired(game, now):
                    return False
                lifecycle.auto_pause(game, now)
                self._registry.update(game)
                logger.info("round time limit reached, game auto-paused", game_id=game.id, round=game.round)
                self._record(game.id, GameEventType.GAME_AUTO_PAUSED, None, {"round": game.round})
                self._push.dispatch(game.id, "Time's up!", f"Round {game.round} is over. Start the next round.")
                await self._publish(game)
        except GameNotFoundError:
            return False
        return True

    # --- Team admin ---

    async def update_role(self, game_id: str, team_id: str, role: TeamRole) -> Team:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            previous = team.role
            if teams.update_role(game, team, role, now):
                self._record(
                    game.id,
                    GameEventType.ROLE_CHANGED,
                    team.id,
                    {"from": previous.value, "to": role.value},
                )
        return team

    async def update_tokens(self, game_id: str, team_id: str, tokens: int) -> Team:
        async with self._command(game_id) as (game, _now):
            team = game.find_team(team_id)
            previous = teams.update_tokens(team, tokens)
            self._record(game.id, GameEventType.TOKENS_UPDATED, team.id, {"from": previous, "to": tokens})
        return team

    async def update_location(self, game_id: str, team_id: str, latitude: float, longitude: float) -> Team:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            teams.update_location(team, latitude, longitude, now)
        return team

    async def mark_found(self, game_id: str, team_id: str, found_by_team_id: str | None = None) -> Team:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            if found_by_team_id is not None:
                game.find_team(found_by_team_id)
            last_hider = lifecycle.mark_found(game, team, now)
            self._record(
                game.id,
                GameEventType.TEAM_FOUND,
                found_by_team_id,
                {"team_id": team.id, "last_hider": last_hider},
            )
            self._push.dispatch(game.id, "Team found", f"{team.name} has been found and is now seeking.")
            if last_hider:
                self._push.dispatch(game.id, "All hiders found", "Start the next round when ready.")
        return team

    # --- Challenges ---

    async def draw_challenge(self, game_id: str, team_id: str) -> Challenge:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            challenge = challenges.draw_challenge(game, team, self._content, now, self._rng)
            self._record(game.id, GameEventType.CHALLENGE_DRAWN, team.id, {"challenge_id": challenge.id})
        return challenge

    async def draw_card(self, game_id: str, team_id: str) -> DrawnCard:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            card = challenges.draw_card(game, team, self._content, now, self._rng)
            if card.challenge is not None:
                self._record(game.id, GameEventType.CHALLENGE_DRAWN, team.id, {"challenge_id": card.challenge.id})
            else:
                self._record(game.id, GameEventType.CURSE_CARD_DRAWN, team.id, {"curse_id": card.curse.id})
        return card

    async def complete_challenge(self, game_id: str, team_id: str, tokens_earned: int | None = None) -> Team:
        async with self._command(game_id) as (game, _now):
            team = game.find_team(team_id)
            challenge_id = team.active_challenge.challenge.id if team.active_challenge else None
            reward = challenges.complete_challenge(game, team, tokens_earned)
            self._record(
                game.id,
                GameEventType.CHALLENGE_COMPLETED,
                team.id,
                {"challenge_id": challenge_id, "tokens_earned": reward},
            )
        return team

    async def refuse_challenge(self, game_id: str, team_id: str) -> Team:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            challenge_id = team.active_challenge.challenge.id if team.active_challenge else None
            penalty = challenges.refuse_challenge(game, team, self._rules, now)
            self._record(
                game.id,
                GameEventType.CHALLENGE_REFUSED,
                team.id,
                {
                    "challenge_id": challenge_id,
                    "veto_end_time": team.veto_end_time,
                    "penalty_curse_id": penalty.curse.id if penalty else None,
                },
            )
        return team

    # --- Curses ---

    async def curse_team(self, game_id: str, seeker_id: str, target_id: str) -> ActiveCurse:
        async with self._command(game_id) as (game, now):
            seeker = game.find_team(seeker_id)
            target = game.find_team(target_id)
            active = curses.curse_team(game, seeker, target, self._content, self._rules, now, self._rng)
            self._record(
                game.id,
                GameEventType.CURSE_APPLIED,
                seeker.id,
                {"curse_id": active.curse.id, "target_team_id": target.id, "end_time": active.end_time},
            )
            self._push.dispatch(game.id, "Curse applied", f"{target.name} has been cursed: {active.curse.title}")
        return active

    async def mark_curse_completed(self, game_id: str, team_id: str, curse_id: str) -> Team:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            curses.mark_curse_completed(team, curse_id, now)
            self._record(game.id, GameEventType.CURSE_COMPLETED, team.id, {"curse_id": curse_id})
        return team

    # --- Clues ---

    async def purchase_clue(self, game_id: str, team_id: str, clue_type_id: str) -> PurchasedClue:
        async with self._command(game_id) as (game, now):
            team = game.find_team(team_id)
            clue_type = self._content.get_clue_type(clue_type_id)
            clue = clues.purchase_clue(game, team, clue_type, self._clue_generator, now)
            self._clue_history.setdefault(game.id, []).append(clue)
            self._record(
                game.id,
                GameEventType.CLUE_PURCHASED,
                team.id,
                {"clue_type_id": clue_type.id, "cost": clue.cost, "target_team_ids": clue.target_team_ids},
            )
            self._push.dispatch(game.id, "Clue purchased", f"{team.name} bought a {clue_type.name} clue.")
        return clue

    # --- Subscriptions ---

    async def join_game(self, connection: ConnectionProtocol, game_ref: str) -> None:
        """Subscribe a connection to a game (by id or code) and send it the current state."""
        try:
            game = self._registry.resolve(game_ref)
        except GameNotFoundError as e:
            await connection.send_message(ErrorMessage(code=e.kind.value, message=e.message).model_dump())
            return

        previous = self._subscriptions.get(connection.connection_id)
        if previous is not None and previous != game.id:
            self._hub.unsubscribe(previous, connection)
        self._subscriptions[connection.connection_id] = game.id
        self._hub.subscribe(game.id, connection)
        logger.info("connection joined game", game_id=game.id, connection_id=connection.connection_id)
        await connection.send_message(GameStateMessage(game=self.snapshot(game.id)).model_dump())

    async def leave_game(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        game_id = self._subscriptions.pop(connection.connection_id, None)
        if game_id is None:
            if notify_player:
                await connection.send_message(
                    ErrorMessage(
                        code=SessionErrorCode.NOT_JOINED,
                        message="You are not subscribed to a game",
                    ).model_dump(),
                )
            return
        self._hub.unsubscribe(game_id, connection)
        if notify_player:
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(LeftGameMessage(game_id=game_id).model_dump())

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump())

    def subscribed_game(self, connection_id: str) -> str | None:
        return self._subscriptions.get(connection_id)

    # --- Internal helpers ---

    @contextlib.asynccontextmanager
    async def _command(self, game_id: str) -> AsyncIterator[tuple[Game, int]]:
        """Run one command under the game's lock, then commit and publish.

        Nothing after the yield runs if the command raised, so a rejected
        command neither stamps activity nor broadcasts.
        """
        with structlog.contextvars.bound_contextvars(game_id=game_id):
            async with self._registry.locked(game_id) as game:
                now = self._clock.now_ms()
                self._prune_curses(game, now)
                yield game, now
                self._registry.update(game)
                await self._publish(game)

    async def _publish(self, game: Game) -> None:
        snapshot = build_snapshot(game, self._clock.now_ms())
        await self._hub.publish(game.id, GameStateMessage(game=snapshot).model_dump())

    async def _remove(self, game: Game) -> None:
        """Drop a game and all of its per-game state. Caller holds the game's lock."""
        self._registry.discard(game.id)
        self._clue_history.pop(game.id, None)
        self._events.clear(game.id)
        for connection_id, subscribed in list(self._subscriptions.items()):
            if subscribed == game.id:
                del self._subscriptions[connection_id]
        await self._hub.close_game(game.id)

    def _prune_curses(self, game: Game, now: int) -> None:
        for team in game.teams:
            team.prune_expired_curses(now)

    def _current_view(self, game: Game) -> Game:
        """Game as readers should see it. Lock-free, so the live game is never modified here.

        Expired curses are dropped from a copy; the next command prunes them for real.
        """
        now = self._clock.now_ms()
        if not any(c.is_expired(now) for t in game.teams for c in (*t.active_curses, *t.applied_curses)):
            return game
        view = game.model_copy(deep=True)
        self._prune_curses(view, now)
        return view

    def _record(
        self,
        game_id: str,
        event_type: GameEventType,
        actor: str | None,
        payload: dict[str, Any],
    ) -> None:
        try:
            self._events.record(game_id, event_type, actor, payload)
        except Exception:
            logger.exception("failed to record game event", event_type=event_type)

