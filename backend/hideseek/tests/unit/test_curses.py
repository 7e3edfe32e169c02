import pytest

from hideseek.logic import lifecycle
from hideseek.logic.content import GameContent
from hideseek.logic.curses import available_curse_targets, curse_duration_ms, curse_team, mark_curse_completed
from hideseek.logic.enums import TeamRole
from hideseek.logic.exceptions import (
    ExhaustedError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
)
from hideseek.logic.models import Curse
from hideseek.logic.settings import GameRules
from hideseek.tests.conftest import make_game, make_team
from hideseek.tests.mocks import DEFAULT_NOW

T0 = DEFAULT_NOW


@pytest.fixture
def game():
    game = make_game([make_team("Red", TeamRole.SEEKER), make_team("Blue"), make_team("Green")])
    lifecycle.start(game, T0)
    return game


class TestCurseTeam:
    def test_curse_deducts_and_records_on_both_teams(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")

        active = curse_team(game, red, blue, content, rules, T0, rng)

        assert active.curse.id == "hop"
        assert active.start_time == T0
        assert active.end_time == T0 + 120_000
        assert red.tokens == 7
        assert blue.active_curses == [active]
        assert len(red.applied_curses) == 1
        applied = red.applied_curses[0]
        assert applied.target_team_id == "blue"
        assert applied.target_team_name == "Blue"
        assert applied.end_time == active.end_time

    def test_second_curse_on_same_hider_is_rejected(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        curse_team(game, red, blue, content, rules, T0, rng)

        with pytest.raises(PreconditionFailedError, match="already has an active curse"):
            curse_team(game, red, blue, content, rules, T0 + 1_000, rng)

        assert red.tokens == 7
        assert len(blue.active_curses) == 1

    def test_curse_allowed_again_after_expiry(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        curse_team(game, red, blue, content, rules, T0, rng)

        active = curse_team(game, red, blue, content, rules, T0 + 120_000, rng)

        assert blue.active_curses == [active]
        assert red.tokens == 4
        assert len(red.applied_curses) == 1

    def test_completed_but_unexpired_curse_still_blocks(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        active = curse_team(game, red, blue, content, rules, T0, rng)
        mark_curse_completed(blue, active.curse.id, T0 + 1_000)

        with pytest.raises(PreconditionFailedError):
            curse_team(game, red, blue, content, rules, T0 + 2_000, rng)

    def test_insufficient_tokens(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        red.tokens = 2

        with pytest.raises(PreconditionFailedError, match="costs 3 tokens"):
            curse_team(game, red, blue, content, rules, T0, rng)

        assert red.tokens == 2
        assert blue.active_curses == []

    def test_hider_cannot_curse(self, game, content, rules, rng):
        with pytest.raises(PreconditionFailedError):
            curse_team(game, game.find_team("blue"), game.find_team("green"), content, rules, T0, rng)

    def test_seeker_cannot_be_cursed(self, game, content, rules, rng):
        red = game.find_team("red")
        with pytest.raises(PreconditionFailedError, match="not a hider"):
            curse_team(game, red, red, content, rules, T0, rng)

    def test_empty_curse_deck(self, game, rules, rng):
        with pytest.raises(ExhaustedError):
            curse_team(game, game.find_team("red"), game.find_team("blue"), GameContent(), rules, T0, rng)

    def test_requires_active_game(self, game, content, rules, rng):
        lifecycle.pause(game, T0 + 1_000)
        with pytest.raises(InvalidTransitionError):
            curse_team(game, game.find_team("red"), game.find_team("blue"), content, rules, T0 + 2_000, rng)

    def test_curse_without_duration_uses_default(self, game, rng):
        content = GameContent(curses=[Curse(id="mystery", title="Mystery", token_cost=1)])

        active = curse_team(
            game,
            game.find_team("red"),
            game.find_team("blue"),
            content,
            GameRules(default_curse_minutes=7),
            T0,
            rng,
        )

        assert active.end_time == T0 + 7 * 60_000


class TestTargetsAndCompletion:
    def test_available_targets_exclude_cursed_hiders_and_seekers(self, game, content, rules, rng):
        curse_team(game, game.find_team("red"), game.find_team("blue"), content, rules, T0, rng)

        assert [t.id for t in available_curse_targets(game, T0 + 1_000)] == ["green"]
        assert [t.id for t in available_curse_targets(game, T0 + 120_000)] == ["blue", "green"]

    def test_listing_targets_leaves_expired_curses_in_place(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        curse_team(game, red, blue, content, rules, T0, rng)

        assert "blue" in [t.id for t in available_curse_targets(game, T0 + 120_000)]
        assert len(blue.active_curses) == 1

    def test_expired_curses_are_pruned(self, game, content, rules, rng):
        red, blue = game.find_team("red"), game.find_team("blue")
        curse_team(game, red, blue, content, rules, T0, rng)

        blue.prune_expired_curses(T0 + 120_000)

        assert blue.active_curses == []

    def test_mark_completed(self, game, content, rules, rng):
        blue = game.find_team("blue")
        active = curse_team(game, game.find_team("red"), blue, content, rules, T0, rng)

        mark_curse_completed(blue, "hop", T0 + 30_000)

        assert active.completed is True
        assert active.completed_at == T0 + 30_000

    def test_mark_completed_twice_is_rejected(self, game, content, rules, rng):
        blue = game.find_team("blue")
        curse_team(game, game.find_team("red"), blue, content, rules, T0, rng)
        mark_curse_completed(blue, "hop", T0 + 30_000)

        with pytest.raises(PreconditionFailedError):
            mark_curse_completed(blue, "hop", T0 + 40_000)

    def test_mark_unknown_curse(self, game):
        with pytest.raises(NotFoundError):
            mark_curse_completed(game.find_team("blue"), "hop", T0)

    def test_seeker_cannot_complete_curse(self, game):
        with pytest.raises(PreconditionFailedError):
            mark_curse_completed(game.find_team("red"), "hop", T0)


def test_curse_duration_prefers_content_value():
    rules = GameRules(default_curse_minutes=9)
    assert curse_duration_ms(Curse(id="a", title="A", duration_seconds=45), rules) == 45_000
    assert curse_duration_ms(Curse(id="b", title="B"), rules) == 9 * 60_000
