import pytest

from hideseek.logic.enums import GameStatus, TeamRole
from hideseek.logic.exceptions import PreconditionFailedError
from hideseek.logic.timing import (
    close_pending_pause,
    compute_game_duration,
    compute_round_duration,
    enter_pause,
    exit_pause,
    fold_hider_session,
    live_hider_time,
    pending_pause,
    start_hider_session,
)
from hideseek.tests.conftest import make_game, make_team
from hideseek.tests.mocks import DEFAULT_NOW

T0 = DEFAULT_NOW


def _active_game():
    game = make_game(status=GameStatus.ACTIVE)
    game.game_start_time = T0
    game.round_start_time = T0
    game.start_time = T0
    return game


class TestHiderSessions:
    def test_fold_adds_elapsed_and_closes_session(self):
        team = make_team("Blue")
        start_hider_session(team, T0)

        fold_hider_session(team, T0 + 4_000)

        assert team.total_hider_time == 4_000
        assert team.hider_start_time is None

    def test_fold_twice_is_a_no_op(self):
        team = make_team("Blue")
        start_hider_session(team, T0)
        fold_hider_session(team, T0 + 4_000)

        fold_hider_session(team, T0 + 9_000)

        assert team.total_hider_time == 4_000

    def test_fold_without_session_is_a_no_op(self):
        team = make_team("Blue")
        fold_hider_session(team, T0)
        assert team.total_hider_time == 0

    def test_fold_never_subtracts_on_clock_skew(self):
        team = make_team("Blue")
        start_hider_session(team, T0)
        fold_hider_session(team, T0 - 1_000)
        assert team.total_hider_time == 0

    def test_start_session_rejects_seeker(self):
        team = make_team("Red", TeamRole.SEEKER)
        with pytest.raises(PreconditionFailedError):
            start_hider_session(team, T0)
        assert team.hider_start_time is None

    def test_live_hider_time_includes_open_session(self):
        team = make_team("Blue")
        team.total_hider_time = 1_000
        start_hider_session(team, T0)

        assert live_hider_time(team, T0 + 500) == 1_500
        assert team.total_hider_time == 1_000


class TestDurations:
    def test_not_started_is_zero(self):
        game = make_game()
        assert compute_game_duration(game, T0 + 10_000) == 0
        assert compute_round_duration(game, T0 + 10_000) == 0

    def test_pauses_are_excluded(self):
        game = _active_game()
        game.total_paused_duration = 3_000

        assert compute_game_duration(game, T0 + 10_000) == 7_000
        assert compute_round_duration(game, T0 + 10_000) == 7_000

    def test_in_progress_pause_is_excluded(self):
        game = _active_game()
        game.status = GameStatus.PAUSED
        game.pause_time = T0 + 6_000

        assert pending_pause(game, T0 + 10_000) == 4_000
        assert compute_game_duration(game, T0 + 10_000) == 6_000
        assert compute_round_duration(game, T0 + 10_000) == 6_000

    def test_round_only_counts_pauses_since_round_start(self):
        game = _active_game()
        # 5s paused in round 1, then round 2 starts at T0 + 20s
        game.total_paused_duration = 5_000
        game.round_start_time = T0 + 20_000
        game.paused_duration_at_round_start = 5_000

        assert compute_round_duration(game, T0 + 30_000) == 10_000
        assert compute_game_duration(game, T0 + 30_000) == 25_000

    def test_ended_game_freezes_at_end_time(self):
        game = _active_game()
        game.status = GameStatus.ENDED
        game.end_time = T0 + 8_000

        assert compute_game_duration(game, T0 + 60_000) == 8_000
        assert compute_round_duration(game, T0 + 60_000) == 8_000

    def test_durations_never_negative(self):
        game = _active_game()
        game.total_paused_duration = 50_000
        assert compute_game_duration(game, T0 + 1_000) == 0
        assert compute_round_duration(game, T0 + 1_000) == 0


class TestPauseAccounting:
    def test_enter_pause_folds_hider_sessions(self):
        game = _active_game()
        blue = game.find_team("blue")
        start_hider_session(blue, T0)

        enter_pause(game, T0 + 2_000)

        assert game.pause_time == T0 + 2_000
        assert blue.hider_start_time is None
        assert blue.total_hider_time == 2_000

    def test_exit_pause_accumulates_and_restarts_sessions(self):
        game = _active_game()
        enter_pause(game, T0 + 2_000)

        exit_pause(game, T0 + 5_000)

        assert game.pause_time is None
        assert game.total_paused_duration == 3_000
        assert game.find_team("blue").hider_start_time == T0 + 5_000
        assert game.find_team("red").hider_start_time is None

    def test_close_pending_pause_without_pause_is_a_no_op(self):
        game = _active_game()
        close_pending_pause(game, T0 + 2_000)
        assert game.total_paused_duration == 0

    def test_pause_lengths_sum(self):
        game = _active_game()
        for offset, length in ((1_000, 2_000), (10_000, 500), (20_000, 7_500)):
            enter_pause(game, T0 + offset)
            exit_pause(game, T0 + offset + length)

        assert game.total_paused_duration == 10_000
