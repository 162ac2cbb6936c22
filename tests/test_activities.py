"""
Tests for the Temporal activities
Runs each activity inside an ActivityEnvironment, no Temporal server needed
"""

import asyncio
from unittest.mock import Mock, patch

import pytest

pytest.importorskip("temporalio")

from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from mine_navigator import activities
from mine_navigator.errors import OracleUnavailableError
from mine_navigator.game import new_game
from mine_navigator.types import GameConfig, GameStatus, HintAction, HintRequest


@pytest.fixture
def env():
    return ActivityEnvironment()


@pytest.fixture
def game_state(corner_mine_board):
    return new_game("game-1", corner_mine_board)


def run(env, fn, *args):
    return asyncio.run(env.run(fn, *args))


class TestBoardActivities:
    """Test cases for board and session activities"""

    def test_create_game_board(self, env):
        """Test the activity builds a board of the requested size"""
        board = run(env, activities.create_game_board, GameConfig(rows=8, cols=8, mine_count=10))

        assert (board.rows, board.cols, board.mine_count) == (8, 8, 10)
        assert sum(cell.is_mine for row in board.cells for cell in row) == 10

    def test_reveal_cell(self, env, game_state):
        """Test revealing through the activity updates the session"""
        updated = run(env, activities.reveal_cell, game_state, 2, 2)

        assert updated.status == GameStatus.WON
        assert updated.cells_revealed == 8

    def test_toggle_flag(self, env, game_state):
        """Test flagging through the activity counts the flag"""
        updated = run(env, activities.toggle_flag, game_state, 0, 0, 'flag')

        assert updated.flags_used == 1
        assert updated.board.cells[0][0].is_flagged


class TestSuggestHint:
    """Test cases for the hint activity"""

    def test_returns_validated_hint(self, env, monkeypatch):
        """Test a playable oracle move is returned"""
        oracle = Mock(return_value={
            "actionType": "reveal", "row": 2, "col": 2, "reasoning": "Corner", "isConfident": False,
        })
        monkeypatch.delenv("HINT_FALLBACK_ON_ORACLE_ERROR", raising=False)
        request = HintRequest(board_string="???\n???\n???", rows=3, cols=3, total_mines=1)

        with patch.object(activities.HttpHintOracle, "from_env", return_value=oracle):
            hint = run(env, activities.suggest_hint, request)

        assert hint.action_type == HintAction.REVEAL
        assert (hint.row, hint.col) == (2, 2)
        assert hint.reasoning == "Corner"

    def test_oracle_failure_is_non_retryable(self, env, monkeypatch):
        """Test hint errors become non-retryable application errors"""
        oracle = Mock(side_effect=OracleUnavailableError("down"))
        monkeypatch.delenv("HINT_FALLBACK_ON_ORACLE_ERROR", raising=False)
        request = HintRequest(board_string="???", rows=1, cols=3, total_mines=1)

        with patch.object(activities.HttpHintOracle, "from_env", return_value=oracle):
            with pytest.raises(ApplicationError) as excinfo:
                run(env, activities.suggest_hint, request)

        assert excinfo.value.type == "OracleUnavailableError"
        assert excinfo.value.non_retryable is True

    def test_fallback_on_oracle_error_setting(self, env, monkeypatch):
        """Test the environment switch turns oracle errors into fallbacks"""
        oracle = Mock(side_effect=OracleUnavailableError("down"))
        monkeypatch.setenv("HINT_FALLBACK_ON_ORACLE_ERROR", "true")
        request = HintRequest(board_string="E1?", rows=1, cols=3, total_mines=1)

        with patch.object(activities.HttpHintOracle, "from_env", return_value=oracle):
            hint = run(env, activities.suggest_hint, request)

        assert (hint.row, hint.col) == (0, 2)
        assert hint.is_confident is False

    def test_bad_oracle_settings_are_non_retryable(self, env, monkeypatch):
        """Test a broken timeout setting fails the activity like any hint error"""
        monkeypatch.setenv("HINT_ORACLE_TIMEOUT", "soon")
        monkeypatch.delenv("HINT_FALLBACK_ON_ORACLE_ERROR", raising=False)
        request = HintRequest(board_string="???", rows=1, cols=3, total_mines=1)

        with pytest.raises(ApplicationError) as excinfo:
            run(env, activities.suggest_hint, request)

        assert excinfo.value.type == "OracleUnavailableError"
        assert excinfo.value.non_retryable is True
