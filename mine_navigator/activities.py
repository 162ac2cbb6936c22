"""Temporal activities for game logic."""
import asyncio
import os

from temporalio import activity
from temporalio.exceptions import ApplicationError

from mine_navigator import board as engine
from mine_navigator import game
from mine_navigator.errors import HintError
from mine_navigator.hints import request_hint
from mine_navigator.oracle import HttpHintOracle
from mine_navigator.types import GameBoard, GameConfig, GameState, HintRequest, HintResult


def fallback_on_oracle_error() -> bool:
    return os.getenv("HINT_FALLBACK_ON_ORACLE_ERROR", "").lower() in ("1", "true", "yes")


@activity.defn
async def create_game_board(config: GameConfig) -> GameBoard:
    """Create a new game board with randomly placed mines."""
    activity.logger.info(f"Creating {config.rows}x{config.cols} board with {config.mine_count} mines")
    return engine.create_board(config.rows, config.cols, config.mine_count)


@activity.defn
async def reveal_cell(game_state: GameState, row: int, col: int) -> GameState:
    """Reveal a cell and potentially cascade to neighbors."""
    return game.apply_reveal(game_state, row, col)


@activity.defn
async def toggle_flag(game_state: GameState, row: int, col: int, action: str) -> GameState:
    """Place or remove a flag on a cell."""
    return game.apply_flag(game_state, row, col, action)


@activity.defn
async def suggest_hint(request: HintRequest) -> HintResult:
    """Ask the hint oracle for a move and validate it against the board."""
    try:
        oracle = HttpHintOracle.from_env()
        # The oracle client blocks on HTTP, keep it off the event loop
        hint = await asyncio.to_thread(request_hint, request, oracle, fallback_on_oracle_error())
    except HintError as error:
        activity.logger.warning(f"Hint request failed: {error}")
        raise ApplicationError(str(error), type=type(error).__name__, non_retryable=True) from error

    activity.logger.info(
        f"Hint: {hint.action_type.value} ({hint.row}, {hint.col}), confident={hint.is_confident}"
    )
    return hint
