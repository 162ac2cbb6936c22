"""Temporal workflows for Mine Navigator."""
import asyncio
from datetime import timedelta
from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from mine_navigator.types import (
        GameConfig, GameState, GameStatus, HintResult, MoveRequest, MOVE_ACTIONS,
    )
    from mine_navigator.activities import create_game_board, reveal_cell, toggle_flag, suggest_hint
    from mine_navigator.game import is_playing, new_game
    from mine_navigator.hints import build_hint_request

ACTIVITY_TIMEOUT = timedelta(seconds=60)
HINT_TIMEOUT = timedelta(seconds=45)

# Board operations are pure, so retrying one is only useful for worker crashes
BOARD_RETRY_POLICY = RetryPolicy(
    maximum_attempts=3,
    non_retryable_error_types=["InvalidBoardConfigError", "InvalidMoveError", "ValueError"],
)
HINT_RETRY_POLICY = RetryPolicy(maximum_attempts=1)


def validate_config(config: GameConfig) -> None:
    if config.rows < 1 or config.cols < 1:
        raise ValueError("Board must have at least one row and one column")
    if not 1 <= config.mine_count < config.rows * config.cols:
        raise ValueError("Mine count must be at least 1 and less than the number of cells")


@workflow.defn
class MinesweeperWorkflow:
    """Workflow that manages a single Minesweeper game."""

    def __init__(self):
        self.game_id: str = ""
        self.game_state: GameState | None = None
        self.last_activity_time: float = 0
        self.should_close: bool = False
        self._lock = asyncio.Lock()

    @workflow.run
    async def run(self, game_id: str, initial_config: GameConfig) -> None:
        """Main workflow entry point."""
        # Store game_id immediately so queries can access it during initialization
        self.game_id = game_id
        self.last_activity_time = workflow.time()

        async with self._lock:
            initial_board = await workflow.execute_activity(
                create_game_board,
                initial_config,
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=BOARD_RETRY_POLICY,
            )
            if self.game_state is None:
                self.game_state = new_game(game_id, initial_board)

        # Auto-close workflow after 24 hours of inactivity
        inactivity_timeout = timedelta(hours=24)
        check_interval = timedelta(minutes=1)

        while not self.should_close:
            try:
                await workflow.wait_condition(
                    lambda: self.should_close or
                            (workflow.time() - self.last_activity_time) >= inactivity_timeout.total_seconds(),
                    timeout=check_interval,
                )
            except asyncio.TimeoutError:
                pass

            if (workflow.time() - self.last_activity_time) >= inactivity_timeout.total_seconds():
                workflow.logger.info(f"Game {game_id} auto-closing due to 24 hours of inactivity")
                break

        # Let in-flight moves and hints finish before closing
        await workflow.wait_condition(workflow.all_handlers_finished)

        self.game_state.status = GameStatus.CLOSED
        self.game_state.end_time = workflow.now()
        workflow.logger.info(f"Minesweeper workflow {game_id} completed")

    def _touch(self) -> None:
        self.last_activity_time = workflow.time()

    def _record_transition(self, previous: GameState, current: GameState) -> None:
        if previous.status == GameStatus.NOT_STARTED and current.status != GameStatus.NOT_STARTED:
            current.start_time = workflow.now()
        if current.status in (GameStatus.WON, GameStatus.LOST) and current.end_time is None:
            current.end_time = workflow.now()
            workflow.logger.info(f"Game {self.game_id} finished: {current.status.value}")

    @workflow.update
    async def make_move_update(self, move_request: MoveRequest) -> GameState:
        """Update to make a move and return the updated state."""
        self._touch()
        row, col, action = move_request.row, move_request.col, move_request.action

        # Moves and restarts read, replace and write game_state around an
        # activity call, so they must not interleave
        async with self._lock:
            if not is_playing(self.game_state):
                return self.game_state  # Return current state if game is over

            previous = self.game_state
            board = previous.board
            if not (0 <= row < board.rows and 0 <= col < board.cols):
                # A restart with a smaller board landed after this move was accepted
                raise ApplicationError(
                    f"Cell ({row}, {col}) is outside the {board.rows}x{board.cols} board", type="ValueError"
                )

            try:
                if action == 'reveal':
                    updated = await workflow.execute_activity(
                        reveal_cell,
                        args=[previous, row, col],
                        start_to_close_timeout=ACTIVITY_TIMEOUT,
                        retry_policy=BOARD_RETRY_POLICY,
                    )
                else:
                    updated = await workflow.execute_activity(
                        toggle_flag,
                        args=[previous, row, col, action],
                        start_to_close_timeout=ACTIVITY_TIMEOUT,
                        retry_policy=BOARD_RETRY_POLICY,
                    )
            except ActivityError as error:
                workflow.logger.error(f"Error processing move: {error}")
                raise ApplicationError(f"Move {action} ({row}, {col}) failed", type="MoveFailed") from error

            self._record_transition(previous, updated)
            self.game_state = updated
            return self.game_state

    @make_move_update.validator
    def validate_move(self, move_request: MoveRequest) -> None:
        if not self.game_state:
            raise ValueError("Game state not initialized")
        if move_request.action not in MOVE_ACTIONS:
            raise ValueError(f"Unknown action: {move_request.action}")
        board = self.game_state.board
        if not (0 <= move_request.row < board.rows and 0 <= move_request.col < board.cols):
            raise ValueError(
                f"Cell ({move_request.row}, {move_request.col}) is outside the {board.rows}x{board.cols} board"
            )

    @workflow.update
    async def restart_game_update(self, config: GameConfig) -> GameState:
        """Update to restart the game and return the new state."""
        self._touch()
        async with self._lock:
            if self.game_state and self.game_state.status == GameStatus.CLOSED:
                return self.game_state  # Cannot restart closed games

            new_board = await workflow.execute_activity(
                create_game_board,
                config,
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=BOARD_RETRY_POLICY,
            )
            self.game_state = new_game(self.game_id, new_board)
            return self.game_state

    @restart_game_update.validator
    def validate_restart(self, config: GameConfig) -> None:
        validate_config(config)

    @workflow.update
    async def request_hint_update(self) -> HintResult:
        """Ask for a hint on the current board. The board itself is not touched."""
        self._touch()
        if not self.game_state or not is_playing(self.game_state):
            raise ApplicationError("Cannot get a hint when the game is not active", type="GameNotActive")

        try:
            return await workflow.execute_activity(
                suggest_hint,
                build_hint_request(self.game_state.board),
                start_to_close_timeout=HINT_TIMEOUT,
                retry_policy=HINT_RETRY_POLICY,
            )
        except ActivityError as error:
            cause = error.cause
            error_type = cause.type if isinstance(cause, ApplicationError) else "HintFailed"
            message = cause.message if isinstance(cause, ApplicationError) else str(error)
            workflow.logger.warning(f"Hint for game {self.game_id} failed: {message}")
            raise ApplicationError(message, type=error_type) from error

    @workflow.signal
    def close_game_signal(self) -> None:
        """Signal to close the game."""
        self.should_close = True

    @workflow.query
    def get_game_state_query(self) -> GameState:
        """Query to get the current game state."""
        if not self.game_state:
            # Return a minimal valid state while initializing
            return GameState(
                id=self.game_id,
                board=None,  # type: ignore
                status=GameStatus.NOT_STARTED,
                flags_used=0,
                cells_revealed=0
            )
        return self.game_state
