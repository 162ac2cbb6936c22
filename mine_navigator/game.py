"""Game session bookkeeping on top of the board engine."""
import copy
import logging

from mine_navigator import board as engine
from mine_navigator.errors import InvalidMoveError
from mine_navigator.types import GameBoard, GameState, GameStatus

logger = logging.getLogger(__name__)

PLAYING_STATUSES = (GameStatus.NOT_STARTED, GameStatus.IN_PROGRESS)


def new_game(game_id: str, board: GameBoard) -> GameState:
    return GameState(
        id=game_id,
        board=board,
        status=GameStatus.NOT_STARTED,
        flags_used=0,
        cells_revealed=0
    )


def is_playing(game_state: GameState) -> bool:
    return game_state.status in PLAYING_STATUSES


def safe_cell_count(board: GameBoard) -> int:
    return board.rows * board.cols - board.mine_count


def _flag_remaining_mines(board: GameBoard) -> None:
    for board_row in board.cells:
        for cell in board_row:
            if cell.is_mine and not cell.is_flagged:
                cell.is_flagged = True


def apply_reveal(game_state: GameState, row: int, col: int) -> GameState:
    """Reveal a cell and update status and counters from the returned deltas.

    On a win every mine left unflagged gets flagged so the final board shows
    the full layout.
    """
    if not is_playing(game_state):
        return game_state

    result = engine.reveal_cell(game_state.board, row, col)
    if result.board is game_state.board:
        return game_state

    new_game_state = copy.copy(game_state)
    new_game_state.board = result.board
    new_game_state.status = GameStatus.IN_PROGRESS

    if result.exploded:
        new_game_state.status = GameStatus.LOST
        new_game_state.flags_used = game_state.flags_used - result.flags_cleared
        logger.info(f"Game {game_state.id} lost at ({row}, {col})")
        return new_game_state

    new_game_state.cells_revealed = game_state.cells_revealed + result.revealed_count_change

    if new_game_state.cells_revealed == safe_cell_count(result.board):
        new_game_state.status = GameStatus.WON
        _flag_remaining_mines(new_game_state.board)
        new_game_state.flags_used = result.board.mine_count
        logger.info(f"Game {game_state.id} won")

    return new_game_state


def apply_flag(game_state: GameState, row: int, col: int, action: str) -> GameState:
    """Place or remove a flag.

    ``flag`` only places a flag while fewer than ``mine_count`` flags are in
    use and ``unflag`` only removes one; anything else is a no-op.
    """
    if not is_playing(game_state):
        return game_state

    board = game_state.board
    if not engine.in_bounds(board, row, col):
        raise InvalidMoveError(f"Cell ({row}, {col}) is outside a {board.rows}x{board.cols} board")

    cell = board.cells[row][col]
    if action == 'flag':
        if cell.is_flagged or game_state.flags_used >= board.mine_count:
            return game_state
    elif action == 'unflag':
        if not cell.is_flagged:
            return game_state
    else:
        raise ValueError(f"Unknown flag action: {action}")

    result = engine.toggle_flag(game_state.board, row, col)
    if result.flag_count_change == 0:
        return game_state

    new_game_state = copy.copy(game_state)
    new_game_state.board = result.board
    new_game_state.status = GameStatus.IN_PROGRESS
    new_game_state.flags_used = game_state.flags_used + result.flag_count_change
    return new_game_state
