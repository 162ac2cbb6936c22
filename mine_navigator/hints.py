"""Hint arbiter: asks the oracle for a move and checks it against the board.

Board serialization, one character per cell, rows joined with newlines::

    F    flagged
    ?    hidden
    X    revealed mine (only after a loss)
    E    revealed, no adjacent mines
    1-8  revealed, that many adjacent mines
"""
import logging
from typing import Optional

from mine_navigator.errors import (
    NoValidTargetError,
    OracleInconsistentError,
    OracleMalformedError,
    OracleUnavailableError,
)
from mine_navigator.oracle import HintOracle, OracleRequest, parse_oracle_reply
from mine_navigator.types import Cell, GameBoard, HintAction, HintRequest, HintResult

logger = logging.getLogger(__name__)

HIDDEN = '?'
FLAGGED = 'F'
EMPTY = 'E'
MINE = 'X'


def cell_symbol(cell: Cell) -> str:
    if cell.is_flagged:
        return FLAGGED
    if not cell.is_revealed:
        return HIDDEN
    if cell.is_mine:
        return MINE
    if cell.adjacent_mines == 0:
        return EMPTY
    return str(cell.adjacent_mines)


def board_to_string(board: GameBoard) -> str:
    return '\n'.join(''.join(cell_symbol(cell) for cell in board_row) for board_row in board.cells)


def build_hint_request(board: GameBoard) -> HintRequest:
    return HintRequest(
        board_string=board_to_string(board),
        rows=board.rows,
        cols=board.cols,
        total_mines=board.mine_count,
    )


def _symbol_at(board_string: str, row: int, col: int) -> Optional[str]:
    lines = board_string.split('\n')
    if not 0 <= row < len(lines) or not 0 <= col < len(lines[row]):
        return None
    return lines[row][col]


def check_hint(hint: HintResult, request: HintRequest) -> None:
    """Raise OracleInconsistentError unless the hint is playable on the board."""
    if not (0 <= hint.row < request.rows and 0 <= hint.col < request.cols):
        raise OracleInconsistentError(
            f"cell ({hint.row}, {hint.col}) is outside the {request.rows}x{request.cols} board"
        )

    symbol = _symbol_at(request.board_string, hint.row, hint.col)
    if symbol is None:
        raise OracleInconsistentError(f"cell ({hint.row}, {hint.col}) is missing from the board string")

    if hint.action_type == HintAction.REVEAL and symbol != HIDDEN:
        raise OracleInconsistentError(
            f"cannot reveal cell ({hint.row}, {hint.col}) showing '{symbol}'"
        )
    if hint.action_type == HintAction.FLAG and symbol not in (HIDDEN, FLAGGED):
        raise OracleInconsistentError(
            f"cannot flag cell ({hint.row}, {hint.col}) showing '{symbol}'"
        )


def fallback_hint(board_string: str, reason: str) -> HintResult:
    """Suggest revealing the first hidden cell in row-major order."""
    for row, line in enumerate(board_string.split('\n')):
        col = line.find(HIDDEN)
        if col != -1:
            return HintResult(
                action_type=HintAction.REVEAL,
                row=row,
                col=col,
                reasoning=f"Suggestion rejected ({reason}); falling back to the first hidden cell.",
                is_confident=False,
            )
    raise NoValidTargetError(f"No hidden cell left to suggest after: {reason}")


def request_hint(request: HintRequest, oracle: HintOracle,
                 fallback_on_error: bool = False) -> HintResult:
    """Get a move from the oracle, validated against the board.

    Moves that do not fit the board are replaced by :func:`fallback_hint`.
    Oracle transport and contract failures propagate unless
    ``fallback_on_error`` is set, in which case they are recovered the same
    way.

    Raises:
        OracleUnavailableError: The oracle could not be reached.
        OracleMalformedError: The reply does not match the output contract.
        NoValidTargetError: A fallback was needed but no hidden cell is left.
    """
    oracle_request = OracleRequest(
        board_string=request.board_string,
        rows=request.rows,
        cols=request.cols,
        total_mines=request.total_mines,
    )

    try:
        reply = parse_oracle_reply(oracle(oracle_request))
    except (OracleUnavailableError, OracleMalformedError) as error:
        if not fallback_on_error:
            raise
        logger.warning(f"Hint oracle failed, using fallback: {error}")
        return fallback_hint(request.board_string, f"oracle error: {error}")

    hint = HintResult(
        action_type=HintAction(reply.action_type),
        row=reply.row,
        col=reply.col,
        reasoning=reply.reasoning,
        is_confident=reply.is_confident,
    )

    try:
        check_hint(hint, request)
    except OracleInconsistentError as error:
        logger.warning(f"Hint oracle suggested an invalid move, using fallback: {error}")
        return fallback_hint(request.board_string, str(error))

    return hint
