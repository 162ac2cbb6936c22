"""Exceptions raised by the board engine and the hint arbiter."""


class MinesweeperError(Exception):
    """Base class for all Mine Navigator errors."""


class InvalidBoardConfigError(MinesweeperError, ValueError):
    """Board dimensions or mine count are out of range."""


class InvalidMoveError(MinesweeperError, ValueError):
    """A move targets a cell outside the board."""


class HintError(MinesweeperError):
    """Base class for failures while producing a hint."""


class OracleUnavailableError(HintError):
    """The hint oracle could not be reached or returned an HTTP error."""


class OracleMalformedError(HintError):
    """The hint oracle replied with something that does not match the contract."""


class OracleInconsistentError(HintError):
    """The oracle's move is well-formed but not playable on the current board."""


class NoValidTargetError(HintError):
    """There is no hidden cell left to suggest."""
