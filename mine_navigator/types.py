"""Type definitions for Mine Navigator."""
from dataclasses import dataclass
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


@dataclass
class Cell:
    """Represents a single cell on the minesweeper board."""
    row: int
    col: int
    is_mine: bool = False
    is_revealed: bool = False
    is_flagged: bool = False
    adjacent_mines: int = 0
    exploded: bool = False


@dataclass
class GameBoard:
    """Represents the game board."""
    cells: List[List[Cell]]
    rows: int
    cols: int
    mine_count: int


@dataclass
class RevealResult:
    """Outcome of revealing a cell: the new board plus the deltas a session needs."""
    board: GameBoard
    revealed_count_change: int = 0
    exploded: bool = False
    flags_cleared: int = 0


@dataclass
class FlagResult:
    """Outcome of toggling a flag."""
    board: GameBoard
    flag_count_change: int = 0


class GameStatus(str, Enum):
    """Possible game states."""
    NOT_STARTED = 'NOT_STARTED'
    IN_PROGRESS = 'IN_PROGRESS'
    WON = 'WON'
    LOST = 'LOST'
    CLOSED = 'CLOSED'


@dataclass
class GameState:
    """Current state of the game."""
    id: str
    board: GameBoard
    status: GameStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    flags_used: int = 0
    cells_revealed: int = 0


MOVE_ACTIONS = ('reveal', 'flag', 'unflag')


@dataclass
class MoveRequest:
    """Request to make a move."""
    row: int
    col: int
    action: str  # 'reveal', 'flag', 'unflag'


@dataclass
class GameConfig:
    """Configuration for creating a new game."""
    rows: int
    cols: int
    mine_count: int


DIFFICULTY_LEVELS: Dict[str, GameConfig] = {
    'easy': GameConfig(rows=8, cols=8, mine_count=10),
    'medium': GameConfig(rows=10, cols=10, mine_count=12),
    'hard': GameConfig(rows=16, cols=16, mine_count=40),
}


class HintAction(str, Enum):
    """Moves a hint may suggest."""
    REVEAL = 'reveal'
    FLAG = 'flag'


@dataclass
class HintRequest:
    """Board snapshot and game parameters sent to the hint oracle."""
    board_string: str
    rows: int
    cols: int
    total_mines: int


@dataclass
class HintResult:
    """A suggested move. Only ever displayed, never applied to the board."""
    action_type: HintAction
    row: int
    col: int
    reasoning: str
    is_confident: bool
