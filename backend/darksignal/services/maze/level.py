import random
from enum import IntEnum
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .constants import (
    EXIT_BAND,
    GRID_SIZE,
    PLAYER_CLEARING,
    PURSUER_CLEARING,
    WALL_PROBABILITY,
)


class Cell(IntEnum):
    FLOOR = 0
    WALL = 1
    EXIT = 3


class Position(NamedTuple):
    row: int
    col: int

    def distance(self, other: 'Position') -> int:
        """Manhattan distance to another position."""
        return abs(self.row - other.row) + abs(self.col - other.col)

    def to_dict(self):
        return {'row': self.row, 'col': self.col}


class Grid:
    """Square, immutable board of cells for a single run."""

    def __init__(self, rows: Sequence[Sequence[int]]):
        self._cells: Tuple[Tuple[Cell, ...], ...] = tuple(
            tuple(Cell(c) for c in row) for row in rows
        )
        self.size = len(self._cells)
        if any(len(row) != self.size for row in self._cells):
            raise ValueError('grid must be square')

    def __getitem__(self, pos) -> Cell:
        row, col = pos
        return self._cells[row][col]

    def __iter__(self) -> Iterator[Tuple[Cell, ...]]:
        return iter(self._cells)

    def in_bounds(self, pos) -> bool:
        row, col = pos
        return 0 <= row < self.size and 0 <= col < self.size

    def is_open(self, pos) -> bool:
        """True when the position is on the board and not a wall."""
        return self.in_bounds(pos) and self[pos] != Cell.WALL

    def to_list(self) -> List[List[int]]:
        return [[int(c) for c in row] for row in self._cells]


def generate_level(rng: Optional[random.Random] = None, size: int = GRID_SIZE) -> Tuple[Grid, Position]:
    """Build a fresh random board and return it with the exit position.

    Walls are scattered independently, then the two spawn clearings are
    opened and an exit is dropped in the far corner with the cells above and
    to its left opened. Nothing checks that the exit is reachable.
    """
    rng = rng or random.Random()
    cells = [[Cell.WALL if rng.random() < WALL_PROBABILITY else Cell.FLOOR for _ in range(size)] for _ in range(size)]

    for row, col in PLAYER_CLEARING + PURSUER_CLEARING:
        cells[row][col] = Cell.FLOOR

    exit_row = rng.choice(EXIT_BAND)
    exit_col = rng.choice(EXIT_BAND)
    cells[exit_row][exit_col] = Cell.EXIT
    if exit_row > 0:
        cells[exit_row - 1][exit_col] = Cell.FLOOR
    if exit_col > 0:
        cells[exit_row][exit_col - 1] = Cell.FLOOR

    return Grid(cells), Position(exit_row, exit_col)
