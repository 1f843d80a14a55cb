from enum import Enum
from typing import List

from .level import Cell, Grid, Position


class CellView(str, Enum):
    PLAYER = 'player'
    PURSUER = 'pursuer'
    WALL = 'wall'
    EXIT = 'exit'
    FLOOR = 'floor'
    DIM = 'dim'
    REVEALED = 'revealed'
    HIDDEN = 'hidden'


def cell_view(grid: Grid, pos: Position, player: Position, pursuer: Position, sonar_active: bool) -> CellView:
    """Resolve what the player can see at one cell."""
    if not grid.in_bounds(pos):
        return CellView.HIDDEN

    dist = pos.distance(player)
    if pos == player:
        return CellView.PLAYER
    # An unseen pursuer falls through to whatever it is standing on
    if pos == pursuer and (sonar_active or dist < 2):
        return CellView.PURSUER

    content = grid[pos]
    if content == Cell.WALL:
        return CellView.WALL if (sonar_active or dist < 2) else CellView.HIDDEN
    if content == Cell.EXIT:
        return CellView.EXIT if (sonar_active or dist < 4) else CellView.HIDDEN

    if dist == 0:
        return CellView.FLOOR
    if dist < 3:
        return CellView.DIM
    if sonar_active and dist < 6:
        return CellView.REVEALED
    return CellView.HIDDEN


def visibility_map(grid: Grid, player: Position, pursuer: Position, sonar_active: bool) -> List[List[CellView]]:
    return [
        [cell_view(grid, Position(row, col), player, pursuer, sonar_active) for col in range(grid.size)]
        for row in range(grid.size)
    ]
