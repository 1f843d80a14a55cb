from .level import Grid, Position


def _sign(n: int) -> int:
    return 1 if n > 0 else -1


def step_pursuer(grid: Grid, pursuer: Position, player: Position) -> Position:
    """Advance the pursuer at most one cell toward the player.

    Greedy axis priority: close the larger delta first (columns win ties),
    fall back to the other axis when the preferred step hits a wall or the
    edge, otherwise stay put. There is no lookahead, so concave walls can
    stall the pursuer indefinitely.
    """
    d_row = player.row - pursuer.row
    d_col = player.col - pursuer.col

    row_step = Position(pursuer.row + _sign(d_row), pursuer.col) if d_row else None
    col_step = Position(pursuer.row, pursuer.col + _sign(d_col)) if d_col else None

    if abs(d_row) > abs(d_col):
        candidates = (row_step, col_step)
    else:
        candidates = (col_step, row_step)

    for candidate in candidates:
        if candidate is not None and grid.is_open(candidate):
            return candidate
    return pursuer
