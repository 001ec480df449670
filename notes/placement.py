from .grid import COLS, Position, Rect, clamp_size, collides


def _candidate_rows(obstacles):
    # A note can only settle on row 0 or against some obstacle's top or bottom
    # edge; any other row is dominated by the nearest such row above it.
    rows = {0}
    for item in obstacles:
        rows.add(item.y)
        rows.add(item.y + item.h)
    return sorted(row for row in rows if row >= 0)


def find_first_fit(obstacles, size, cols=COLS):
    """
    First-fit position for a rect of `size` among `obstacles`.

    Rows are tried top to bottom and, within a row, columns left to right.
    When nothing fits the rect is appended below every obstacle.
    """
    obstacles = list(obstacles)
    size = clamp_size(size.w, size.h, cols)

    for y in _candidate_rows(obstacles):
        for x in range(0, cols - size.w + 1):
            probe = Rect(x, y, size.w, size.h)
            if not any(collides(probe, item) for item in obstacles):
                return Position(x, y)

    bottom = max((item.y + item.h for item in obstacles), default=0)
    return Position(0, bottom)


def place(obstacles, size, cols=COLS):
    size = clamp_size(size.w, size.h, cols)
    position = find_first_fit(obstacles, size, cols)
    return Rect(position.x, position.y, size.w, size.h)
