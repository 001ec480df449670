"""
Grid coordinate model for the sticky-note board.

The board is COLS columns wide and grows downward without bound. Every note
occupies an axis-aligned rectangle in grid units. `collides` is the only
overlap test used by placement search and auto-arrange.
"""

import math
from dataclasses import dataclass

COLS = 48
MAX_ROWS = 1_000_000

NARROW_BREAKPOINT_PX = 640
DEFAULT_GAP_PX = 12
DEFAULT_PADDING_PX = 12
NARROW_GAP_PX = 8
NARROW_PADDING_PX = 8


class InvalidRect(ValueError):
    pass


@dataclass(frozen=True)
class Size:
    w: int
    h: int


@dataclass(frozen=True)
class Position:
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self):
        return self.x + self.w

    @property
    def bottom(self):
        return self.y + self.h

    @property
    def area(self):
        return self.w * self.h

    @property
    def size(self):
        return Size(self.w, self.h)

    def moved_to(self, position):
        return Rect(position.x, position.y, self.w, self.h)

    def as_dict(self):
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


def collides(a, b):
    if a.x + a.w <= b.x:
        return False
    if a.x >= b.x + b.w:
        return False
    if a.y + a.h <= b.y:
        return False
    if a.y >= b.y + b.h:
        return False
    return True


def is_valid_rect(rect, cols=COLS):
    if rect.x < 0 or rect.w < 1 or rect.x + rect.w > cols:
        return False
    return 0 <= rect.y <= MAX_ROWS and 1 <= rect.h <= MAX_ROWS


def validate_rect(rect, cols=COLS):
    if not is_valid_rect(rect, cols):
        raise InvalidRect(
            f"rect {rect.as_dict()} is outside the {cols}-column grid"
        )
    return rect


def _finite_int(value, default):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def clamp_size(w, h, cols=COLS):
    w = _finite_int(w, 1)
    h = _finite_int(h, 1)
    return Size(max(1, min(cols, w)), max(1, min(MAX_ROWS, h)))


def clamp_rect(x, y, w, h, cols=COLS):
    """Coerce stored or legacy values into a valid rect."""
    x = max(0, min(cols - 1, _finite_int(x, 0)))
    y = max(0, min(MAX_ROWS, _finite_int(y, 0)))
    w = max(1, min(cols - x, _finite_int(w, 1)))
    h = max(1, min(MAX_ROWS, _finite_int(h, 1)))
    return Rect(x, y, w, h)


@dataclass(frozen=True)
class GridMetrics:
    """Pixel geometry of the board at a given container width."""

    width: float
    col_width: float
    gap: float
    padding: float

    @property
    def row_height(self):
        return self.col_width

    @property
    def inset(self):
        return self.gap / 2

    @property
    def is_narrow(self):
        return self.width < NARROW_BREAKPOINT_PX

    @classmethod
    def from_container_width(cls, width, cols=COLS):
        width = max(0.0, float(width or 0))
        narrow = width < NARROW_BREAKPOINT_PX
        gap = NARROW_GAP_PX if narrow else DEFAULT_GAP_PX
        padding = NARROW_PADDING_PX if narrow else DEFAULT_PADDING_PX
        inner = max(0.0, width - padding * 2)
        return cls(width=width, col_width=max(1.0, inner / cols), gap=gap, padding=padding)
