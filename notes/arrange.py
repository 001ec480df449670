"""
Board repacking.

`auto_arrange` keeps locked notes where they are and re-places every
unlocked note, largest first, with first-fit search. `pack_in_order` is the
read-only packing used for filtered views. Both are pure functions of their
inputs.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .grid import COLS, Rect, clamp_rect, clamp_size
from .placement import place
from .sizing import estimate_note_size


@dataclass(frozen=True)
class BoardItem:
    id: str
    rect: Rect
    locked: bool = False
    content: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)
    created_at: str = ""


@dataclass(frozen=True)
class _Sized:
    id: str
    locked: bool
    rect: Rect


def _normalize(item, cell_px, inset_px, measurer, cols):
    current = clamp_rect(item.rect.x, item.rect.y, item.rect.w, item.rect.h, cols)
    if item.locked:
        return _Sized(item.id, True, current)
    size = estimate_note_size(item.content, cell_px, inset_px, measurer, cols)
    size = clamp_size(size.w, size.h, cols)
    return _Sized(item.id, False, Rect(current.x, current.y, size.w, size.h))


def auto_arrange(
    items,
    cell_px: float,
    inset_px: float,
    measurer=None,
    cols: int = COLS,
) -> List[Tuple[str, Rect]]:
    """
    Repack a board. Returns (note id, new rect) for every unlocked note, in
    the order the notes were placed.
    """
    sized = [_normalize(item, cell_px, inset_px, measurer, cols) for item in items]

    locked = sorted((s for s in sized if s.locked), key=lambda s: (s.rect.y, s.rect.x))
    unlocked = sorted(
        (s for s in sized if not s.locked),
        key=lambda s: (-s.rect.area, s.rect.y, s.rect.x),
    )

    obstacles = [s.rect for s in locked]
    placements = []
    for s in unlocked:
        rect = place(obstacles, s.rect.size, cols)
        obstacles.append(rect)
        placements.append((s.id, rect))
    return placements


def filter_items(items, tag: Optional[str] = None, search: str = ""):
    needle = (search or "").strip().lower()
    selected = []
    for item in items:
        if tag and tag not in item.tags:
            continue
        if needle and needle not in (item.content or "").lower():
            continue
        selected.append(item)
    return selected


def pack_in_order(items, cols: int = COLS):
    """First-fit the items in list order using their stored sizes."""
    placed = []
    layout = {}
    for item in items:
        rect = place(placed, clamp_size(item.rect.w, item.rect.h, cols), cols)
        placed.append(rect)
        layout[item.id] = rect
    return layout


def reading_order(items, layout=None):
    layout = layout or {}

    def key(item):
        rect = layout.get(item.id, item.rect)
        return (rect.y, rect.x, item.created_at or "")

    return sorted(items, key=key)
