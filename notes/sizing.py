"""
Content size estimation for sticky notes.

A note's grid footprint is chosen by laying its text out at every candidate
width and scoring the resulting shapes: the smallest area wins, with
penalties for cards that are much taller than wide or wider than about two
thirds of the board. Text is measured with Pillow so the server and any
Python client agree on the result.
"""

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from django.conf import settings
from PIL import Image, ImageDraw, ImageFont

from .grid import COLS, Size

logger = logging.getLogger(__name__)

CARD_PADDING_PX = 16
HEADER_ROW_MIN_HEIGHT_PX = 28
HEADER_GAP_PX = 12
EXTRA_HEIGHT_PX = 8
MIN_CONTENT_WIDTH_PX = 24
MAX_HEIGHT_UNITS = 200

FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
]


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def grid_units_from_px(px, unit_px, gap_px=0):
    px = max(0, px)
    unit_px = max(1, unit_px)
    gap_px = max(0, gap_px)
    return max(1, math.ceil((px + gap_px) / (unit_px + gap_px)))


def grid_px_from_units(units, unit_px, gap_px=0):
    units = max(1, units)
    unit_px = max(1, unit_px)
    gap_px = max(0, gap_px)
    return units * unit_px + (units - 1) * gap_px


def fallback_size(cols=COLS):
    scale = cols / 24
    return Size(max(1, min(cols, _round_half_up(8 * scale))), max(1, _round_half_up(8 * scale)))


def _load_font(path, size):
    candidates = [path] if path else FONT_PATHS
    for fp in candidates:
        if fp and Path(fp).exists():
            return ImageFont.truetype(fp, size)
    if path:
        logger.warning("Font %s not found; using Pillow's default font", path)
    return ImageFont.load_default(size=size)


class TextProbe:
    """Measures wrapped text height on a scratch drawing surface."""

    def __init__(self, draw, font, line_px):
        self._draw = draw
        self._font = font
        self.line_px = line_px

    def _width(self, text):
        return self._draw.textlength(text, font=self._font)

    def _break_word(self, word, width_px):
        pieces = []
        current = ""
        for ch in word:
            if current and self._width(current + ch) > width_px:
                pieces.append(current)
                current = ch
            else:
                current += ch
        return pieces, current

    def wrap(self, text, width_px):
        """Lay text out like pre-wrap/break-word: keep newlines, wrap words, split long words."""
        lines = []
        for paragraph in text.split("\n"):
            if not paragraph.strip():
                lines.append("")
                continue
            current = ""
            for word in paragraph.split(" "):
                candidate = f"{current} {word}" if current else word
                if self._width(candidate) <= width_px:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                if self._width(word) > width_px:
                    pieces, current = self._break_word(word, width_px)
                    lines.extend(pieces)
                else:
                    current = word
            lines.append(current)
        return lines

    def height(self, text, width_px):
        return math.ceil(len(self.wrap(text, width_px)) * self.line_px)


class PillowTextMeasurer:
    """Off-screen text layout using the note card's font and line height."""

    def __init__(self, font_path=None, font_size=14, line_height=1.625):
        self.font_path = font_path
        self.font_size = font_size
        self.line_height = line_height
        self._font = None

    @property
    def font(self):
        if self._font is None:
            self._font = _load_font(self.font_path, self.font_size)
        return self._font

    @contextmanager
    def probe(self):
        image = Image.new("L", (1, 1))
        try:
            yield TextProbe(ImageDraw.Draw(image), self.font, self.font_size * self.line_height)
        finally:
            image.close()


@dataclass(frozen=True)
class _Candidate:
    w: int
    h: int
    score: int


def _score(w, h, wide_threshold):
    tall_penalty = max(0, h - w) * 2
    wide_penalty = max(0, w - wide_threshold)
    return w * h + tall_penalty + wide_penalty


def estimate_note_size(
    content: str,
    cell_px: float,
    inset_px: float,
    measurer: Optional[PillowTextMeasurer] = None,
    cols: int = COLS,
) -> Size:
    """
    Smallest readable grid footprint for `content`.

    Returns the fallback size when the content is blank or no measurer is
    available. Heights are capped at MAX_HEIGHT_UNITS rows.
    """
    fallback = fallback_size(cols)
    text = (content or "").strip()
    if not text or measurer is None:
        return fallback

    scale = cols / 24
    min_w = max(1, min(cols, _round_half_up(4 * scale)))
    max_w = max(min_w, cols)
    wide_threshold = max(min_w, min(cols, _round_half_up(16 * scale)))

    best = None
    with measurer.probe() as probe:
        for w in range(min_w, max_w + 1):
            item_px = grid_px_from_units(w, cell_px, 0)
            content_px = max(MIN_CONTENT_WIDTH_PX, item_px - inset_px * 2 - CARD_PADDING_PX * 2)
            text_px = probe.height(text, content_px)
            required_px = (
                inset_px * 2
                + CARD_PADDING_PX * 2
                + HEADER_ROW_MIN_HEIGHT_PX
                + HEADER_GAP_PX
                + text_px
                + EXTRA_HEIGHT_PX
            )
            h = min(MAX_HEIGHT_UNITS, grid_units_from_px(required_px, cell_px, 0))
            score = _score(w, h, wide_threshold)
            if best is None or score < best.score:
                best = _Candidate(w, h, score)

    return Size(best.w, best.h) if best else fallback


def default_measurer():
    if not getattr(settings, "NOTES_SERVER_MEASUREMENT", True):
        return None
    return PillowTextMeasurer(
        font_path=getattr(settings, "NOTES_FONT_PATH", None),
        font_size=getattr(settings, "NOTES_FONT_SIZE", 14),
        line_height=getattr(settings, "NOTES_LINE_HEIGHT", 1.625),
    )
