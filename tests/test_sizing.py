"""
Tests for content size estimation.

Most cases use a monospace fake measurer so the expected footprints can be
worked out by hand; a few run against Pillow's bundled default font.
"""

from unittest.mock import patch

import pytest
from PIL import Image

from notes.grid import COLS, Size
from notes.sizing import (
    MAX_HEIGHT_UNITS,
    PillowTextMeasurer,
    default_measurer,
    estimate_note_size,
    fallback_size,
    grid_px_from_units,
    grid_units_from_px,
)

CELL_PX = 24
INSET_PX = 6


class TestUnitConversion:
    """Tests for px <-> grid unit helpers"""

    def test_units_round_up(self):
        assert grid_units_from_px(25, 24) == 2
        assert grid_units_from_px(24, 24) == 1

    def test_units_never_below_one(self):
        assert grid_units_from_px(0, 24) == 1

    def test_px_from_units_with_gap(self):
        assert grid_px_from_units(3, 10, 2) == 34


class TestFallback:
    """Tests for the default footprint"""

    def test_fallback_scales_with_columns(self):
        assert fallback_size() == Size(16, 16)
        assert fallback_size(24) == Size(8, 8)

    @pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
    def test_blank_content_uses_fallback(self, content, measurer):
        assert estimate_note_size(content, CELL_PX, INSET_PX, measurer) == Size(16, 16)
        assert measurer.probes == 0

    def test_missing_measurer_uses_fallback(self):
        assert estimate_note_size("hello", CELL_PX, INSET_PX, None) == Size(16, 16)


class TestEstimate:
    """Tests for the scored width search"""

    def test_short_text_gets_narrowest_card(self, measurer):
        # 8 columns fit "hello" on one line: 112px of card -> 5 rows
        assert estimate_note_size("hello", CELL_PX, INSET_PX, measurer) == Size(8, 5)

    def test_one_probe_per_estimate(self, measurer):
        estimate_note_size("hello world", CELL_PX, INSET_PX, measurer)
        assert measurer.probes == 1

    def test_longer_text_grows(self, measurer):
        short = estimate_note_size("hello", CELL_PX, INSET_PX, measurer)
        long = estimate_note_size("word " * 400, CELL_PX, INSET_PX, measurer)
        assert long.w * long.h > short.w * short.h

    def test_height_is_capped(self, measurer):
        size = estimate_note_size("x" * 200000, CELL_PX, INSET_PX, measurer)
        assert size.h == MAX_HEIGHT_UNITS
        assert size == Size(8, MAX_HEIGHT_UNITS)

    @pytest.mark.parametrize("length", [1, 40, 300, 2500])
    def test_result_within_grid(self, measurer, length):
        size = estimate_note_size("a" * length, CELL_PX, INSET_PX, measurer)
        assert 8 <= size.w <= COLS
        assert 1 <= size.h <= MAX_HEIGHT_UNITS

    def test_deterministic(self, measurer):
        text = "Call the landlord\nabout the boiler"
        first = estimate_note_size(text, CELL_PX, INSET_PX, measurer)
        assert estimate_note_size(text, CELL_PX, INSET_PX, measurer) == first


class TestPillowMeasurer:
    """Tests against Pillow's default font"""

    def test_estimate_with_real_font(self):
        size = estimate_note_size("Buy milk and eggs", CELL_PX, INSET_PX, PillowTextMeasurer())
        assert 8 <= size.w <= COLS
        assert 1 <= size.h <= MAX_HEIGHT_UNITS

    def test_wrap_keeps_blank_lines(self):
        with PillowTextMeasurer().probe() as probe:
            assert probe.wrap("a\n\nb", 500) == ["a", "", "b"]

    def test_wrap_breaks_long_words(self):
        with PillowTextMeasurer().probe() as probe:
            lines = probe.wrap("x" * 200, 60)
        assert len(lines) > 1
        assert "".join(lines) == "x" * 200

    def test_probe_surface_closed_on_error(self):
        measurer = PillowTextMeasurer()
        with patch.object(Image.Image, "close", autospec=True) as close:
            with pytest.raises(RuntimeError):
                with measurer.probe():
                    raise RuntimeError("layout failed")
        assert close.call_count == 1

    def test_missing_font_path_falls_back(self):
        measurer = PillowTextMeasurer(font_path="/nonexistent/font.ttf")
        with measurer.probe() as probe:
            assert probe.height("hello", 200) > 0


class TestDefaultMeasurer:
    """Tests for the settings-driven server measurer"""

    def test_disabled_by_setting(self, settings):
        settings.NOTES_SERVER_MEASUREMENT = False
        assert default_measurer() is None

    def test_uses_configured_font_size(self, settings):
        settings.NOTES_SERVER_MEASUREMENT = True
        settings.NOTES_FONT_SIZE = 18
        assert default_measurer().font_size == 18
