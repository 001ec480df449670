"""
Tests for first-fit placement search.
"""

import random

import pytest

from notes.grid import COLS, Position, Rect, Size, collides, is_valid_rect
from notes.placement import find_first_fit, place


class TestFirstFit:
    """Tests for the row-major scan order"""

    def test_empty_board_places_at_origin(self):
        assert find_first_fit([], Size(16, 16)) == Position(0, 0)

    def test_fills_row_before_going_down(self):
        first = Rect(0, 0, 10, 10)
        assert find_first_fit([first], Size(10, 10)) == Position(10, 0)

    def test_full_width_row_pushes_below(self):
        banner = Rect(0, 0, COLS, 5)
        assert find_first_fit([banner], Size(10, 5)) == Position(0, 5)

    def test_gap_between_obstacles_is_used(self):
        obstacles = [Rect(0, 0, 10, 10), Rect(20, 0, 28, 10)]
        assert find_first_fit(obstacles, Size(10, 4)) == Position(10, 0)

    def test_settles_on_obstacle_bottom_edge(self):
        obstacles = [Rect(0, 0, 30, 7), Rect(30, 0, 18, 3)]
        assert find_first_fit(obstacles, Size(18, 4)) == Position(30, 3)

    def test_oversized_width_is_clamped(self):
        rect = place([], Size(80, 3))
        assert rect == Rect(0, 0, COLS, 3)

    def test_obstacles_iterable_is_consumed_once(self):
        obstacles = (r for r in [Rect(0, 0, COLS, 2)])
        assert find_first_fit(obstacles, Size(4, 4)) == Position(0, 2)


class TestPlacementGuarantees:
    """Tests that placements stay in bounds and never overlap"""

    @pytest.mark.parametrize("seed", range(5))
    def test_sequential_placements_never_overlap(self, seed):
        rng = random.Random(seed)
        placed = []
        for _ in range(40):
            size = Size(rng.randint(1, COLS), rng.randint(1, 12))
            rect = place(placed, size)
            assert is_valid_rect(rect)
            assert rect.size == size
            assert not any(collides(rect, other) for other in placed)
            placed.append(rect)

    def test_result_is_deterministic(self):
        obstacles = [Rect(3, 0, 9, 4), Rect(14, 2, 6, 6), Rect(0, 6, 20, 3)]
        assert place(obstacles, Size(7, 5)) == place(list(obstacles), Size(7, 5))

    def test_does_not_mutate_obstacles(self):
        obstacles = [Rect(0, 0, 10, 10)]
        place(obstacles, Size(5, 5))
        assert obstacles == [Rect(0, 0, 10, 10)]
