"""Tests for backend.overlay.geometry"""

import pytest

from backend.overlay.geometry import (
    COLLISION_MARGIN,
    Rect,
    map_box,
    place_patch,
)


class TestMapBox:

    def test_full_page_box(self):
        rect = map_box((0, 0, 1000, 1000), 600, 800)
        assert rect == Rect(0, 0, 600, 800)

    def test_flips_y_axis(self):
        """A box near the top of the page ends up with a large y"""
        rect = map_box((100, 100, 200, 400), 595, 842)
        assert rect.x == pytest.approx(59.5)
        assert rect.width == pytest.approx(178.5)
        assert rect.y == pytest.approx(842 - 168.4)
        assert rect.height == pytest.approx(84.2)

    def test_edges_scale_proportionally(self):
        rect = map_box((250, 100, 500, 900), 400, 1000)
        assert rect.right == pytest.approx(900 / 1000 * 400)
        assert rect.top == pytest.approx((1000 - 250) / 1000 * 1000)

    def test_inverted_box_is_passed_through(self):
        rect = map_box((500, 600, 400, 300), 1000, 1000)
        assert rect.width < 0
        assert rect.height < 0


class TestOverlap:

    def test_overlapping(self):
        assert Rect(0, 0, 10, 10).overlaps(Rect(5, 5, 10, 10))

    def test_edge_touching_is_not_overlap(self):
        assert not Rect(0, 0, 10, 10).overlaps(Rect(10, 0, 10, 10))
        assert not Rect(0, 0, 10, 10).overlaps(Rect(0, 10, 10, 10))

    def test_disjoint(self):
        assert not Rect(0, 0, 10, 10).overlaps(Rect(50, 50, 5, 5))

    def test_contained(self):
        assert Rect(0, 0, 100, 100).overlaps(Rect(10, 10, 5, 5))

    def test_inset_shrinks_every_side(self):
        inner = Rect(10, 20, 100, 50).inset(4)
        assert inner == Rect(14, 24, 92, 42)
        assert inner.top == 66


class TestPlacePatch:

    def test_non_overlapping_rects_stay_put(self):
        placed = []
        rects = [Rect(0, 0, 50, 20), Rect(100, 0, 50, 20), Rect(0, 100, 50, 20)]
        results = [place_patch(r, placed) for r in rects]

        assert [p.rect for p in results] == rects
        assert all(p.resolved and p.attempts == 0 for p in results)
        assert placed == rects

    def test_identical_rect_is_pushed_below(self):
        placed = []
        first = place_patch(Rect(50, 700, 150, 40), placed)
        second = place_patch(Rect(50, 700, 150, 40), placed)

        assert first.rect == Rect(50, 700, 150, 40)
        assert second.resolved
        assert second.attempts == 1
        assert first.rect.y - second.rect.y >= 40 + COLLISION_MARGIN
        assert not second.rect.overlaps(first.rect)

    def test_cascades_past_several_patches(self):
        placed = []
        place_patch(Rect(0, 100, 100, 20), placed, margin=5)
        place_patch(Rect(0, 75, 100, 20), placed, margin=5)
        result = place_patch(Rect(0, 100, 100, 20), placed, margin=5)

        assert result.resolved
        assert result.attempts == 2
        assert all(not result.rect.overlaps(r) for r in placed[:-1])

    def test_gives_up_after_max_attempts(self):
        # A very tall patch below the candidate keeps catching it
        placed = [Rect(0, 0, 100, 100)]
        blocker_below = [Rect(0, -10000, 100, 9990)]
        placed.extend(blocker_below)
        result = place_patch(Rect(0, 50, 100, 20), placed, margin=0, max_attempts=1)

        assert not result.resolved
        assert result.attempts == 1
        assert placed[-1] == result.rect

    def test_zero_attempts_keeps_natural_position(self):
        placed = [Rect(0, 0, 10, 10)]
        result = place_patch(Rect(5, 5, 10, 10), placed, max_attempts=0)
        assert result.rect == Rect(5, 5, 10, 10)
        assert not result.resolved

    def test_appends_final_rect(self):
        placed = [Rect(0, 0, 10, 10)]
        result = place_patch(Rect(0, 0, 10, 10), placed)
        assert len(placed) == 2
        assert placed[-1] is result.rect
