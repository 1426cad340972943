"""Unit tests for the geometry module."""

import math

from flowconnector.geometry import (
    Point,
    Rect,
    finite_or,
    is_finite_number,
    line_intersects_rect,
    safe_point,
)


class TestPoint:
    """Tests for Point."""

    def test_distance(self):
        """Test Euclidean distance."""
        assert Point(0, 0).distance_to(Point(3, 4)) == 5

    def test_angle_to(self):
        """Test angles follow canvas orientation (y down)."""
        assert Point(0, 0).angle_to(Point(10, 0)) == 0
        assert math.isclose(Point(0, 0).angle_to(Point(0, 10)), math.pi / 2)

    def test_is_finite(self):
        """Test finiteness check on both coordinates."""
        assert Point(1, 2).is_finite()
        assert not Point(float("nan"), 2).is_finite()
        assert not Point(1, float("inf")).is_finite()


class TestRect:
    """Tests for Rect."""

    def test_edges_and_center(self):
        """Test derived edges and center."""
        rect = Rect(10, 20, 100, 50)
        assert rect.x2 == 110
        assert rect.y2 == 70
        assert rect.center == Point(60, 45)

    def test_expanded(self):
        """Test padding grows every side."""
        assert Rect(0, 0, 10, 10).expanded(5) == Rect(-5, -5, 20, 20)

    def test_of_reads_attributes(self):
        """Test Rect.of reads any object with a bounding box."""

        class Node:
            x, y, width, height = 1, 2, 3, 4

        assert Rect.of(Node()) == Rect(1, 2, 3, 4)


class TestNumberHelpers:
    """Tests for finite-number helpers."""

    def test_is_finite_number(self):
        """Test numbers, NaN, infinity, bools and strings."""
        assert is_finite_number(3)
        assert is_finite_number(2.5)
        assert not is_finite_number(float("nan"))
        assert not is_finite_number(float("-inf"))
        assert not is_finite_number(True)
        assert not is_finite_number("3")

    def test_finite_or(self):
        """Test default replaces non-finite values."""
        assert finite_or(7, 0) == 7
        assert finite_or(float("nan"), 10) == 10
        assert finite_or(None, 1) == 1

    def test_safe_point_per_coordinate(self):
        """Test each coordinate falls back on its own."""
        assert safe_point(Point(float("nan"), 5), Point(0, 0)) == Point(0, 5)
        assert safe_point(None, Point(1, 1)) == Point(1, 1)


class TestLineIntersectsRect:
    """Tests for the padded bounding-box intersection test."""

    def test_segment_through_rect(self):
        """Test a segment crossing the rectangle."""
        assert line_intersects_rect(Point(-50, 25), Point(150, 25), Rect(0, 0, 100, 50))

    def test_segment_left_of_rect(self):
        """Test a segment entirely beyond the left side."""
        assert not line_intersects_rect(Point(-100, 0), Point(-20, 50), Rect(0, 0, 100, 50))

    def test_padding_counts(self):
        """Test a segment within the padding is a hit."""
        rect = Rect(0, 0, 100, 50)
        assert line_intersects_rect(Point(105, -20), Point(105, 80), rect)
        assert not line_intersects_rect(Point(105, -20), Point(105, 80), rect, padding=0)

    def test_corner_over_reports(self):
        """Test the bounding-box overlap reports a miss near the corner as a hit."""
        rect = Rect(0, 0, 100, 100)
        # Diagonal passing outside the top-right corner
        assert line_intersects_rect(Point(90, -40), Point(140, 10), rect)
