"""Unit tests for anchor resolution."""

import pytest

from flowconnector.anchors import (
    Side,
    auto_side,
    calculate_connection_points,
    resolve_anchor,
    side_midpoint,
)
from flowconnector.config import ConnectionConfig
from flowconnector.geometry import Point, Rect


class TestSideMidpoint:
    """Tests for side midpoints."""

    @pytest.mark.parametrize(
        "side,expected",
        [
            (Side.TOP, Point(50, 0)),
            (Side.RIGHT, Point(100, 25)),
            (Side.BOTTOM, Point(50, 50)),
            (Side.LEFT, Point(0, 25)),
        ],
    )
    def test_midpoints(self, side, expected):
        """Test each side's midpoint."""
        assert side_midpoint(Rect(0, 0, 100, 50), side) == expected


class TestResolveAnchor:
    """Tests for resolve_anchor."""

    def test_explicit_right_with_offset(self):
        """Test right side anchor and offset point."""
        anchor, offset = resolve_anchor(Rect(0, 0, 100, 50), "right", 20)
        assert anchor == Point(100, 25)
        assert offset == Point(120, 25)

    def test_explicit_top_pushes_up(self):
        """Test top offset points move toward negative y."""
        anchor, offset = resolve_anchor(Rect(0, 0, 100, 50), "top", 10)
        assert anchor == Point(50, 0)
        assert offset == Point(50, -10)

    def test_zero_offset(self):
        """Test offset point equals the anchor without a standoff."""
        anchor, offset = resolve_anchor(Rect(0, 0, 100, 50), "left", 0)
        assert anchor == offset == Point(0, 25)

    def test_unknown_position_uses_center(self):
        """Test an unknown position resolves to the center."""
        anchor, offset = resolve_anchor(Rect(0, 0, 100, 50), "diagonal", 20)
        assert anchor == offset == Point(50, 25)

    def test_auto_without_other_uses_center(self):
        """Test auto with no other frame resolves to the center."""
        anchor, _ = resolve_anchor(Rect(0, 0, 100, 50), "auto", 20)
        assert anchor == Point(50, 25)

    def test_deterministic(self):
        """Test identical inputs give identical results."""
        rect, other = Rect(3, 7, 40, 90), Rect(200, 100, 50, 50)
        first = resolve_anchor(rect, "auto", 15, other, True)
        second = resolve_anchor(rect, "auto", 15, other, True)
        assert first == second

    def test_nan_rect_is_sanitized(self):
        """Test non-finite rectangle values do not leak into the anchor."""
        anchor, offset = resolve_anchor(Rect(float("nan"), 0, 100, 50), "right", 20)
        assert anchor == Point(100, 25)
        assert offset.is_finite()


class TestAutoSide:
    """Tests for automatic side selection."""

    def test_horizontal_pair(self):
        """Test facing sides for frames side by side."""
        a, b = Rect(0, 0, 100, 60), Rect(300, 0, 100, 60)
        assert auto_side(a, b, True) is Side.RIGHT
        assert auto_side(b, a, False) is Side.LEFT

    def test_vertical_pair(self):
        """Test facing sides for stacked frames."""
        a, b = Rect(0, 0, 100, 60), Rect(0, 300, 100, 60)
        assert auto_side(a, b, True) is Side.BOTTOM
        assert auto_side(b, a, False) is Side.TOP

    def test_tie_goes_vertical(self):
        """Test |dx| == |dy| chooses a vertical side."""
        a, b = Rect(0, 0, 100, 100), Rect(200, 200, 100, 100)
        assert auto_side(a, b, True) is Side.BOTTOM
        assert auto_side(b, a, False) is Side.TOP

    def test_end_side_opposes_start(self):
        """Test the end side is opposite the start side for any placement."""
        opposite = {
            Side.TOP: Side.BOTTOM,
            Side.BOTTOM: Side.TOP,
            Side.LEFT: Side.RIGHT,
            Side.RIGHT: Side.LEFT,
        }
        a = Rect(0, 0, 100, 60)
        for b in [Rect(-300, 20, 50, 50), Rect(40, -400, 80, 80), Rect(500, 500, 10, 10)]:
            assert auto_side(b, a, False) is opposite[auto_side(a, b, True)]


class TestCalculateConnectionPoints:
    """Tests for the combined anchor and route stage."""

    def test_side_by_side_auto(self, side_by_side):
        """Test auto anchors between frames on a row."""
        config = ConnectionConfig(connection_offset=20)
        points = calculate_connection_points(*side_by_side, config)
        assert points.start_point == Point(100, 30)
        assert points.end_point == Point(300, 30)
        assert points.start_offset_point == Point(120, 30)
        assert points.end_offset_point == Point(280, 30)
        assert points.waypoints == []

    def test_explicit_positions(self, side_by_side):
        """Test explicit start and end sides are honored."""
        config = ConnectionConfig(
            start_position="top", end_position="top", connection_offset=0, avoid_overlap=False
        )
        points = calculate_connection_points(*side_by_side, config)
        assert points.start_point == Point(50, 0)
        assert points.end_point == Point(350, 0)
