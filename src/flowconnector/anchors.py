"""
Anchor resolution for connectors.

Finds where a connector attaches to a frame's boundary and the offset point
obtained by pushing that anchor outward along the side's normal.
"""

from enum import Enum
from typing import Optional, Tuple

from .config import ConnectionConfig
from .geometry import Point, Rect, finite_or
from .models import ConnectionPoints
from .router import plan_route


class Side(Enum):
    """Which side of a frame an anchor is on."""

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


# Outward unit normal of each side (y grows downward)
_NORMALS = {
    Side.TOP: (0, -1),
    Side.RIGHT: (1, 0),
    Side.BOTTOM: (0, 1),
    Side.LEFT: (-1, 0),
}

_OPPOSITE = {
    Side.TOP: Side.BOTTOM,
    Side.BOTTOM: Side.TOP,
    Side.LEFT: Side.RIGHT,
    Side.RIGHT: Side.LEFT,
}


def _clean(rect: Rect) -> Rect:
    return Rect(
        finite_or(rect.x, 0),
        finite_or(rect.y, 0),
        finite_or(rect.width, 0),
        finite_or(rect.height, 0),
    )


def side_midpoint(rect: Rect, side: Side) -> Point:
    """Midpoint of the given side of rect."""
    if side is Side.TOP:
        return Point(rect.center_x, rect.y)
    if side is Side.RIGHT:
        return Point(rect.x2, rect.center_y)
    if side is Side.BOTTOM:
        return Point(rect.center_x, rect.y2)
    return Point(rect.x, rect.center_y)


def auto_side(rect: Rect, other: Rect, is_start: bool = True) -> Side:
    """
    Pick the side facing the other frame.

    The direction is always measured from the first frame of the connection
    to the second, so for the end frame (is_start=False) ``rect`` is the
    second frame and ``other`` the first. Horizontal wins only when |dx| is
    strictly greater than |dy|.
    """
    first, second = (rect, other) if is_start else (other, rect)
    dx = second.center_x - first.center_x
    dy = second.center_y - first.center_y

    if abs(dx) > abs(dy):
        toward_second = Side.RIGHT if dx > 0 else Side.LEFT
    else:
        toward_second = Side.BOTTOM if dy > 0 else Side.TOP

    if is_start:
        return toward_second
    return _OPPOSITE[toward_second]


def resolve_anchor(
    rect: Rect,
    position: str,
    offset: float,
    other: Optional[Rect] = None,
    is_start: bool = True,
) -> Tuple[Point, Point]:
    """
    Resolve the anchor and offset point of one end of a connection.

    Args:
        rect: Frame the anchor belongs to.
        position: "auto", "top", "right", "bottom" or "left".
        offset: Distance the offset point is pushed outward (>= 0).
        other: The frame at the other end; required for "auto".
        is_start: Whether rect is the first frame of the connection.

    Returns:
        (anchor, offset_point). Unknown positions, or "auto" without another
        frame, resolve to the frame's center with no standoff.
    """
    rect = _clean(rect)
    offset = finite_or(offset, 0)

    if position == "auto" and other is not None:
        side = auto_side(rect, _clean(other), is_start)
    else:
        try:
            side = Side(position)
        except ValueError:
            center = rect.center
            return center, center

    anchor = side_midpoint(rect, side)
    nx, ny = _NORMALS[side]
    return anchor, Point(anchor.x + nx * offset, anchor.y + ny * offset)


def calculate_connection_points(
    rect1: Rect, rect2: Rect, config: ConnectionConfig
) -> ConnectionPoints:
    """Resolve both anchors and plan the route between two frames."""
    start_point, start_offset_point = resolve_anchor(
        rect1, config.start_position, config.connection_offset, rect2, True
    )
    end_point, end_offset_point = resolve_anchor(
        rect2, config.end_position, config.connection_offset, rect1, False
    )

    waypoints = plan_route(
        _clean(rect1),
        _clean(rect2),
        start_offset_point,
        end_offset_point,
        config.avoid_overlap,
        finite_or(config.connection_offset, 0),
    )

    return ConnectionPoints(
        start_point=start_point,
        end_point=end_point,
        start_offset_point=start_offset_point,
        end_offset_point=end_offset_point,
        waypoints=waypoints,
    )
