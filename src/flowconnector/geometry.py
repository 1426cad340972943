"""
Geometry primitives for connector routing.

Points and rectangles are plain value objects in canvas coordinates
(x grows to the right, y grows downward). Rectangles are axis-aligned and
never rotated.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from .config import INTERSECTION_PADDING


@dataclass(frozen=True)
class Point:
    """A point on the canvas."""

    x: float
    y: float

    def is_finite(self) -> bool:
        return is_finite_number(self.x) and is_finite_number(self.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def angle_to(self, other: "Point") -> float:
        """Angle in radians of the direction from this point to other."""
        return math.atan2(other.y - self.y, other.x - self.x)


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle (a frame's bounding box)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.center_x, self.center_y)

    def expanded(self, padding: float) -> "Rect":
        """Return a copy grown by padding on every side."""
        return Rect(
            self.x - padding,
            self.y - padding,
            self.width + padding * 2,
            self.height + padding * 2,
        )

    @classmethod
    def of(cls, node: Any) -> "Rect":
        """Read the bounding box of any object with x/y/width/height."""
        return cls(node.x, node.y, node.width, node.height)


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def finite_or(value: Any, default: float) -> float:
    """Return value when it is a finite number, otherwise default."""
    return value if is_finite_number(value) else default


def safe_point(point: Optional[Point], default: Point) -> Point:
    """
    Replace missing or non-finite coordinates with those of default.

    Each coordinate is checked on its own, so Point(nan, 5) with a default
    of (0, 0) becomes (0, 5).
    """
    if point is None:
        return default
    x = getattr(point, "x", None)
    y = getattr(point, "y", None)
    return Point(finite_or(x, default.x), finite_or(y, default.y))


def line_intersects_rect(
    start: Point, end: Point, rect: Rect, padding: float = INTERSECTION_PADDING
) -> bool:
    """
    Conservative test of whether segment start-end crosses rect.

    The rectangle is padded on all sides. Segments lying entirely beyond one
    side of the padded rectangle are rejected; otherwise any overlap between
    the segment's bounding box and the padded rectangle counts as a hit.
    This over-reports near corners, which the waypoint routing relies on.
    """
    box = rect.expanded(padding)

    if (
        (start.x < box.x and end.x < box.x)
        or (start.x > box.x2 and end.x > box.x2)
        or (start.y < box.y and end.y < box.y)
        or (start.y > box.y2 and end.y > box.y2)
    ):
        return False

    line_left = min(start.x, end.x)
    line_right = max(start.x, end.x)
    line_top = min(start.y, end.y)
    line_bottom = max(start.y, end.y)

    return not (
        line_right < box.x
        or line_left > box.x2
        or line_bottom < box.y
        or line_top > box.y2
    )
