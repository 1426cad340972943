"""
Route planning for connectors.

Decides whether the direct segment between two offset anchor points runs
through either connected frame and, if so, emits a single two-point detour
around the combined extremes of both frames.
"""

from typing import List

from .config import INTERSECTION_PADDING, ROUTE_CLEARANCE
from .geometry import Point, Rect, line_intersects_rect


def plan_route(
    rect1: Rect,
    rect2: Rect,
    start: Point,
    end: Point,
    avoid_overlap: bool,
    connection_offset: float = 0,
) -> List[Point]:
    """
    Compute detour waypoints between two offset anchor points.

    Args:
        rect1: Bounding box of the first frame.
        rect2: Bounding box of the second frame.
        start: Offset point of the start anchor.
        end: Offset point of the end anchor.
        avoid_overlap: When False no waypoints are ever produced.
        connection_offset: Standoff distance; widens the detour clearance.

    Returns:
        Either an empty list (direct segment) or exactly two waypoints.
    """
    if not avoid_overlap:
        return []

    hits_first = line_intersects_rect(start, end, rect1, INTERSECTION_PADDING)
    hits_second = line_intersects_rect(start, end, rect2, INTERSECTION_PADDING)
    if not hits_first and not hits_second:
        return []

    clearance = connection_offset + ROUTE_CLEARANCE
    is_horizontal_primary = abs(end.x - start.x) > abs(end.y - start.y)

    if is_horizontal_primary:
        route_above_y = min(rect1.y, rect2.y) - clearance
        route_below_y = max(rect1.y2, rect2.y2) + clearance
        avg_y = (start.y + end.y) / 2
        use_above = abs(route_above_y - avg_y) < abs(route_below_y - avg_y)
        route_y = route_above_y if use_above else route_below_y
        return [Point(start.x, route_y), Point(end.x, route_y)]

    route_left_x = min(rect1.x, rect2.x) - clearance
    route_right_x = max(rect1.x2, rect2.x2) + clearance
    avg_x = (start.x + end.x) / 2
    use_left = abs(route_left_x - avg_x) < abs(route_right_x - avg_x)
    route_x = route_left_x if use_left else route_right_x
    return [Point(route_x, start.y), Point(route_x, end.y)]
