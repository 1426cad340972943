"""
Arrowhead geometry.

Arrowheads are open "vee" markers: two short strokes meeting at the anchor
point, rotated 30 degrees either side of the reversed path direction.

Classes:
    StrokeStyle: Stroke attributes shared by the line and its arrowheads.
    ArrowHead: Marker geometry for one end of a connection.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from .colors import hex_to_rgb
from .config import ARROW_ANGLE, ARROW_LENGTH, DASH_PATTERNS, ConnectionConfig
from .geometry import Point, finite_or
from .models import ConnectionPoints
from .paths import PathData

# Host stroke cap/join names
_CAPS = {"none": "NONE", "round": "ROUND", "square": "SQUARE"}
_JOINS = {"miter": "MITER", "round": "ROUND", "bevel": "BEVEL"}


@dataclass(frozen=True)
class StrokeStyle:
    """
    Stroke attributes in host terms.

    Attributes:
        color: (r, g, b) with channels in 0-1.
        width: Stroke weight.
        opacity: 0-1.
        cap: "NONE", "ROUND" or "SQUARE".
        join: "MITER", "ROUND" or "BEVEL".
        dash_pattern: Dash/gap lengths; empty for solid strokes.
    """

    color: Tuple[float, float, float]
    width: float
    opacity: float
    cap: str
    join: str
    dash_pattern: Tuple[float, ...] = ()

    @classmethod
    def from_config(cls, config: ConnectionConfig, dashed: bool = True) -> "StrokeStyle":
        """Build the stroke for a config; arrowheads pass dashed=False."""
        pattern = DASH_PATTERNS.get(config.stroke_style, []) if dashed else []
        return cls(
            color=hex_to_rgb(config.color),
            width=finite_or(config.stroke_width, 0),
            opacity=finite_or(config.opacity, 100) / 100,
            cap=_CAPS.get(config.stroke_cap, "SQUARE"),
            join=_JOINS.get(config.stroke_join, "BEVEL"),
            dash_pattern=tuple(pattern),
        )


@dataclass(frozen=True)
class ArrowHead:
    """An open triangular marker: p1 -> tip -> p2."""

    kind: str  # "start" or "end"
    tip: Point
    p1: Point
    p2: Point
    stroke: StrokeStyle

    @property
    def points(self) -> List[Point]:
        return [self.p1, self.tip, self.p2]

    def to_path(self, closed: bool = False) -> PathData:
        path = PathData.polyline(self.points)
        if closed:
            path.close()
        return path

    def to_svg(self, closed: bool = False) -> str:
        return self.to_path(closed).to_svg()


def arrowhead_points(
    tip: Point, angle: float, length: float = ARROW_LENGTH, spread: float = ARROW_ANGLE
) -> Tuple[Point, Point]:
    """The two outer points of a vee whose tip points along angle."""
    p1 = Point(
        tip.x - length * math.cos(angle - spread),
        tip.y - length * math.sin(angle - spread),
    )
    p2 = Point(
        tip.x - length * math.cos(angle + spread),
        tip.y - length * math.sin(angle + spread),
    )
    return p1, p2


def calculate_arrow_angles(
    points: ConnectionPoints, connection_offset: float
) -> Tuple[float, float]:
    """
    Tangent angles at the start and end of a connection.

    With a standoff the angles follow the stub segments (start anchor to its
    offset point, end offset point to the end anchor); otherwise both are
    the angle of the start-to-end chord.

    Returns:
        (start_angle, end_angle) in radians.
    """
    if finite_or(connection_offset, 0) > 0:
        start_angle = points.start_point.angle_to(points.start_offset_point)
        end_angle = points.end_offset_point.angle_to(points.end_point)
    else:
        start_angle = end_angle = points.start_point.angle_to(points.end_point)
    return start_angle, end_angle


def create_arrowhead(
    tip: Point, angle: float, stroke: StrokeStyle, kind: str = "end"
) -> ArrowHead:
    p1, p2 = arrowhead_points(tip, angle)
    return ArrowHead(kind=kind, tip=tip, p1=p1, p2=p2, stroke=stroke)


def build_arrowheads(points: ConnectionPoints, config: ConnectionConfig) -> List[ArrowHead]:
    """
    Arrowheads for a connection according to config.arrowheads.

    "none" gives no markers, "end" a marker at the end anchor, and "both"
    adds a mirrored marker at the start anchor.
    """
    if config.arrowheads not in ("end", "both"):
        return []

    stroke = StrokeStyle.from_config(config, dashed=False)
    start_angle, end_angle = calculate_arrow_angles(points, config.connection_offset)

    heads = [create_arrowhead(points.end_point, end_angle, stroke, "end")]
    if config.arrowheads == "both":
        heads.append(
            create_arrowhead(points.start_point, start_angle + math.pi, stroke, "start")
        )
    return heads
