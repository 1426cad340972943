"""
Vector path construction for connectors.

Turns resolved connection points into an ordered list of path commands
(moveto, lineto, curveto) for straight, curved and elbow connectors, and
applies the optional hand-drawn jitter.

Classes:
    PathCommand: A single absolute path command.
    PathData: An ordered list of commands with SVG-style serialization.
"""

import hashlib
import math
import random
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import CURVATURE_FACTOR, SLOPPINESS_AMOUNTS, ConnectionConfig
from .geometry import Point, finite_or, safe_point

# Number of coordinates carried by each command
_ARITY = {"M": 2, "L": 2, "C": 6, "Z": 0}

_TOKEN_PATTERN = re.compile(r"[MLCZ]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def format_number(value: float) -> str:
    """Format a coordinate: integral values print without a decimal point."""
    value = round(finite_or(value, 0), 4)
    if value == int(value):
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class PathCommand:
    """An absolute path command such as ``L 10 20``."""

    op: str
    coords: Tuple[float, ...] = ()

    def points(self) -> List[Point]:
        return [
            Point(self.coords[i], self.coords[i + 1])
            for i in range(0, len(self.coords), 2)
        ]

    def to_svg(self) -> str:
        if not self.coords:
            return self.op
        return " ".join([self.op] + [format_number(c) for c in self.coords])


@dataclass
class PathData:
    """An ordered list of path commands."""

    commands: List[PathCommand] = field(default_factory=list)

    def move_to(self, point: Point) -> "PathData":
        self.commands.append(PathCommand("M", (point.x, point.y)))
        return self

    def line_to(self, point: Point) -> "PathData":
        self.commands.append(PathCommand("L", (point.x, point.y)))
        return self

    def curve_to(self, control1: Point, control2: Point, end: Point) -> "PathData":
        self.commands.append(
            PathCommand(
                "C", (control1.x, control1.y, control2.x, control2.y, end.x, end.y)
            )
        )
        return self

    def close(self) -> "PathData":
        self.commands.append(PathCommand("Z"))
        return self

    def points(self) -> List[Point]:
        """All coordinate pairs in order, control points included."""
        result: List[Point] = []
        for command in self.commands:
            result.extend(command.points())
        return result

    def vertices(self) -> List[Point]:
        """End points of each command, i.e. the polyline actually visited."""
        return [cmd.points()[-1] for cmd in self.commands if cmd.coords]

    def to_svg(self) -> str:
        return " ".join(command.to_svg() for command in self.commands)

    def __str__(self) -> str:
        return self.to_svg()

    @classmethod
    def polyline(cls, points: Iterable[Point]) -> "PathData":
        path = cls()
        for i, point in enumerate(points):
            if i == 0:
                path.move_to(point)
            else:
                path.line_to(point)
        return path

    @classmethod
    def from_svg(cls, text: str) -> "PathData":
        """
        Parse an absolute M/L/C/Z path string.

        Raises:
            ValueError: If the string has a dangling or unknown command.
        """
        commands: List[PathCommand] = []
        op: Optional[str] = None
        numbers: List[float] = []

        def flush():
            if op is None:
                return
            if len(numbers) != _ARITY[op]:
                raise ValueError(f"Command {op} expects {_ARITY[op]} numbers")
            commands.append(PathCommand(op, tuple(numbers)))

        for token in _TOKEN_PATTERN.findall(text or ""):
            if token in _ARITY:
                flush()
                op, numbers = token, []
            else:
                if op is None:
                    raise ValueError("Path data must start with a command")
                numbers.append(float(token))
        flush()
        return cls(commands)


def _sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


def _clean_waypoints(waypoints: Optional[Sequence[Point]]) -> List[Point]:
    return [wp for wp in (waypoints or []) if wp is not None and wp.is_finite()]


def build_path(
    start: Point,
    end: Point,
    start_offset: Point,
    end_offset: Point,
    waypoints: Sequence[Point],
    arrow_type: str,
    connection_offset: float,
) -> PathData:
    """
    Build the connector path.

    Args:
        start: Anchor on the first frame.
        end: Anchor on the second frame.
        start_offset: Start anchor pushed outward by the offset.
        end_offset: End anchor pushed outward by the offset.
        waypoints: Detour points (0 or 2). When present they take precedence
            over the arrow type.
        arrow_type: "straight", "elbow" or "curved" (any other value is
            treated as curved).
        connection_offset: Standoff distance; stubs are drawn when > 0.

    Returns:
        PathData with absolute coordinates.
    """
    start = safe_point(start, Point(0, 0))
    end = safe_point(end, Point(100, 100))
    start_offset = safe_point(start_offset, start)
    end_offset = safe_point(end_offset, end)
    waypoints = _clean_waypoints(waypoints)
    has_offset = finite_or(connection_offset, 0) > 0

    if waypoints:
        points = [start]
        if has_offset:
            points.append(start_offset)
        points.extend(waypoints)
        if has_offset:
            points.append(end_offset)
        points.append(end)
        return PathData.polyline(points)

    if arrow_type == "straight":
        if has_offset:
            return PathData.polyline([start, start_offset, end_offset, end])
        return PathData.polyline([start, end])

    # Curved and elbow paths span the offset points when there is a standoff
    source, target = (start_offset, end_offset) if has_offset else (start, end)

    if arrow_type == "elbow":
        mid_x = (source.x + target.x) / 2
        points = [source, Point(mid_x, source.y), Point(mid_x, target.y), target]
        if has_offset:
            points = [start] + points + [end]
        return PathData.polyline(points)

    dx = target.x - source.x
    dy = target.y - source.y
    curvature = math.hypot(dx, dy) * CURVATURE_FACTOR
    shift_x = curvature * _sign(dx) if abs(dx) > abs(dy) else 0.0
    shift_y = curvature * _sign(dy) if abs(dy) > abs(dx) else 0.0
    control1 = Point(source.x + shift_x, source.y + shift_y)
    control2 = Point(target.x - shift_x, target.y - shift_y)

    path = PathData().move_to(start)
    if has_offset:
        path.line_to(source)
    path.curve_to(control1, control2, target)
    if has_offset:
        path.line_to(end)
    return path


def _quantize_toward(value: float, target: float) -> float:
    """Round target to one decimal place, never moving it away from value."""
    scaled = target * 10
    steps = math.floor(scaled) if target >= value else math.ceil(scaled)
    return steps / 10


def add_sloppiness(path: PathData, sloppiness: str, rng=None) -> PathData:
    """
    Perturb every coordinate for a hand-drawn look.

    Each coordinate moves independently by an offset drawn uniformly from
    [-amount/2, amount/2), where amount is 2 for "low" and 5 for "high", and
    is kept at one decimal place. "none" (or an unknown level) returns the
    path unchanged.

    Args:
        path: Path to perturb; not modified.
        sloppiness: "none", "low" or "high".
        rng: Random source with a ``random()`` method. Defaults to the
            process-wide random module, so repeated renders differ; pass
            seeded_random(config) for reproducible output.
    """
    amount = SLOPPINESS_AMOUNTS.get(sloppiness, 0)
    if not amount:
        return path

    rng = rng or random
    commands = []
    for command in path.commands:
        coords = []
        for value in command.coords:
            variation = (rng.random() - 0.5) * amount
            coords.append(_quantize_toward(value, value + variation))
        commands.append(PathCommand(command.op, tuple(coords)))
    return PathData(commands)


def config_seed(config: ConnectionConfig) -> int:
    """Stable integer seed derived from the fields that shape a connection."""
    key = "|".join(
        str(value)
        for value in (
            config.color,
            config.stroke_width,
            config.stroke_style,
            config.sloppiness,
            config.arrow_type,
            config.arrowheads,
            config.start_position,
            config.end_position,
            config.connection_offset,
            config.avoid_overlap,
            config.label,
            config.label_position,
            config.label_offset,
        )
    )
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def seeded_random(config: ConnectionConfig) -> random.Random:
    """Random source keyed on the configuration, for deterministic jitter."""
    return random.Random(config_seed(config))
