"""
Connection rendering pipeline.

The single place where the geometry stages are chained together:

    anchors -> route -> path -> jitter
                     -> arrowheads
                     -> label position -> label box

Both the live canvas path (flowconnector.manager) and the preview surface
(flowconnector.preview) call build_connection_geometry, so they can only
differ in the random source used for jitter.

Classes:
    ConnectionGeometry: Everything the host needs to draw one connection.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .anchors import calculate_connection_points
from .arrows import ArrowHead, StrokeStyle, build_arrowheads
from .config import ConnectionConfig
from .geometry import Point, Rect
from .labels import LabelBox, calculate_label_position, measure_label
from .models import ConnectionPoints
from .paths import PathData, add_sloppiness, build_path, seeded_random


@dataclass
class ConnectionGeometry:
    """
    Drawable geometry of a connection.

    Attributes:
        points: Anchors, offset points and waypoints.
        base_path: The path before jitter.
        path: The path as drawn (jittered when sloppiness is enabled).
        stroke: Stroke attributes of the main line.
        arrowheads: Zero, one or two arrowhead markers.
        label_position: Center of the label; None without label text.
        label_box: Measured label box; None without label text or when
            measurement was skipped.
    """

    points: ConnectionPoints
    base_path: PathData
    path: PathData
    stroke: StrokeStyle
    arrowheads: List[ArrowHead] = field(default_factory=list)
    label_position: Optional[Point] = None
    label_box: Optional[LabelBox] = None

    @property
    def path_data(self) -> str:
        return self.path.to_svg()


def build_connection_geometry(
    rect1: Rect,
    rect2: Rect,
    config: ConnectionConfig,
    deterministic: bool = False,
    rng=None,
    measure_labels: bool = True,
) -> ConnectionGeometry:
    """
    Compute the full geometry of a connection between two frames.

    Args:
        rect1: Bounding box of the first (source) frame.
        rect2: Bounding box of the second (target) frame.
        config: Connection configuration.
        deterministic: Use a random source seeded from the configuration
            so the same inputs always produce the same jittered path.
        rng: Explicit random source; overrides ``deterministic``.
        measure_labels: Whether to size the label box with a font.

    Returns:
        ConnectionGeometry for the host to draw.
    """
    points = calculate_connection_points(rect1, rect2, config)

    base_path = build_path(
        points.start_point,
        points.end_point,
        points.start_offset_point,
        points.end_offset_point,
        points.waypoints,
        config.arrow_type,
        config.connection_offset,
    )
    if rng is None and deterministic:
        rng = seeded_random(config)
    path = add_sloppiness(base_path, config.sloppiness, rng)

    label_position = None
    label_box = None
    if (config.label or "").strip():
        label_position = calculate_label_position(
            points.start_point,
            points.end_point,
            points.start_offset_point,
            points.end_offset_point,
            points.waypoints,
            config.label_position,
            config.label_offset,
            config.connection_offset,
        )
        if measure_labels:
            label_box = measure_label(config, label_position)

    return ConnectionGeometry(
        points=points,
        base_path=base_path,
        path=path,
        stroke=StrokeStyle.from_config(config),
        arrowheads=build_arrowheads(points, config),
        label_position=label_position,
        label_box=label_box,
    )
