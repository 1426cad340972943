"""
Label placement and label box sizing.

The label sits at the arc-length midpoint of the polyline actually drawn
(anchors, offset points and waypoints), optionally pushed perpendicular to
the path for "top" and "bottom" placement. Placement never raises and
always returns finite coordinates, whatever the input.

Label boxes are sized by measuring the text with a Pillow font resolved
through an ordered fallback list, mirroring how the host falls back through
font candidates before drawing text.
"""

import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from PIL import ImageFont

from .colors import hex_to_rgb
from .config import DEFAULT_LABEL_OFFSET, ConnectionConfig
from .geometry import Point, finite_or, safe_point

logger = logging.getLogger(__name__)

# System fonts tried after the configured family and the standard fallbacks
SYSTEM_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/truetype/ubuntu/Ubuntu-R.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]

FALLBACK_FAMILIES = [("Inter", "Regular"), ("Helvetica", "Regular")]


def _offset_along_normal(
    center: Point, angle: float, distance: float, label_position: str
) -> Point:
    # Rotating the tangent by -90 degrees points "up" for a rightward path
    if label_position == "top":
        return Point(
            center.x + math.sin(angle) * distance,
            center.y - math.cos(angle) * distance,
        )
    if label_position == "bottom":
        return Point(
            center.x - math.sin(angle) * distance,
            center.y + math.cos(angle) * distance,
        )
    return center


def calculate_label_position(
    start: Point,
    end: Point,
    start_offset: Optional[Point],
    end_offset: Optional[Point],
    waypoints: Optional[Sequence[Point]],
    label_position: str = "center",
    label_offset: float = DEFAULT_LABEL_OFFSET,
    connection_offset: float = 0,
) -> Point:
    """
    Find where a connection's label goes.

    Args:
        start: Start anchor. Non-finite coordinates fall back to 0.
        end: End anchor. Non-finite coordinates fall back to 100.
        start_offset: Start offset point; falls back to the start anchor.
        end_offset: End offset point; falls back to the end anchor.
        waypoints: Detour points; non-finite ones are skipped.
        label_position: "center", "top" or "bottom".
        label_offset: Perpendicular distance for "top"/"bottom".
        connection_offset: Offset points are part of the path when > 0.

    Returns:
        A finite Point.
    """
    safe_start = safe_point(start, Point(0, 0))
    safe_end = safe_point(end, Point(100, 100))
    safe_start_offset = safe_point(start_offset, safe_start)
    safe_end_offset = safe_point(end_offset, safe_end)
    distance = finite_or(label_offset, DEFAULT_LABEL_OFFSET)
    has_offset = finite_or(connection_offset, 0) > 0

    path_points: List[Point] = [safe_start]
    if has_offset:
        path_points.append(safe_start_offset)
    for waypoint in waypoints or []:
        if waypoint is not None and waypoint.is_finite():
            path_points.append(waypoint)
    if has_offset:
        path_points.append(safe_end_offset)
    path_points.append(safe_end)

    segments: List[Tuple[Point, Point, float]] = []
    total_length = 0.0
    for a, b in zip(path_points, path_points[1:]):
        length = a.distance_to(b)
        if length > 0 and math.isfinite(length):
            segments.append((a, b, length))
            total_length += length

    if not segments or not math.isfinite(total_length):
        center = Point((safe_start.x + safe_end.x) / 2, (safe_start.y + safe_end.y) / 2)
        angle = safe_start.angle_to(safe_end) if safe_start != safe_end else 0.0
        return _finite(_offset_along_normal(center, angle, distance, label_position), center)

    half_length = total_length / 2
    walked = 0.0
    center, angle = segments[-1][1], segments[-1][0].angle_to(segments[-1][1])
    for a, b, length in segments:
        if walked + length >= half_length:
            ratio = (half_length - walked) / length
            center = Point(a.x + (b.x - a.x) * ratio, a.y + (b.y - a.y) * ratio)
            angle = a.angle_to(b)
            break
        walked += length

    return _finite(_offset_along_normal(center, angle, distance, label_position), center)


def _finite(point: Point, fallback: Point) -> Point:
    fallback = safe_point(fallback, Point(50, 50))
    return safe_point(point, fallback)


@dataclass(frozen=True)
class LabelBox:
    """
    A label's background box, centered on the label position.

    Attributes:
        text: Label text.
        x: Left edge of the box.
        y: Top edge of the box.
        width: Text width plus padding on both sides.
        height: Text height plus padding on both sides.
        font_family: Family of the font that was actually used.
        font_size: Font size.
        text_color: (r, g, b) in 0-1.
        background: (r, g, b) in 0-1.
        border_color: (r, g, b) in 0-1, or None without a border.
        border_width: Border stroke weight.
        border_radius: Corner radius.
        padding: Inner padding.
    """

    text: str
    x: float
    y: float
    width: float
    height: float
    font_family: str
    font_size: float
    text_color: Tuple[float, float, float]
    background: Tuple[float, float, float]
    border_color: Optional[Tuple[float, float, float]]
    border_width: float
    border_radius: float
    padding: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


def _font_candidates(family: str, weight: str) -> List[Tuple[str, str]]:
    """(family name, file) pairs in the order they should be tried."""
    candidates = []
    for fam, style in [(family, weight)] + FALLBACK_FAMILIES:
        if not fam:
            continue
        compact = fam.replace(" ", "")
        candidates.append((fam, f"{compact}-{style}.ttf"))
        candidates.append((fam, f"{compact}.ttf"))
    for path in SYSTEM_FONT_PATHS:
        if os.path.exists(path):
            candidates.append((os.path.splitext(os.path.basename(path))[0], path))
    return candidates


@lru_cache(maxsize=32)
def load_font(family: str, weight: str, size: int):
    """
    Load the first available font for family/weight.

    Returns:
        (font, family_used). Falls back to Pillow's built-in font when no
        candidate can be loaded.
    """
    for name, source in _font_candidates(family, weight):
        try:
            return ImageFont.truetype(source, size), name
        except OSError:
            continue
    logger.debug("No TrueType font for %s %s, using default font", family, weight)
    return ImageFont.load_default(), "default"


def measure_text(text: str, family: str, weight: str, size: float) -> Tuple[float, float, str]:
    """Width, height and font family used for a single line of text."""
    font, used = load_font(family or "Inter", weight or "Regular", max(1, int(round(size))))
    left, top, right, bottom = font.getbbox(text)
    return right - left, bottom - top, used


def measure_label(config: ConnectionConfig, position: Point) -> Optional[LabelBox]:
    """
    Size the label box for config, centered on position.

    Returns:
        None when the label text is blank.
    """
    text = config.label or ""
    if not text.strip():
        return None

    text_width, text_height, family = measure_text(
        text, config.label_font_family, config.label_font_weight, config.label_font_size
    )
    padding = finite_or(config.label_padding, 0)
    width = text_width + padding * 2
    height = text_height + padding * 2
    border_width = finite_or(config.label_border_width, 0)

    return LabelBox(
        text=text,
        x=position.x - width / 2,
        y=position.y - height / 2,
        width=width,
        height=height,
        font_family=family,
        font_size=config.label_font_size,
        text_color=hex_to_rgb(config.label_text_color),
        background=hex_to_rgb(config.label_bg),
        border_color=hex_to_rgb(config.label_border_color) if border_width > 0 else None,
        border_width=border_width,
        border_radius=finite_or(config.label_border_radius, 0),
        padding=padding,
    )
