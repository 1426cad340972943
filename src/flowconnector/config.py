"""
Connection configuration and tuning constants.

This module holds the immutable ConnectionConfig value object that fully
determines a connection's geometry and appearance, together with the
module-level constants that tune routing, path shaping, arrowheads, jitter
and layout analysis.

Classes:
    ConnectionConfig: Style and anchoring configuration for one connection.
"""

import math
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

# =============================================================================
# GEOMETRY CONFIGURATION - Adjust these values to tune connector behavior
# =============================================================================

# --- Routing (in canvas units) ---

# Padding added around a frame when testing whether a segment crosses it
INTERSECTION_PADDING = 10

# Extra clearance (on top of the connection offset) for detour waypoints
ROUTE_CLEARANCE = 20

# --- Path shaping ---

# Bezier control point distance as a fraction of the endpoint distance
CURVATURE_FACTOR = 0.3

# --- Arrowheads ---

ARROW_LENGTH = 12
ARROW_ANGLE = math.pi / 6  # 30 degrees

# --- Hand-drawn jitter ---

SLOPPINESS_AMOUNTS = {"none": 0, "low": 2, "high": 5}

# --- Labels ---

# Used when a label offset is missing or not a number
DEFAULT_LABEL_OFFSET = 10

# --- Layout analysis ---

ALIGNMENT_TOLERANCE = 50  # pixels
MIN_CONFIDENCE_THRESHOLD = 0.6
GRID_SIZE_TOLERANCE = 0.3

# --- Stroke dash patterns ---

DASH_PATTERNS = {"solid": [], "dashed": [5, 5], "dotted": [2, 3]}

# =============================================================================

PLUGIN_VERSION = "1.0"
CONNECTION_PREFIX = "@Flow Connection:"
LEGACY_CONNECTION_PREFIX = "Flow Connection:"
PLUGIN_DATA_KEY = "flow-connector-config"
STORAGE_CONFIG_KEY = "flow-connector-config"

LABEL_NODE_NAME = "Connection Label"
LINE_NAME_PREFIX = "Connection:"
END_ARROW_NAME = "End Arrow Head"
START_ARROW_NAME = "Start Arrow Head"

STORAGE_PATH: Path = Path(
    os.getenv(
        "FLOWCONNECTOR_STORAGE",
        str(Path.home() / ".flowconnector" / "storage.json"),
    )
)
LOG_LEVEL: str = os.getenv("FLOWCONNECTOR_LOG_LEVEL", "WARNING").upper()

# Allowed values for the enumerated configuration fields
STROKE_STYLES = ("solid", "dashed", "dotted")
STROKE_ALIGNS = ("center", "inside", "outside")
STROKE_CAPS = ("none", "round", "square")
STROKE_JOINS = ("miter", "round", "bevel")
SLOPPINESS_LEVELS = ("none", "low", "high")
ARROW_TYPES = ("straight", "curved", "elbow")
ARROWHEAD_MODES = ("none", "end", "both")
POSITIONS = ("auto", "top", "right", "bottom", "left")
LABEL_POSITIONS = ("center", "top", "bottom")

# snake_case attribute -> camelCase key used in persisted JSON
_JSON_KEYS = {
    "color": "color",
    "stroke_width": "strokeWidth",
    "stroke_style": "strokeStyle",
    "stroke_align": "strokeAlign",
    "stroke_cap": "strokeCap",
    "stroke_join": "strokeJoin",
    "opacity": "opacity",
    "sloppiness": "sloppiness",
    "arrow_type": "arrowType",
    "arrowheads": "arrowheads",
    "start_position": "startPosition",
    "end_position": "endPosition",
    "connection_offset": "connectionOffset",
    "avoid_overlap": "avoidOverlap",
    "label": "label",
    "label_position": "labelPosition",
    "label_offset": "labelOffset",
    "label_font_size": "labelFontSize",
    "label_font_family": "labelFontFamily",
    "label_font_weight": "labelFontWeight",
    "label_bg": "labelBg",
    "label_text_color": "labelTextColor",
    "label_border_color": "labelBorderColor",
    "label_border_width": "labelBorderWidth",
    "label_border_radius": "labelBorderRadius",
    "label_padding": "labelPadding",
}
_ATTRIBUTE_NAMES = {key: attr for attr, key in _JSON_KEYS.items()}


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable configuration for a single connection.

    Numeric ranges are enforced by the validation layer
    (flowconnector.validation); the geometry functions assume validated
    input but never fail on bad values.

    Attributes:
        color: Stroke color as a hex string.
        stroke_width: Stroke weight of the line and arrowheads.
        stroke_style: "solid", "dashed" or "dotted".
        stroke_align: "center", "inside" or "outside".
        stroke_cap: "none", "round" or "square".
        stroke_join: "miter", "round" or "bevel".
        opacity: Stroke opacity, 0-100.
        sloppiness: Hand-drawn jitter, "none", "low" or "high".
        arrow_type: "straight", "curved" or "elbow".
        arrowheads: "none", "end" or "both".
        start_position: Side of the first frame, or "auto".
        end_position: Side of the second frame, or "auto".
        connection_offset: Standoff distance of the anchors before routing.
        avoid_overlap: Whether to detour around the connected frames.
        label: Label text; blank means no label.
        label_position: "center", "top" or "bottom".
        label_offset: Perpendicular distance for top/bottom labels.
    """

    color: str = "#1976d2"
    stroke_width: float = 2
    stroke_style: str = "solid"
    stroke_align: str = "center"
    stroke_cap: str = "round"
    stroke_join: str = "round"
    opacity: float = 100
    sloppiness: str = "low"
    arrow_type: str = "straight"
    arrowheads: str = "end"
    start_position: str = "auto"
    end_position: str = "auto"
    connection_offset: float = 20
    avoid_overlap: bool = True
    label: str = "Label Text"
    label_position: str = "center"
    label_offset: float = 10
    label_font_size: float = 12
    label_font_family: str = "Inter"
    label_font_weight: str = "Medium"
    label_bg: str = "#ffffff"
    label_text_color: str = "#333333"
    label_border_color: str = "#e0e0e0"
    label_border_width: float = 1
    label_border_radius: float = 4
    label_padding: float = 6

    def replace(self, **changes: Any) -> "ConnectionConfig":
        """Return a copy with the given attributes changed."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase mapping used in persisted JSON."""
        return {_JSON_KEYS[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionConfig":
        """
        Build a config from a camelCase (or snake_case) mapping.

        Unknown keys are ignored and missing keys keep their defaults, so
        metadata written by older versions still loads.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _ATTRIBUTE_NAMES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    @classmethod
    def json_key(cls, attribute: str) -> str:
        """Return the persisted key for an attribute name."""
        return _JSON_KEYS[attribute]

    @classmethod
    def attribute_name(cls, key: str) -> str:
        """Return the attribute name for a persisted (or attribute) key."""
        return _ATTRIBUTE_NAMES.get(key, key)


DEFAULT_CONFIG = ConnectionConfig()
