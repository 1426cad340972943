"""
FlowConnector - Flow connections between design frames

Computes the geometry of a connector between two rectangular frames
(anchor points, obstacle-avoiding route, straight/elbow/curved path,
hand-drawn jitter, arrowheads and label placement) and manages those
connections on a canvas.

Example:
    >>> from flowconnector import ConnectionConfig, Rect, build_connection_geometry
    >>> config = ConnectionConfig(
    ...     sloppiness="none", connection_offset=0, avoid_overlap=False
    ... )
    >>> geometry = build_connection_geometry(
    ...     Rect(0, 0, 100, 60), Rect(300, 0, 100, 60), config
    ... )
    >>> geometry.path_data
    'M 100 30 L 300 30'

Canvas Example:
    >>> from flowconnector import ConnectionManager, MemoryCanvas
    >>> canvas = MemoryCanvas()
    >>> a = canvas.add_frame("A", 0, 0, 100, 60)
    >>> b = canvas.add_frame("B", 300, 0, 100, 60)
    >>> group = ConnectionManager(canvas).create_connection(a.id, b.id)
    >>> group.name
    '@Flow Connection: A → B'
"""

from .anchors import Side, calculate_connection_points, resolve_anchor
from .arrows import ArrowHead, StrokeStyle, build_arrowheads, calculate_arrow_angles
from .bulk import BulkOperationResult, BulkOperationsService, ConnectionStrategy
from .canvas import MemoryCanvas
from .config import DEFAULT_CONFIG, ConnectionConfig
from .errors import (
    BulkErrorHandler,
    ConnectionNotFoundError,
    FlowConnectorError,
    FrameNotFoundError,
    ValidationError,
)
from .geometry import Point, Rect, line_intersects_rect
from .labels import LabelBox, calculate_label_position, measure_label
from .layout import FrameLayoutAnalysis, FrameOrderAnalyzer, LayoutPattern
from .manager import ConnectionManager
from .messages import ConnectorApp, MessageType
from .models import ConnectionMetadata, ConnectionPoints
from .paths import PathData, add_sloppiness, build_path
from .preview import build_preview_geometry
from .renderer import ConnectionGeometry, build_connection_geometry
from .router import plan_route
from .store import ConfigStorage, ConnectionStore
from .validation import validate_config, validate_properties, validate_property

__version__ = "0.4.0"

__all__ = [
    # Main API
    "build_connection_geometry",
    "ConnectionGeometry",
    "ConnectionConfig",
    "DEFAULT_CONFIG",
    # Geometry
    "Point",
    "Rect",
    "line_intersects_rect",
    # Pipeline stages
    "Side",
    "resolve_anchor",
    "calculate_connection_points",
    "plan_route",
    "PathData",
    "build_path",
    "add_sloppiness",
    "ArrowHead",
    "StrokeStyle",
    "build_arrowheads",
    "calculate_arrow_angles",
    "LabelBox",
    "calculate_label_position",
    "measure_label",
    "build_preview_geometry",
    # Layout analysis
    "FrameOrderAnalyzer",
    "FrameLayoutAnalysis",
    "LayoutPattern",
    # Canvas and connection management
    "MemoryCanvas",
    "ConnectionManager",
    "ConnectionMetadata",
    "ConnectionPoints",
    "ConnectionStore",
    "ConfigStorage",
    "BulkOperationsService",
    "BulkOperationResult",
    "ConnectionStrategy",
    "ConnectorApp",
    "MessageType",
    # Validation and errors
    "validate_config",
    "validate_properties",
    "validate_property",
    "BulkErrorHandler",
    "FlowConnectorError",
    "ValidationError",
    "FrameNotFoundError",
    "ConnectionNotFoundError",
]
