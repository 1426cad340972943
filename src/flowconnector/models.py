"""
Data models shared by the connector pipeline and its collaborators.

Classes:
    ConnectionPoints: Anchors, offset points and waypoints of one connection.
    ConnectionMetadata: Persisted data needed to regenerate a connection.
    FrameRef: Identifier and display name of a frame.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .config import PLUGIN_VERSION, ConnectionConfig
from .geometry import Point


@dataclass
class ConnectionPoints:
    """
    Derived anchor data of a connection, recomputed on every render.

    Attributes:
        start_point: Anchor on the first frame's boundary.
        end_point: Anchor on the second frame's boundary.
        start_offset_point: start_point pushed outward by the offset.
        end_offset_point: end_point pushed outward by the offset.
        waypoints: Either empty or the two detour points.
    """

    start_point: Point
    end_point: Point
    start_offset_point: Point
    end_offset_point: Point
    waypoints: List[Point] = field(default_factory=list)


@dataclass
class ConnectionMetadata:
    """
    Data stored alongside each drawn connection.

    Serialized as JSON with camelCase keys:
    {"config": {...}, "frame1Id": ..., "frame2Id": ..., "version": ...}
    """

    config: ConnectionConfig
    frame1_id: str
    frame2_id: str
    version: str = PLUGIN_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "frame1Id": self.frame1_id,
            "frame2Id": self.frame2_id,
            "version": self.version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionMetadata":
        return cls(
            config=ConnectionConfig.from_dict(data.get("config") or {}),
            frame1_id=str(data["frame1Id"]),
            frame2_id=str(data["frame2Id"]),
            version=str(data.get("version", PLUGIN_VERSION)),
        )

    @classmethod
    def from_json(cls, text: str) -> "ConnectionMetadata":
        """
        Parse serialized metadata.

        Raises:
            ValueError: If text is not valid metadata JSON.
        """
        try:
            data = json.loads(text)
            return cls.from_dict(data)
        except (TypeError, KeyError, AttributeError) as exc:
            raise ValueError(f"Malformed connection metadata: {exc}") from exc


@dataclass(frozen=True)
class FrameRef:
    """Identifier and name of a frame, as reported to the UI."""

    id: str
    name: str
