"""
UI message protocol.

The settings panel talks to the connector by posting messages: a ``type``
string plus payload fields (camelCase, as they arrive from the UI).
ConnectorApp dispatches each message to the manager, the bulk service or
the settings storage and returns the messages to post back.

Classes:
    MessageType: Every accepted message type.
    PluginMessage: An incoming message.
    ConnectorApp: Session state and message dispatch.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .bulk import BulkOperationResult, BulkOperationsService, ConnectionStrategy
from .canvas import CanvasProtocol
from .config import DEFAULT_CONFIG, ConnectionConfig
from .errors import FlowConnectorError
from .layout import FrameOrderAnalyzer
from .manager import ConnectionManager
from .store import ConfigStorage, is_flow_connection, read_metadata
from .validation import calculate_mixed_property_states

logger = logging.getLogger(__name__)

# Analyses below this confidence also report layout suggestions
SUGGESTION_CONFIDENCE = 0.7


class MessageType(Enum):
    CREATE_CONNECTION = "create-connection"
    UPDATE_CONNECTION = "update-connection"
    AUTO_CREATE_CONNECTION = "auto-create-connection"
    TOGGLE_AUTO_CREATE = "toggle-auto-create"
    TOGGLE_AUTO_UPDATE = "toggle-auto-update"
    SAVE_CONFIG = "save-config"
    LOAD_CONFIG = "load-config"
    CLEAR_CACHE = "clear-cache"
    CANCEL = "cancel"
    REVERSE_CONNECTION = "reverse-connection"
    CREATE_BULK_CONNECTIONS = "create-bulk-connections"
    UPDATE_BULK_CONNECTIONS = "update-bulk-connections"
    ANALYZE_FRAME_LAYOUT = "analyze-frame-layout"
    RETRY_BULK_OPERATION = "retry-bulk-operation"
    ANALYZE_MIXED_PROPERTIES = "analyze-mixed-properties"


@dataclass
class PluginMessage:
    """An incoming UI message."""

    type: MessageType
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PluginMessage":
        """
        Raises:
            ValueError: If the message type is missing or unknown.
        """
        payload = dict(data)
        return cls(type=MessageType(payload.pop("type", None)), payload=payload)

    def config(self) -> Optional[ConnectionConfig]:
        data = self.payload.get("config")
        return ConnectionConfig.from_dict(data) if isinstance(data, dict) else None


def _error(message: str) -> Dict[str, Any]:
    return {"type": "error", "message": message}


def _success(message: str) -> Dict[str, Any]:
    return {"type": "success", "message": message}


def analysis_to_dict(analysis) -> Dict[str, Any]:
    """JSON-ready form of a FrameLayoutAnalysis, with camelCase keys."""
    pattern = analysis.pattern
    return {
        "pattern": {
            "type": pattern.type,
            "direction": pattern.direction,
            "gridDimensions": (
                {"rows": pattern.grid_dimensions[0], "cols": pattern.grid_dimensions[1]}
                if pattern.grid_dimensions
                else None
            ),
        },
        "isOrdered": analysis.is_ordered,
        "sortedFrames": [{"id": ref.id, "name": ref.name} for ref in analysis.sorted_frames],
        "confidence": analysis.confidence,
        "suggestions": list(analysis.suggestions),
    }


class ConnectorApp:
    """
    One connector session on a canvas.

    Args:
        canvas: Host canvas.
        storage: Settings storage; the default file location when omitted.
    """

    def __init__(self, canvas: CanvasProtocol, storage: Optional[ConfigStorage] = None):
        self.canvas = canvas
        self.storage = storage or ConfigStorage()
        self.manager = ConnectionManager(canvas)
        self.analyzer = FrameOrderAnalyzer()
        self.bulk = BulkOperationsService(self.manager, self.analyzer)
        self.auto_create = True
        self.auto_update = True
        self.closed = False
        self.last_bulk_result: Optional[BulkOperationResult] = None
        self._cancel = threading.Event()

    def start(self) -> List[Dict[str, Any]]:
        """Migrate legacy connections, track existing ones and load settings."""
        self.manager.migrate_old_connections()
        self.manager.track_connections()
        return self._load_config()

    def on_document_change(self) -> List[str]:
        """Regenerate moved connections when auto-update is on."""
        if not self.auto_update:
            return []
        return self.manager.check_and_update_connections()

    def request_cancel(self) -> None:
        self._cancel.set()

    def handle(self, message: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Dispatch one UI message.

        Failures are reported as an "error" message instead of raising.
        """
        try:
            msg = PluginMessage.from_dict(message)
        except ValueError:
            logger.warning("Ignoring unknown message: %r", message.get("type"))
            return [_error(f"Unknown message type: {message.get('type')}")]

        handler = getattr(self, "_on_" + msg.type.name.lower())
        try:
            return handler(msg)
        except (FlowConnectorError, PermissionError, ValueError) as e:
            logger.error("%s failed: %s", msg.type.value, e)
            return [_error(f"Operation failed: {e}")]

    # ------------------------------------------------------------------
    # Single connections
    # ------------------------------------------------------------------

    def _selected_frames(self) -> List[str]:
        ids = []
        for node_id in self.canvas.selection:
            node = self.canvas.get_node(node_id)
            if node is not None and node.type == "FRAME":
                ids.append(node_id)
        return ids

    def _selected(self, group) -> Dict[str, Any]:
        self.canvas.selection = [group.id]
        metadata = read_metadata(group)
        return {
            "type": "connection-selected",
            "config": metadata.config.to_dict() if metadata else None,
            "connectionId": group.id,
            "connectionName": group.name,
        }

    def _on_create_connection(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        frames = self._selected_frames()
        if len(frames) != 2:
            return [_error("Please select exactly 2 frames to connect")]
        config = msg.config()
        if config is None:
            return []
        group = self.manager.create_connection(frames[0], frames[1], config)
        return [
            self._selected(group),
            {"type": "connection-created", "message": "Connection created and ready for editing!"},
        ]

    def _on_auto_create_connection(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        if not self.auto_create or len(self._selected_frames()) != 2:
            return []
        return self._on_create_connection(msg)

    def _on_update_connection(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        connection_id = msg.payload.get("connectionId")
        config = msg.config()
        if not connection_id or config is None:
            return []
        group = self.manager.update_connection(connection_id, config)
        return [self._selected(group), _success("Connection updated successfully!")]

    def _on_reverse_connection(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        connection_id = msg.payload.get("connectionId")
        if not connection_id:
            return [_error("No connection selected")]
        group = self.manager.reverse_connection(connection_id, msg.config())
        metadata = read_metadata(group)
        self.storage.save_config(metadata.config)
        return [self._selected(group), _success("Connection reversed successfully!")]

    # ------------------------------------------------------------------
    # Session settings
    # ------------------------------------------------------------------

    def _on_toggle_auto_create(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        self.auto_create = bool(msg.payload.get("enabled", True))
        return []

    def _on_toggle_auto_update(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        self.auto_update = bool(msg.payload.get("enabled", True))
        if self.auto_update:
            self.manager.track_connections()
        return []

    def _on_save_config(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        config = msg.config()
        if config is not None:
            self.storage.save_config(config)
        return []

    def _load_config(self) -> List[Dict[str, Any]]:
        config = self.storage.load_config()
        if config is None:
            return []
        return [{"type": "config-loaded", "config": config.to_dict()}]

    def _on_load_config(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        return self._load_config()

    def _on_clear_cache(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        self.storage.clear_cache()
        self.manager.track_connections()
        return [_success("Cache cleared successfully!")]

    def _on_cancel(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        self.request_cancel()
        self.closed = True
        return []

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    def _bulk_messages(self, result: BulkOperationResult) -> List[Dict[str, Any]]:
        self.last_bulk_result = result
        kind = "bulk-operation-completed" if result.successful else "bulk-operation-error"
        if result.created_ids:
            self.canvas.selection = list(result.created_ids)
        return [{"type": kind, "bulkOperationResult": result.to_dict()}]

    def _on_create_bulk_connections(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        strategy_data = msg.payload.get("connectionStrategy") or {}
        strategy = ConnectionStrategy(
            type=strategy_data.get("type", "sequential"),
            center_frame_id=strategy_data.get("centerFrameId"),
            custom_pairs=[tuple(pair) for pair in strategy_data.get("customPairs") or []],
        )
        config = msg.config() or DEFAULT_CONFIG
        self._cancel.clear()
        result = self.bulk.create_bulk_connections(
            msg.payload.get("selectedFrameIds") or self._selected_frames(),
            config,
            strategy,
            should_cancel=self._cancel.is_set,
        )
        return self._bulk_messages(result)

    def _on_update_bulk_connections(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        self._cancel.clear()
        config = msg.config()
        result = self.bulk.update_bulk_connections(
            msg.payload.get("targetConnectionIds") or [],
            config=config,
            changes=msg.payload.get("changes"),
            should_cancel=self._cancel.is_set,
        )
        return self._bulk_messages(result)

    def _on_retry_bulk_operation(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        if self.last_bulk_result is None:
            return [
                {
                    "type": "bulk-operation-error",
                    "bulkOperationResult": {
                        "successful": 0,
                        "failed": 1,
                        "errors": [{"error": "No operation to retry"}],
                    },
                }
            ]
        self._cancel.clear()
        result = self.bulk.retry_failed_operations(
            self.last_bulk_result, msg.config(), should_cancel=self._cancel.is_set
        )
        return self._bulk_messages(result)

    def _on_analyze_frame_layout(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        ids = [
            item["id"] if isinstance(item, dict) else item
            for item in msg.payload.get("selectedFrames") or []
        ]
        frames = [
            node
            for node in (self.canvas.get_node(frame_id) for frame_id in ids)
            if node is not None and node.type == "FRAME"
        ]
        if len(frames) < 2:
            return []

        analysis = self.analyzer.analyze_frame_layout(frames)
        layout = analysis_to_dict(analysis)
        out = [{"type": "layout-analysis-updated", "frameLayout": layout}]
        if analysis.confidence < SUGGESTION_CONFIDENCE and analysis.suggestions:
            out.append(
                {
                    "type": "layout-suggestions-updated",
                    "layoutSuggestions": list(analysis.suggestions),
                    "frameLayout": layout,
                }
            )
        return out

    def _on_analyze_mixed_properties(self, msg: PluginMessage) -> List[Dict[str, Any]]:
        configs = []
        for connection_id in msg.payload.get("connectionIds") or []:
            node = self.canvas.get_node(connection_id)
            if node is None or not is_flow_connection(node):
                continue
            metadata = read_metadata(node)
            if metadata is not None:
                configs.append(metadata.config)
        if len(configs) < 2:
            return []

        states = calculate_mixed_property_states(configs)
        return [
            {
                "type": "mixed-properties-updated",
                "mixedProperties": {
                    ConnectionConfig.json_key(name): mixed for name, mixed in states.items()
                },
            }
        ]
