"""
Connection lifecycle on a canvas.

ConnectionManager draws connections between frames as groups of nodes,
stores the metadata needed to redraw them on the group, keeps the
ConnectionStore in sync with the canvas, and regenerates connections whose
frames have moved.
"""

import logging
from typing import List, Optional

from .anchors import calculate_connection_points
from .canvas import CanvasProtocol, FrameNode, GroupNode, Node
from .config import (
    DEFAULT_CONFIG,
    END_ARROW_NAME,
    LINE_NAME_PREFIX,
    SLOPPINESS_AMOUNTS,
    START_ARROW_NAME,
    ConnectionConfig,
)
from .errors import ConnectionNotFoundError, FrameNotFoundError, ValidationError
from .geometry import Rect
from .models import ConnectionMetadata
from .paths import PathData
from .renderer import build_connection_geometry
from .store import (
    ConnectionStore,
    connection_name,
    is_flow_connection,
    is_legacy_connection,
    migrated_name,
    read_metadata,
    write_metadata,
)
from .validation import validate_config

logger = logging.getLogger(__name__)

# Drawn end points may drift this far from the computed anchors before the
# connection is regenerated (jitter allowance is added on top).
MOVE_THRESHOLD = 1


class ConnectionManager:
    """
    Creates, updates and tracks connections on a canvas.

    Args:
        canvas: Host canvas (MemoryCanvas or an adapter).
        store: Registry of tracked connections; a new one by default.
        rng: Random source for jitter; the process-wide one by default.
    """

    def __init__(self, canvas: CanvasProtocol, store: Optional[ConnectionStore] = None, rng=None):
        self.canvas = canvas
        self.store = store if store is not None else ConnectionStore()
        self.rng = rng

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_frame(self, frame_id: str) -> FrameNode:
        node = self.canvas.get_node(frame_id)
        if node is None or node.type != "FRAME":
            raise FrameNotFoundError(frame_id)
        return node

    def get_connection(self, connection_id: str) -> GroupNode:
        node = self.canvas.get_node(connection_id)
        if node is None or not is_flow_connection(node):
            raise ConnectionNotFoundError(connection_id, "not found or invalid")
        return node

    def get_metadata(self, connection_id: str) -> ConnectionMetadata:
        metadata = read_metadata(self.get_connection(connection_id))
        if metadata is None:
            raise ConnectionNotFoundError(connection_id, "metadata missing")
        return metadata

    def find_all_connections(self) -> List[Node]:
        return self.canvas.find_all(is_flow_connection)

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    def create_connection(
        self, frame1_id: str, frame2_id: str, config: ConnectionConfig = DEFAULT_CONFIG
    ) -> GroupNode:
        """
        Draw a connection from one frame to another.

        Raises:
            ValidationError: If config is invalid or both ids are the same.
            FrameNotFoundError: If either frame is missing.
        """
        if frame1_id == frame2_id:
            raise ValidationError({"frames": "Select two different frames"})
        validate_config(config)
        frame1 = self.get_frame(frame1_id)
        frame2 = self.get_frame(frame2_id)
        return self._draw(frame1, frame2, config)

    def _draw(self, frame1: FrameNode, frame2: FrameNode, config: ConnectionConfig) -> GroupNode:
        geometry = build_connection_geometry(
            Rect.of(frame1), Rect.of(frame2), config, rng=self.rng
        )

        nodes: List[Node] = [
            self.canvas.create_vector(
                f"{LINE_NAME_PREFIX} {frame1.name} → {frame2.name}",
                geometry.path_data,
                geometry.stroke,
            )
        ]
        for head in geometry.arrowheads:
            name = END_ARROW_NAME if head.kind == "end" else START_ARROW_NAME
            nodes.append(self.canvas.create_vector(name, head.to_svg(), head.stroke))
        if geometry.label_box is not None:
            nodes.append(self.canvas.create_label(geometry.label_box))

        group = self.canvas.group(nodes, connection_name(frame1.name, frame2.name))
        metadata = ConnectionMetadata(config=config, frame1_id=frame1.id, frame2_id=frame2.id)
        write_metadata(group, metadata)
        self.store.track(group.id, metadata)
        logger.debug("Created connection %s (%s -> %s)", group.id, frame1.id, frame2.id)
        return group

    def _replace(
        self,
        connection_id: str,
        frame1: FrameNode,
        frame2: FrameNode,
        config: ConnectionConfig,
    ) -> GroupNode:
        """Redraw a connection, keeping it selected if it was."""
        was_selected = connection_id in self.canvas.selection
        self.canvas.remove_node(connection_id)
        self.store.untrack(connection_id)
        group = self._draw(frame1, frame2, config)
        if was_selected:
            self.canvas.selection.append(group.id)
        return group

    def update_connection(self, connection_id: str, config: ConnectionConfig) -> GroupNode:
        """
        Redraw a connection with a new configuration.

        The old group is removed and a new one (with a new id) is returned.

        Raises:
            ValidationError: If config is invalid.
            ConnectionNotFoundError: If the connection or its metadata is gone.
            FrameNotFoundError: If one of its frames is gone.
        """
        validate_config(config)
        metadata = self.get_metadata(connection_id)
        frame1 = self.get_frame(metadata.frame1_id)
        frame2 = self.get_frame(metadata.frame2_id)
        return self._replace(connection_id, frame1, frame2, config)

    def reverse_connection(
        self, connection_id: str, config: Optional[ConnectionConfig] = None
    ) -> GroupNode:
        """
        Swap the direction of a connection.

        The frames trade places and so do the start and end positions, so
        explicit anchor sides stay on the same frames.
        """
        metadata = self.get_metadata(connection_id)
        config = config or metadata.config
        config = config.replace(
            start_position=config.end_position, end_position=config.start_position
        )
        validate_config(config)
        frame1 = self.get_frame(metadata.frame2_id)
        frame2 = self.get_frame(metadata.frame1_id)
        return self._replace(connection_id, frame1, frame2, config)

    def delete_connection(self, connection_id: str) -> bool:
        """Remove a connection group; False if it was already gone."""
        removed = self.canvas.remove_node(connection_id)
        self.store.untrack(connection_id)
        return removed

    def handle_frame_removed(self, frame_id: str) -> List[str]:
        """Delete every connection attached to a removed frame."""
        removed = []
        for connection_id in self.store.connections_for_frame(frame_id):
            if self.delete_connection(connection_id):
                removed.append(connection_id)
        if removed:
            logger.info("Removed %d connection(s) of deleted frame %s", len(removed), frame_id)
        return removed

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_connections(self) -> int:
        """Rebuild the store from the connection groups on the canvas."""
        self.store.clear()
        for group in self.find_all_connections():
            metadata = read_metadata(group)
            if metadata is not None:
                self.store.track(group.id, metadata)
        return len(self.store)

    def migrate_old_connections(self) -> int:
        """Rename groups that still use the legacy name prefix."""
        groups = self.canvas.find_all(is_legacy_connection)
        for group in groups:
            old_name = group.name
            group.name = migrated_name(old_name)
            logger.info("Migrated connection: %s → %s", old_name, group.name)
        if groups:
            logger.info("Migrated %d connections to new naming convention", len(groups))
        return len(groups)

    def needs_update(self, group: GroupNode, metadata: ConnectionMetadata) -> bool:
        """
        Whether the drawn end points no longer match the frames.

        Also true when the main line is missing or its path is unreadable.
        """
        frame1 = self.get_frame(metadata.frame1_id)
        frame2 = self.get_frame(metadata.frame2_id)
        points = calculate_connection_points(Rect.of(frame1), Rect.of(frame2), metadata.config)

        line = next(
            (child for child in group.children if child.name.startswith(LINE_NAME_PREFIX)),
            None,
        )
        if line is None or not getattr(line, "path_data", ""):
            return True
        try:
            drawn = PathData.from_svg(line.path_data).points()
        except ValueError:
            return True
        if not drawn:
            return True

        threshold = MOVE_THRESHOLD + SLOPPINESS_AMOUNTS.get(metadata.config.sloppiness, 0) / 2
        for drawn_point, anchor in ((drawn[0], points.start_point), (drawn[-1], points.end_point)):
            if abs(drawn_point.x - anchor.x) > threshold or abs(drawn_point.y - anchor.y) > threshold:
                return True
        return False

    def check_and_update_connections(self) -> List[str]:
        """
        Regenerate connections whose frames have moved.

        Connections attached to a deleted frame are deleted with it; entries
        whose group was deleted are dropped from the store. A failure to
        redraw one connection is logged and does not stop the others.

        Returns:
            Ids of the regenerated connection groups.
        """
        for frame_id in self.store.frame_ids():
            if self.canvas.get_node(frame_id) is None:
                try:
                    self.handle_frame_removed(frame_id)
                except PermissionError as e:
                    logger.error("Failed to remove connections of frame %s: %s", frame_id, e)
        self.store.prune(lambda node_id: self.canvas.get_node(node_id) is not None)

        outdated = []
        for connection_id, metadata in self.store.items():
            group = self.canvas.get_node(connection_id)
            if self.needs_update(group, metadata):
                outdated.append((connection_id, metadata))

        updated = []
        for connection_id, metadata in outdated:
            try:
                group = self._replace(
                    connection_id,
                    self.get_frame(metadata.frame1_id),
                    self.get_frame(metadata.frame2_id),
                    metadata.config,
                )
            except (PermissionError, FrameNotFoundError) as e:
                logger.error("Failed to update connection %s: %s", connection_id, e)
                continue
            updated.append(group.id)
        return updated
