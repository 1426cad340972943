"""
Connection registry and persisted user settings.

Classes:
    ConnectionStore: Tracked connections as a frame-to-frame multigraph.
    ConfigStorage: JSON file holding the user's default configuration.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import networkx as nx

from .config import (
    CONNECTION_PREFIX,
    LEGACY_CONNECTION_PREFIX,
    PLUGIN_DATA_KEY,
    STORAGE_CONFIG_KEY,
    STORAGE_PATH,
    ConnectionConfig,
)
from .models import ConnectionMetadata

logger = logging.getLogger(__name__)


def connection_name(frame1_name: str, frame2_name: str) -> str:
    """Group name of a connection between two frames."""
    return f"{CONNECTION_PREFIX} {frame1_name} → {frame2_name}"


def is_flow_connection(node: Any) -> bool:
    """True for connection groups (current naming only)."""
    return getattr(node, "type", None) == "GROUP" and str(
        getattr(node, "name", "")
    ).startswith(CONNECTION_PREFIX)


def is_legacy_connection(node: Any) -> bool:
    name = str(getattr(node, "name", ""))
    return (
        getattr(node, "type", None) == "GROUP"
        and name.startswith(LEGACY_CONNECTION_PREFIX)
        and not name.startswith(CONNECTION_PREFIX)
    )


def migrated_name(name: str) -> str:
    """Rename a legacy connection group to the current prefix."""
    return name.replace(LEGACY_CONNECTION_PREFIX, CONNECTION_PREFIX, 1)


def read_metadata(node: Any) -> Optional[ConnectionMetadata]:
    """Metadata stored on a connection group, or None if absent or unreadable."""
    text = node.get_plugin_data(PLUGIN_DATA_KEY)
    if not text:
        return None
    try:
        return ConnectionMetadata.from_json(text)
    except ValueError as e:
        logger.warning("Failed to parse connection metadata on %s: %s", node.id, e)
        return None


def write_metadata(node: Any, metadata: ConnectionMetadata) -> None:
    node.set_plugin_data(PLUGIN_DATA_KEY, metadata.to_json())


class ConnectionStore:
    """
    Registry of tracked connections.

    Each connection is an edge of a directed multigraph from its first
    frame to its second frame, keyed by the connection group id and
    carrying the connection metadata. A frame can therefore take part in
    any number of connections in either direction, including several
    between the same pair.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._edges: Dict[str, Tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._edges

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._edges))

    def track(self, connection_id: str, metadata: ConnectionMetadata) -> None:
        """Record a connection, replacing any previous entry with this id."""
        self.untrack(connection_id)
        self.graph.add_edge(
            metadata.frame1_id, metadata.frame2_id, key=connection_id, metadata=metadata
        )
        self._edges[connection_id] = (metadata.frame1_id, metadata.frame2_id)

    def untrack(self, connection_id: str) -> Optional[ConnectionMetadata]:
        """Forget a connection; returns its metadata if it was tracked."""
        edge = self._edges.pop(connection_id, None)
        if edge is None:
            return None
        u, v = edge
        metadata = self.graph.edges[u, v, connection_id]["metadata"]
        self.graph.remove_edge(u, v, key=connection_id)
        for frame_id in (u, v):
            if frame_id in self.graph and self.graph.degree(frame_id) == 0:
                self.graph.remove_node(frame_id)
        return metadata

    def get(self, connection_id: str) -> Optional[ConnectionMetadata]:
        edge = self._edges.get(connection_id)
        if edge is None:
            return None
        u, v = edge
        return self.graph.edges[u, v, connection_id]["metadata"]

    def items(self) -> List[Tuple[str, ConnectionMetadata]]:
        return [(cid, self.get(cid)) for cid in self]

    def connections_for_frame(self, frame_id: str) -> List[str]:
        """Ids of every connection that starts or ends at frame_id."""
        if frame_id not in self.graph:
            return []
        ids = [key for _, _, key in self.graph.out_edges(frame_id, keys=True)]
        ids += [
            key
            for u, _, key in self.graph.in_edges(frame_id, keys=True)
            if u != frame_id
        ]
        return ids

    def frame_ids(self) -> List[str]:
        """Every frame that takes part in a tracked connection."""
        return list(self.graph.nodes)

    def connections_between(self, frame1_id: str, frame2_id: str) -> List[str]:
        """Ids of connections from frame1_id to frame2_id."""
        if not self.graph.has_edge(frame1_id, frame2_id):
            return []
        return list(self.graph[frame1_id][frame2_id])

    def clear(self) -> None:
        self.graph.clear()
        self._edges.clear()

    def prune(self, exists) -> List[str]:
        """
        Drop entries whose group or frames no longer exist.

        Args:
            exists: Callable taking a node id and returning whether it is
                still on the canvas.

        Returns:
            Ids of the dropped connections.
        """
        dropped = []
        for connection_id in self:
            u, v = self._edges[connection_id]
            if not (exists(connection_id) and exists(u) and exists(v)):
                logger.debug("Dropping stale connection %s", connection_id)
                self.untrack(connection_id)
                dropped.append(connection_id)
        return dropped


class ConfigStorage:
    """
    Client-local storage for the user's default connection configuration.

    The file is a JSON object; the configuration lives under a fixed key so
    other settings can share the file.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else STORAGE_PATH

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def save_config(self, config: ConnectionConfig) -> None:
        data = self._read()
        data[STORAGE_CONFIG_KEY] = config.to_dict()
        self._write(data)
        logger.info("Saved default configuration to %s", self.path)

    def load_config(self) -> Optional[ConnectionConfig]:
        """The saved configuration, or None when nothing was saved."""
        stored = self._read().get(STORAGE_CONFIG_KEY)
        if not isinstance(stored, dict):
            return None
        return ConnectionConfig.from_dict(stored)

    def clear_cache(self) -> None:
        """Remove the saved configuration."""
        data = self._read()
        if data.pop(STORAGE_CONFIG_KEY, None) is not None:
            self._write(data)
            logger.info("Cleared saved configuration in %s", self.path)
