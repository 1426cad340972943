"""Unit tests for the connection store and settings storage."""

import json

import pytest

from flowconnector.canvas import GroupNode
from flowconnector.config import PLUGIN_DATA_KEY, STORAGE_CONFIG_KEY, ConnectionConfig
from flowconnector.models import ConnectionMetadata
from flowconnector.store import (
    ConnectionStore,
    connection_name,
    is_flow_connection,
    is_legacy_connection,
    migrated_name,
    read_metadata,
    write_metadata,
)


def metadata(a, b, **config):
    return ConnectionMetadata(config=ConnectionConfig(**config), frame1_id=a, frame2_id=b)


@pytest.fixture
def store():
    """Store with A->B (c1), B->C (c2) and A->B (c3)."""
    store = ConnectionStore()
    store.track("c1", metadata("A", "B"))
    store.track("c2", metadata("B", "C"))
    store.track("c3", metadata("A", "B", color="#000000"))
    return store


class TestNaming:
    """Tests for connection group names."""

    def test_connection_name(self):
        """Test the group name format."""
        assert connection_name("Home", "Cart") == "@Flow Connection: Home → Cart"

    def test_detection(self):
        """Test current and legacy names are told apart."""
        current = GroupNode(id="1", name=connection_name("A", "B"))
        legacy = GroupNode(id="2", name="Flow Connection: A → B")
        assert is_flow_connection(current) and not is_legacy_connection(current)
        assert is_legacy_connection(legacy) and not is_flow_connection(legacy)

    def test_migrated_name(self):
        """Test the legacy prefix is replaced once."""
        assert migrated_name("Flow Connection: A → B") == "@Flow Connection: A → B"


class TestMetadataIO:
    """Tests for metadata on nodes."""

    def test_round_trip(self):
        """Test metadata written to a node reads back."""
        group = GroupNode(id="g", name="x")
        write_metadata(group, metadata("A", "B", label="Hi"))
        stored = json.loads(group.get_plugin_data(PLUGIN_DATA_KEY))
        assert stored["frame1Id"] == "A"
        assert stored["config"]["label"] == "Hi"
        assert read_metadata(group).config.label == "Hi"

    def test_unreadable(self):
        """Test missing or corrupt metadata reads as None."""
        group = GroupNode(id="g", name="x")
        assert read_metadata(group) is None
        group.set_plugin_data(PLUGIN_DATA_KEY, "{not json")
        assert read_metadata(group) is None
        group.set_plugin_data(PLUGIN_DATA_KEY, '{"config": {}}')
        assert read_metadata(group) is None


class TestConnectionStore:
    """Tests for ConnectionStore."""

    def test_lookup(self, store):
        """Test tracked metadata is returned by id."""
        assert len(store) == 3
        assert store.get("c2").frame1_id == "B"
        assert store.get("missing") is None

    def test_parallel_connections(self, store):
        """Test several connections between the same frames coexist."""
        assert sorted(store.connections_between("A", "B")) == ["c1", "c3"]
        assert store.connections_between("B", "A") == []

    def test_connections_for_frame(self, store):
        """Test both directions are found."""
        assert sorted(store.connections_for_frame("B")) == ["c1", "c2", "c3"]
        assert store.connections_for_frame("Z") == []

    def test_untrack_drops_isolated_frames(self, store):
        """Test frames with no connections leave the graph."""
        store.untrack("c2")
        assert "C" not in store.graph
        assert store.untrack("c2") is None

    def test_retrack_replaces(self, store):
        """Test tracking an id again moves it."""
        store.track("c1", metadata("C", "A"))
        assert store.connections_between("C", "A") == ["c1"]
        assert store.connections_between("A", "B") == ["c3"]

    def test_prune(self, store):
        """Test stale entries are dropped."""
        dropped = store.prune(lambda node_id: node_id not in ("C", "c3"))
        assert sorted(dropped) == ["c2", "c3"]
        assert list(store) == ["c1"]


class TestConfigStorage:
    """Tests for ConfigStorage."""

    def test_empty(self, storage):
        """Test nothing saved reads as None."""
        assert storage.load_config() is None

    def test_save_and_load(self, storage):
        """Test a saved config loads back under the fixed key."""
        storage.save_config(ConnectionConfig(color="#ff0000", arrow_type="elbow"))
        data = json.loads(storage.path.read_text())
        assert data[STORAGE_CONFIG_KEY]["arrowType"] == "elbow"
        loaded = storage.load_config()
        assert loaded.color == "#ff0000"
        assert loaded.arrow_type == "elbow"

    def test_clear_cache(self, storage):
        """Test clearing removes the saved config."""
        storage.save_config(ConnectionConfig())
        storage.clear_cache()
        assert storage.load_config() is None

    def test_corrupt_file(self, storage):
        """Test an unreadable file is treated as empty."""
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text("not json")
        assert storage.load_config() is None
