"""Unit tests for the in-memory canvas."""

import pytest

from flowconnector.arrows import StrokeStyle
from flowconnector.canvas import GroupNode, MemoryCanvas
from flowconnector.config import ConnectionConfig


@pytest.fixture
def stroke():
    return StrokeStyle.from_config(ConnectionConfig())


class TestMemoryCanvas:
    """Tests for MemoryCanvas."""

    def test_ids_are_sequential(self):
        """Test generated ids look like host ids."""
        canvas = MemoryCanvas()
        assert canvas.add_frame("A", 0, 0, 10, 10).id == "1:1"
        assert canvas.add_frame("B", 0, 0, 10, 10).id == "1:2"

    def test_move_frame(self, canvas):
        """Test moving a frame updates its position."""
        canvas.move_frame("A", x=40)
        assert canvas.get_node("A").x == 40
        assert canvas.get_node("A").y == 0

    def test_move_missing_frame(self, canvas):
        """Test moving an unknown frame raises KeyError."""
        with pytest.raises(KeyError):
            canvas.move_frame("nope", 1, 1)

    def test_vector_bounds_from_path(self, canvas, stroke):
        """Test a vector's box spans its path."""
        vector = canvas.create_vector("line", "M 10 20 L 110 20 L 110 60", stroke)
        assert (vector.x, vector.y, vector.width, vector.height) == (10, 20, 100, 40)

    def test_group_nests_children(self, canvas, stroke):
        """Test grouping sets parents and makes children findable."""
        line = canvas.create_vector("line", "M 0 0 L 50 0", stroke)
        group = canvas.group([line], "G")
        assert isinstance(group, GroupNode)
        assert line.parent_id == group.id
        assert canvas.get_node(line.id) is line
        assert canvas.find_all(lambda n: n.name == "line") == [line]

    def test_remove_group(self, canvas, stroke):
        """Test removing a group removes its children and deselects it."""
        group = canvas.group([canvas.create_vector("line", "M 0 0 L 5 5", stroke)], "G")
        canvas.selection = [group.id]
        assert canvas.remove_node(group.id)
        assert canvas.get_node(group.id) is None
        assert canvas.selection == []
        assert not canvas.remove_node(group.id)

    def test_locked_nodes(self, canvas):
        """Test locked nodes refuse removal and plugin data writes."""
        frame = canvas.get_node("A")
        frame.locked = True
        with pytest.raises(PermissionError):
            canvas.remove_node("A")
        with pytest.raises(PermissionError):
            frame.set_plugin_data("k", "v")

    def test_plugin_data(self, canvas):
        """Test plugin data round trip and empty default."""
        frame = canvas.get_node("B")
        assert frame.get_plugin_data("k") == ""
        frame.set_plugin_data("k", "v")
        assert frame.get_plugin_data("k") == "v"
