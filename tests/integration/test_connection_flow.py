"""Integration tests for complete connection workflows.

These tests drive the geometry pipeline and the canvas session end to end,
from frame rectangles to drawn groups and back through the UI messages.
"""

import math

from flowconnector import (
    ConnectionConfig,
    ConnectorApp,
    MemoryCanvas,
    Rect,
    build_connection_geometry,
)
from flowconnector.paths import PathData
from flowconnector.store import ConfigStorage, read_metadata


class TestGeometryPipeline:
    """Integration tests from rectangles to drawable geometry."""

    def test_straight_side_by_side(self, side_by_side, exact_config):
        """Test the exact straight connection between two frames on a row."""
        geometry = build_connection_geometry(*side_by_side, exact_config)

        assert geometry.path_data == "M 100 30 L 300 30"
        assert len(geometry.arrowheads) == 1
        head = geometry.arrowheads[0]
        assert (head.tip.x, head.tip.y) == (300, 30)
        # Vee opens back toward the source
        assert head.p1.x < 300 and head.p2.x < 300
        assert math.isclose(head.p1.y - 30, -(head.p2.y - 30))
        assert geometry.label_position is None

    def test_elbow_with_standoff(self, exact_config):
        """Test an elbow between offset frames keeps axis-aligned segments."""
        config = exact_config.replace(arrow_type="elbow", connection_offset=20)
        geometry = build_connection_geometry(
            Rect(0, 0, 100, 60), Rect(300, 200, 100, 60), config
        )
        points = geometry.path.points()

        assert (points[0].x, points[0].y) == (100, 30)
        assert (points[-1].x, points[-1].y) == (300, 230)
        for a, b in zip(points, points[1:]):
            assert a.x == b.x or a.y == b.y

    def test_jitter_is_bounded(self, side_by_side, exact_config):
        """Test jittered points stay close to the clean path."""
        config = exact_config.replace(sloppiness="high", arrow_type="elbow")
        geometry = build_connection_geometry(*side_by_side, config, deterministic=True)

        clean = geometry.base_path.points()
        drawn = geometry.path.points()
        assert len(clean) == len(drawn)
        for a, b in zip(clean, drawn):
            assert abs(a.x - b.x) <= 4 and abs(a.y - b.y) <= 4

    def test_label_between_frames(self, side_by_side, exact_config):
        """Test a centered label sits on the midpoint and gets a box."""
        config = exact_config.replace(label="Checkout")
        geometry = build_connection_geometry(*side_by_side, config)

        assert (geometry.label_position.x, geometry.label_position.y) == (200, 30)
        box = geometry.label_box
        assert box.width > 0 and box.height > 0
        assert math.isclose(box.x + box.width / 2, 200)


class TestCanvasSession:
    """Integration tests for a full session on a canvas."""

    def test_full_workflow(self, tmp_path):
        """Test create, move, bulk create, update and delete in one session."""
        canvas = MemoryCanvas()
        home = canvas.add_frame("Home", 0, 0, 100, 60)
        cart = canvas.add_frame("Cart", 300, 0, 100, 60)
        pay = canvas.add_frame("Pay", 600, 0, 100, 60)
        done = canvas.add_frame("Done", 900, 0, 100, 60)

        app = ConnectorApp(canvas, ConfigStorage(tmp_path / "storage.json"))
        assert app.start() == []

        config = ConnectionConfig(sloppiness="none", label="")
        canvas.selection = [home.id, cart.id]
        out = app.handle({"type": "create-connection", "config": config.to_dict()})
        first_id = out[0]["connectionId"]
        assert out[0]["connectionName"] == "@Flow Connection: Home → Cart"

        # Moving a frame regenerates its connection
        canvas.move_frame(cart.id, y=200)
        updated = app.on_document_change()
        assert len(updated) == 1
        assert canvas.get_node(first_id) is None
        line = canvas.get_node(updated[0]).children[0]
        assert PathData.from_svg(line.path_data).points()[-1].y == 230

        # Bulk sequential across the row of remaining frames
        out = app.handle(
            {
                "type": "create-bulk-connections",
                "selectedFrameIds": [done.id, pay.id, home.id],
                "connectionStrategy": {"type": "sequential"},
                "config": config.to_dict(),
            }
        )
        result = out[0]["bulkOperationResult"]
        assert result["successful"] == 2
        names = [canvas.get_node(i).name for i in result["createdIds"]]
        assert names == ["@Flow Connection: Home → Pay", "@Flow Connection: Pay → Done"]

        # Bulk recolor keeps every other setting
        out = app.handle(
            {
                "type": "update-bulk-connections",
                "targetConnectionIds": result["createdIds"],
                "changes": {"color": "#e53935"},
            }
        )
        for group_id in out[0]["bulkOperationResult"]["createdIds"]:
            metadata = read_metadata(canvas.get_node(group_id))
            assert metadata.config.color == "#e53935"
            assert metadata.config.sloppiness == "none"

        # Deleting a frame removes its connections
        canvas.remove_node(pay.id)
        removed = app.manager.handle_frame_removed(pay.id)
        assert len(removed) == 2
        assert len(app.manager.store) == 1

    def test_reload_from_canvas(self, canvas, exact_config, storage):
        """Test a new session picks up connections already on the canvas."""
        first = ConnectorApp(canvas, storage)
        group = first.manager.create_connection("A", "B", exact_config)

        second = ConnectorApp(canvas, storage)
        second.start()
        assert second.manager.store.get(group.id).frame1_id == "A"
        assert second.on_document_change() == []
