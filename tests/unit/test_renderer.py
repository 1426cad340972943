"""Unit tests for the rendering pipeline and the preview."""

import random

from flowconnector.config import ConnectionConfig
from flowconnector.geometry import Point, Rect
from flowconnector.preview import SOURCE_FRAME, TARGET_FRAME, build_preview_geometry
from flowconnector.renderer import build_connection_geometry


class TestBuildConnectionGeometry:
    """Tests for build_connection_geometry."""

    def test_exact_straight(self, side_by_side, exact_config):
        """Test the straight connection between side-by-side frames."""
        geometry = build_connection_geometry(*side_by_side, exact_config)
        assert geometry.path_data == "M 100 30 L 300 30"
        assert geometry.path is geometry.base_path
        assert [h.kind for h in geometry.arrowheads] == ["end"]
        assert geometry.label_position is None
        assert geometry.label_box is None

    def test_label_measured(self, side_by_side, exact_config):
        """Test a label gets a position and a box."""
        config = exact_config.replace(label="Go")
        geometry = build_connection_geometry(*side_by_side, config)
        assert geometry.label_position == Point(200, 30)
        assert geometry.label_box is not None

    def test_label_measurement_optional(self, side_by_side, exact_config):
        """Test label boxes can be skipped."""
        config = exact_config.replace(label="Go")
        geometry = build_connection_geometry(*side_by_side, config, measure_labels=False)
        assert geometry.label_position == Point(200, 30)
        assert geometry.label_box is None

    def test_deterministic_jitter(self, side_by_side):
        """Test deterministic mode repeats the same jittered path."""
        config = ConnectionConfig(sloppiness="high", label="")
        first = build_connection_geometry(*side_by_side, config, deterministic=True)
        second = build_connection_geometry(*side_by_side, config, deterministic=True)
        assert first.path_data == second.path_data

    def test_explicit_rng(self, side_by_side):
        """Test an explicit random source is used for jitter."""
        config = ConnectionConfig(sloppiness="low", label="")
        first = build_connection_geometry(*side_by_side, config, rng=random.Random(3))
        second = build_connection_geometry(*side_by_side, config, rng=random.Random(3))
        assert first.path_data == second.path_data
        assert first.base_path.to_svg() == "M 100 30 L 120 30 L 280 30 L 300 30"

    def test_detour_when_frames_block(self):
        """Test overlapping anchors get routed around the frames."""
        config = ConnectionConfig(
            sloppiness="none", connection_offset=0, avoid_overlap=True, label=""
        )
        geometry = build_connection_geometry(Rect(0, 0, 100, 50), Rect(200, 0, 100, 50), config)
        assert len(geometry.points.waypoints) == 2
        assert geometry.path_data == "M 100 25 L 100 70 L 200 70 L 200 25"


class TestPreview:
    """Tests for the settings preview."""

    def test_uses_fixed_frames(self):
        """Test the preview renders between the sample frames."""
        preview = build_preview_geometry(ConnectionConfig())
        assert preview.canvas == (240, 168)
        assert preview.frames == (SOURCE_FRAME, TARGET_FRAME)

    def test_is_stable(self):
        """Test repeated previews are identical despite jitter."""
        config = ConnectionConfig(sloppiness="high")
        assert build_preview_geometry(config).to_svg() == build_preview_geometry(config).to_svg()

    def test_dash_and_opacity(self):
        """Test dash arrays and 0-1 opacity."""
        preview = build_preview_geometry(ConnectionConfig(stroke_style="dashed", opacity=40))
        assert preview.stroke_dasharray == "5 5"
        assert preview.opacity == 0.4
        assert build_preview_geometry(ConnectionConfig()).stroke_dasharray is None

    def test_closed_arrowheads(self):
        """Test preview arrowheads are closed polygons."""
        preview = build_preview_geometry(ConnectionConfig(arrowheads="both"))
        assert [kind for kind, _ in preview.arrowheads] == ["end", "start"]
        assert all(data.endswith("Z") for _, data in preview.arrowheads)

    def test_svg_document(self):
        """Test the SVG output contains frames, path and escaped label."""
        svg = build_preview_geometry(ConnectionConfig(label="A & B")).to_svg()
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert svg.count("<rect") == 3
        assert "A &amp; B" in svg

    def test_no_label(self):
        """Test blank labels are omitted from the preview."""
        preview = build_preview_geometry(ConnectionConfig(label=""))
        assert preview.label is None
        assert "<text" not in preview.to_svg()
