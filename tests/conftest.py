"""Pytest configuration and shared fixtures for FlowConnector tests."""

import pytest

from flowconnector import ConnectionConfig, ConnectionManager, MemoryCanvas, Rect
from flowconnector.store import ConfigStorage


@pytest.fixture
def exact_config():
    """Straight connection with no jitter, standoff or detours."""
    return ConnectionConfig(
        sloppiness="none",
        arrow_type="straight",
        connection_offset=0,
        avoid_overlap=False,
        arrowheads="end",
        label="",
    )


@pytest.fixture
def side_by_side():
    """Two frames on the same row, 200 apart."""
    return Rect(0, 0, 100, 60), Rect(300, 0, 100, 60)


@pytest.fixture
def canvas():
    """Canvas with two frames A and B on the same row."""
    canvas = MemoryCanvas()
    canvas.add_frame("A", 0, 0, 100, 60, frame_id="A")
    canvas.add_frame("B", 300, 0, 100, 60, frame_id="B")
    return canvas


@pytest.fixture
def manager(canvas):
    """ConnectionManager on the two-frame canvas."""
    return ConnectionManager(canvas)


@pytest.fixture
def row_canvas():
    """Canvas with four frames in a horizontal row, added out of order."""
    canvas = MemoryCanvas()
    for name, x in [("C", 600), ("A", 0), ("D", 900), ("B", 300)]:
        canvas.add_frame(name, x, 0, 100, 60, frame_id=name)
    return canvas


@pytest.fixture
def storage(tmp_path):
    """Settings storage in a temporary directory."""
    return ConfigStorage(tmp_path / "settings" / "storage.json")
