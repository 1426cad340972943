"""
Host canvas boundary.

The connector core never touches live host objects. It reads rectangles
from nodes through NodeProtocol and asks a CanvasProtocol implementation to
create, look up and remove nodes. MemoryCanvas is a complete in-memory
implementation used by the CLI and the tests, and as a reference for
adapters to real design tools.

Classes:
    NodeProtocol: What the core needs from a node (id, name, bounding box).
    CanvasProtocol: Node lookup, creation, removal and enumeration.
    Node, FrameNode, VectorNode, LabelNode, GroupNode: In-memory nodes.
    MemoryCanvas: In-memory page of nodes.
"""

import itertools
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Protocol, Sequence

from .arrows import StrokeStyle
from .config import LABEL_NODE_NAME
from .geometry import Rect
from .labels import LabelBox
from .paths import PathData


class NodeProtocol(Protocol):
    """Protocol for node-like objects with a bounding box."""

    id: str
    name: str
    x: float
    y: float
    width: float
    height: float


class CanvasProtocol(Protocol):
    """Protocol for the host canvas."""

    selection: List[str]

    def get_node(self, node_id: str) -> Optional["Node"]:
        """Look up a node anywhere on the page."""
        ...

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and its children."""
        ...

    def find_all(self, predicate: Callable[["Node"], bool]) -> List["Node"]:
        """All nodes (at any depth) matching predicate."""
        ...

    def create_vector(self, name: str, path_data: str, stroke: StrokeStyle) -> "VectorNode":
        ...

    def create_label(self, box: LabelBox) -> "LabelNode":
        ...

    def group(self, children: Sequence["Node"], name: str) -> "GroupNode":
        ...


@dataclass
class Node:
    """A node on the in-memory page."""

    id: str
    name: str
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    locked: bool = False
    type: str = "NODE"
    parent_id: Optional[str] = None
    plugin_data: Dict[str, str] = field(default_factory=dict)

    @property
    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def get_plugin_data(self, key: str) -> str:
        return self.plugin_data.get(key, "")

    def set_plugin_data(self, key: str, value: str) -> None:
        if self.locked:
            raise PermissionError(f"Node {self.id} is locked")
        self.plugin_data[key] = value


@dataclass
class FrameNode(Node):
    type: str = "FRAME"


@dataclass
class VectorNode(Node):
    type: str = "VECTOR"
    path_data: str = ""
    stroke: Optional[StrokeStyle] = None


@dataclass
class LabelNode(Node):
    type: str = "FRAME"
    box: Optional[LabelBox] = None


@dataclass
class GroupNode(Node):
    type: str = "GROUP"
    children: List[Node] = field(default_factory=list)


class MemoryCanvas:
    """
    An in-memory page of nodes.

    Node ids look like host ids ("1:1", "1:2", ...). Top-level nodes keep
    insertion order; groups own their children.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.children: List[Node] = []
        self.selection: List[str] = []

    def _new_id(self) -> str:
        return f"1:{next(self._ids)}"

    def iter_nodes(self) -> Iterator[Node]:
        """Depth-first walk over every node on the page."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, GroupNode):
                stack.extend(reversed(node.children))

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def find_all(self, predicate: Callable[[Node], bool]) -> List[Node]:
        return [node for node in self.iter_nodes() if predicate(node)]

    def add_frame(
        self,
        name: str,
        x: float,
        y: float,
        width: float,
        height: float,
        frame_id: Optional[str] = None,
    ) -> FrameNode:
        frame = FrameNode(
            id=frame_id or self._new_id(), name=name, x=x, y=y, width=width, height=height
        )
        self.children.append(frame)
        return frame

    def move_frame(self, frame_id: str, x: Optional[float] = None, y: Optional[float] = None) -> FrameNode:
        """
        Move a frame.

        Raises:
            KeyError: If no frame has this id.
        """
        node = self.get_node(frame_id)
        if not isinstance(node, FrameNode):
            raise KeyError(frame_id)
        if x is not None:
            node.x = x
        if y is not None:
            node.y = y
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node (and its children) wherever it is; False if absent."""
        node = self.get_node(node_id)
        if node is None:
            return False
        if node.locked:
            raise PermissionError(f"Node {node_id} is locked")
        siblings = self.children
        if node.parent_id is not None:
            parent = self.get_node(node.parent_id)
            siblings = parent.children if isinstance(parent, GroupNode) else self.children
        siblings[:] = [child for child in siblings if child.id != node_id]
        self.selection = [sid for sid in self.selection if sid != node_id]
        return True

    def create_vector(self, name: str, path_data: str, stroke: StrokeStyle) -> VectorNode:
        vector = VectorNode(id=self._new_id(), name=name, path_data=path_data, stroke=stroke)
        points = PathData.from_svg(path_data).points()
        if points:
            vector.x = min(p.x for p in points)
            vector.y = min(p.y for p in points)
            vector.width = max(p.x for p in points) - vector.x
            vector.height = max(p.y for p in points) - vector.y
        return vector

    def create_label(self, box: LabelBox) -> LabelNode:
        return LabelNode(
            id=self._new_id(),
            name=LABEL_NODE_NAME,
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            box=box,
        )

    def group(self, children: Sequence[Node], name: str) -> GroupNode:
        """Group freshly created nodes and append the group to the page."""
        group = GroupNode(id=self._new_id(), name=name, children=list(children))
        for child in group.children:
            child.parent_id = group.id
        sized = [c for c in group.children if c.width or c.height]
        if sized:
            group.x = min(c.x for c in sized)
            group.y = min(c.y for c in sized)
            group.width = max(c.x + c.width for c in sized) - group.x
            group.height = max(c.y + c.height for c in sized) - group.y
        self.children.append(group)
        return group
