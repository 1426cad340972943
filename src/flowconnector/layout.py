"""
Frame layout analysis for bulk sequential connections.

Classifies a set of frames as a horizontal row, a vertical column, a grid
or a scattered arrangement, with a confidence score, and orders the frames
so they can be connected one after another.

Classes:
    LayoutPattern: The detected arrangement.
    FrameLayoutAnalysis: Pattern, confidence, frame order and suggestions.
    FrameOrderAnalyzer: Runs the classification.
"""

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, List, Optional, Sequence, Tuple

from .config import (
    ALIGNMENT_TOLERANCE,
    GRID_SIZE_TOLERANCE,
    MIN_CONFIDENCE_THRESHOLD,
)
from .models import FrameRef

SCATTERED_SUGGESTIONS = [
    "Arrange frames in a line (horizontal/vertical) for sequential connections",
    "Select a center frame for hub-and-spoke connections",
    "Use custom connection mode to manually specify pairs",
]


@dataclass
class LayoutPattern:
    """
    A detected frame arrangement.

    Attributes:
        type: "horizontal", "vertical", "grid" or "scattered".
        direction: Reading direction for lines, e.g. "left-to-right".
        grid_dimensions: (rows, cols) for grids.
    """

    type: str
    direction: Optional[str] = None
    grid_dimensions: Optional[Tuple[int, int]] = None


@dataclass
class FrameLayoutAnalysis:
    """Result of analyzing a set of frames."""

    pattern: LayoutPattern
    is_ordered: bool = False
    sorted_frames: List[FrameRef] = field(default_factory=list)
    confidence: float = 0.0
    suggestions: List[str] = field(default_factory=list)

    @property
    def frame_ids(self) -> List[str]:
        return [frame.id for frame in self.sorted_frames]


def _center_x(frame: Any) -> float:
    return frame.x + frame.width / 2


def _center_y(frame: Any) -> float:
    return frame.y + frame.height / 2


def _refs(frames: Sequence[Any]) -> List[FrameRef]:
    return [FrameRef(id=frame.id, name=frame.name) for frame in frames]


def _max_deviation(values: Sequence[float]) -> float:
    mean = sum(values) / len(values)
    return max(abs(value - mean) for value in values)


class FrameOrderAnalyzer:
    """
    Detects how frames are arranged and in which order to connect them.

    Frames are any objects with ``id``, ``name``, ``x``, ``y``, ``width``
    and ``height`` attributes.
    """

    def __init__(
        self,
        alignment_tolerance: float = ALIGNMENT_TOLERANCE,
        min_confidence: float = MIN_CONFIDENCE_THRESHOLD,
    ):
        self.alignment_tolerance = alignment_tolerance
        self.min_confidence = min_confidence

    def analyze_frame_layout(self, frames: Sequence[Any]) -> FrameLayoutAnalysis:
        """
        Classify frames and order them for sequential connection.

        The horizontal, vertical and grid candidates are scored
        independently; the most confident one wins (earlier candidates win
        ties). Below the confidence threshold the frames are scattered.
        """
        if len(frames) < 2:
            return self._scattered_analysis(frames)

        analyses = [
            self._analyze_horizontal(frames),
            self._analyze_vertical(frames),
            self._analyze_grid(frames),
        ]
        best = analyses[0]
        for analysis in analyses[1:]:
            if analysis.confidence > best.confidence:
                best = analysis

        if best.confidence < self.min_confidence:
            return self._scattered_analysis(frames)
        return best

    def detect_layout_pattern(self, frames: Sequence[Any]) -> LayoutPattern:
        return self.analyze_frame_layout(frames).pattern

    def is_scattered_layout(self, frames: Sequence[Any]) -> bool:
        return self.detect_layout_pattern(frames).type == "scattered"

    def sort_frames_by_pattern(
        self, frames: Sequence[Any], pattern: LayoutPattern
    ) -> List[Any]:
        """Order frames the way the pattern reads; scattered keeps input order."""
        if pattern.type == "horizontal":
            return self._sort_horizontally(frames, pattern.direction == "right-to-left")
        if pattern.type == "vertical":
            return self._sort_vertically(frames, pattern.direction == "bottom-to-top")
        if pattern.type == "grid" and pattern.grid_dimensions:
            return self._sort_grid(frames)
        return list(frames)

    # ------------------------------------------------------------------
    # Candidate patterns
    # ------------------------------------------------------------------

    def _analyze_horizontal(self, frames: Sequence[Any]) -> FrameLayoutAnalysis:
        ordered = self._sort_horizontally(frames)
        max_deviation = _max_deviation([_center_y(f) for f in ordered])
        confidence = max(0.0, 1 - max_deviation / self.alignment_tolerance)

        return FrameLayoutAnalysis(
            pattern=LayoutPattern(type="horizontal", direction="left-to-right"),
            is_ordered=confidence > self.min_confidence,
            sorted_frames=_refs(ordered),
            confidence=confidence,
            suggestions=self._line_suggestions(confidence, max_deviation, "horizontally", "vertically"),
        )

    def _analyze_vertical(self, frames: Sequence[Any]) -> FrameLayoutAnalysis:
        ordered = self._sort_vertically(frames)
        max_deviation = _max_deviation([_center_x(f) for f in ordered])
        confidence = max(0.0, 1 - max_deviation / self.alignment_tolerance)

        return FrameLayoutAnalysis(
            pattern=LayoutPattern(type="vertical", direction="top-to-bottom"),
            is_ordered=confidence > self.min_confidence,
            sorted_frames=_refs(ordered),
            confidence=confidence,
            suggestions=self._line_suggestions(confidence, max_deviation, "vertically", "horizontally"),
        )

    def _analyze_grid(self, frames: Sequence[Any]) -> FrameLayoutAnalysis:
        if len(frames) < 4:
            return self._scattered_analysis(frames)

        dimensions = self._detect_grid_dimensions(frames)
        if dimensions is None:
            return self._scattered_analysis(frames)

        confidence = self._grid_confidence(frames, dimensions)
        return FrameLayoutAnalysis(
            pattern=LayoutPattern(type="grid", grid_dimensions=dimensions),
            is_ordered=confidence > self.min_confidence,
            sorted_frames=_refs(self._sort_grid(frames)),
            confidence=confidence,
            suggestions=self._grid_suggestions(confidence, dimensions),
        )

    def _scattered_analysis(self, frames: Sequence[Any]) -> FrameLayoutAnalysis:
        return FrameLayoutAnalysis(
            pattern=LayoutPattern(type="scattered"),
            is_ordered=False,
            sorted_frames=_refs(frames),
            confidence=0.0,
            suggestions=list(SCATTERED_SUGGESTIONS),
        )

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _sort_horizontally(self, frames: Sequence[Any], reverse: bool = False) -> List[Any]:
        ordered = sorted(frames, key=_center_x)
        return ordered[::-1] if reverse else ordered

    def _sort_vertically(self, frames: Sequence[Any], reverse: bool = False) -> List[Any]:
        ordered = sorted(frames, key=_center_y)
        return ordered[::-1] if reverse else ordered

    def _sort_grid(self, frames: Sequence[Any]) -> List[Any]:
        """Row-major order: rows top to bottom, then left to right within a row."""
        tolerance = self.alignment_tolerance

        def compare(a, b):
            row_diff = _center_y(a) - _center_y(b)
            if abs(row_diff) > tolerance:
                return row_diff
            return _center_x(a) - _center_x(b)

        return sorted(frames, key=cmp_to_key(compare))

    # ------------------------------------------------------------------
    # Grid detection
    # ------------------------------------------------------------------

    def _group_by_position(self, frames: Sequence[Any], axis: str) -> List[List[Any]]:
        """
        Cluster frames whose centers lie within tolerance on one axis.

        A frame joins the first group whose first member is close enough,
        otherwise it starts a new group.
        """
        position = _center_x if axis == "x" else _center_y
        groups: List[List[Any]] = []
        for frame in frames:
            for group in groups:
                if abs(position(frame) - position(group[0])) <= self.alignment_tolerance:
                    group.append(frame)
                    break
            else:
                groups.append([frame])
        return groups

    def _detect_grid_dimensions(self, frames: Sequence[Any]) -> Optional[Tuple[int, int]]:
        rows = len(self._group_by_position(frames, "y"))
        if rows < 2:
            return None
        cols = len(self._group_by_position(frames, "x"))
        if cols < 2:
            return None

        expected = rows * cols
        actual = len(frames)
        if abs(expected - actual) / actual > GRID_SIZE_TOLERANCE:
            return None
        return rows, cols

    def _grid_confidence(self, frames: Sequence[Any], dimensions: Tuple[int, int]) -> float:
        rows, cols = dimensions
        expected = rows * cols
        size_confidence = 1 - abs(expected - len(frames)) / expected

        scores = []
        for group in self._group_by_position(frames, "y"):
            if len(group) > 1:
                deviation = _max_deviation([_center_y(f) for f in group])
                scores.append(max(0.0, 1 - deviation / self.alignment_tolerance))
        for group in self._group_by_position(frames, "x"):
            if len(group) > 1:
                deviation = _max_deviation([_center_x(f) for f in group])
                scores.append(max(0.0, 1 - deviation / self.alignment_tolerance))

        alignment_confidence = sum(scores) / len(scores) if scores else 0.0
        return (size_confidence + alignment_confidence) / 2

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def _line_suggestions(
        self, confidence: float, max_deviation: float, along: str, across: str
    ) -> List[str]:
        suggestions = []
        if confidence < self.min_confidence:
            suggestions.append(f"Align frames {along} for better sequential connections")
            if max_deviation > self.alignment_tolerance:
                suggestions.append(
                    f"Frames are misaligned by {round(max_deviation)}px {across}"
                )
        if confidence > 0.8:
            suggestions.append("Frames are well-aligned for sequential connections")
        return suggestions

    def _grid_suggestions(self, confidence: float, dimensions: Tuple[int, int]) -> List[str]:
        rows, cols = dimensions
        if confidence < self.min_confidence:
            return [
                "Improve grid alignment for better connection patterns",
                f"Detected {rows}×{cols} grid pattern",
            ]
        return [
            f"Well-organized {rows}×{cols} grid layout",
            "Consider hub-and-spoke or sequential connections",
        ]
