"""
Bulk creation and update of connections.

Frames selected together are paired up by a connection strategy, and each
pair is drawn through the ConnectionManager. Items are processed one at a
time; a failing item is recorded and the run carries on, and a cancellation
callable is polled between items.

Classes:
    ConnectionStrategy: How selected frames are paired.
    BulkOperationResult: Outcome of a bulk run.
    BulkOperationsService: Runs bulk create, update and retry.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import networkx as nx

from .config import DEFAULT_CONFIG, ConnectionConfig
from .errors import BulkErrorHandler, BulkItemError, FlowConnectorError
from .layout import FrameOrderAnalyzer
from .manager import ConnectionManager
from .validation import validate_config, validate_properties

logger = logging.getLogger(__name__)

STRATEGIES = ("sequential", "hub-and-spoke", "full-mesh", "custom")

# Substrings marking a failure that retrying will not fix
_PERMANENT_MARKERS = ("validation", "invalid", "permission", "locked", "not found", "deleted")

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class ConnectionStrategy:
    """
    Pairing strategy for bulk creation.

    Attributes:
        type: "sequential", "hub-and-spoke", "full-mesh" or "custom".
        center_frame_id: Hub frame for hub-and-spoke; the most central
            frame when omitted.
        custom_pairs: (from_id, to_id) pairs for custom.
    """

    type: str = "sequential"
    center_frame_id: Optional[str] = None
    custom_pairs: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class BulkOperationResult:
    """
    Outcome of a bulk run.

    ``config`` and ``changes`` record the settings the run applied so a
    retry can apply the same ones.
    """

    successful: int = 0
    failed: int = 0
    errors: List[BulkItemError] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)
    cancelled: bool = False
    operation: str = "create"
    config: Optional[ConnectionConfig] = None
    changes: Optional[Dict[str, Any]] = None

    @property
    def can_retry(self) -> bool:
        return bool(BulkErrorHandler.retryable(self.errors))

    @property
    def message(self) -> str:
        if self.cancelled:
            return (
                f"Operation cancelled: {self.successful} completed, "
                f"{self.failed} failed before cancellation."
            )
        return BulkErrorHandler.result_message(
            self.successful, self.failed, self.errors, self.operation
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "errors": [
                {"error": e.error, "frameIds": e.frame_ids, "connectionId": e.connection_id}
                for e in self.errors
            ],
            "createdIds": list(self.created_ids),
            "cancelled": self.cancelled,
            "canRetry": self.can_retry,
            "message": self.message,
        }


def _failure(message: str, operation: str, failed: int = 1) -> BulkOperationResult:
    return BulkOperationResult(
        failed=failed, errors=[BulkItemError(error=message)], operation=operation
    )


def _mark_retryable(message: str) -> str:
    lowered = message.lower()
    if any(marker in lowered for marker in _PERMANENT_MARKERS):
        return message
    return f"{message} (retryable)"


def most_central_frame(frames: Sequence[Any]) -> Any:
    """The frame whose center is closest to the mean of all centers."""
    cx = sum(f.x + f.width / 2 for f in frames) / len(frames)
    cy = sum(f.y + f.height / 2 for f in frames) / len(frames)
    return min(
        frames,
        key=lambda f: math.hypot(f.x + f.width / 2 - cx, f.y + f.height / 2 - cy),
    )


def plan_pairs(
    frames: Sequence[Any],
    strategy: ConnectionStrategy,
    analyzer: Optional[FrameOrderAnalyzer] = None,
) -> nx.DiGraph:
    """
    Connection plan as a directed graph over frame ids.

    Every edge is one connection to draw; its ``order`` attribute is the
    position in which it is drawn. Duplicate and self pairs collapse away.
    Unknown strategy types fall back to sequential.
    """
    plan = nx.DiGraph()
    by_id = {frame.id: frame for frame in frames}
    for frame in frames:
        plan.add_node(frame.id, frame=frame)

    def connect(a, b):
        if a.id != b.id and not plan.has_edge(a.id, b.id):
            plan.add_edge(a.id, b.id, order=plan.number_of_edges())

    if strategy.type == "hub-and-spoke":
        if strategy.center_frame_id:
            center = by_id.get(strategy.center_frame_id, frames[0])
        else:
            center = most_central_frame(frames)
        for frame in frames:
            connect(center, frame)

    elif strategy.type == "full-mesh":
        for i, first in enumerate(frames):
            for second in frames[i + 1:]:
                connect(first, second)

    elif strategy.type == "custom":
        for from_id, to_id in strategy.custom_pairs:
            if from_id in by_id and to_id in by_id:
                connect(by_id[from_id], by_id[to_id])

    else:
        ordered = list(frames)
        analysis = (analyzer or FrameOrderAnalyzer()).analyze_frame_layout(frames)
        if analysis.is_ordered:
            ordered = [by_id[ref.id] for ref in analysis.sorted_frames if ref.id in by_id]
        for first, second in zip(ordered, ordered[1:]):
            connect(first, second)

    return plan


def connection_pairs(
    frames: Sequence[Any],
    strategy: ConnectionStrategy,
    analyzer: Optional[FrameOrderAnalyzer] = None,
) -> List[Tuple[Any, Any]]:
    """The planned (from_frame, to_frame) pairs in drawing order."""
    plan = plan_pairs(frames, strategy, analyzer)
    edges = sorted(plan.edges(data="order"), key=lambda edge: edge[2])
    return [(plan.nodes[u]["frame"], plan.nodes[v]["frame"]) for u, v, _ in edges]


class BulkOperationsService:
    """
    Bulk create, update and retry on top of a ConnectionManager.

    Args:
        manager: Manager used for each individual connection.
        analyzer: Layout analyzer for the sequential strategy.
    """

    def __init__(self, manager: ConnectionManager, analyzer: Optional[FrameOrderAnalyzer] = None):
        self.manager = manager
        self.analyzer = analyzer or FrameOrderAnalyzer()

    def _frames(self, frame_ids: Sequence[str]) -> List[Any]:
        frames = []
        for frame_id in frame_ids:
            node = self.manager.canvas.get_node(frame_id)
            if node is not None and node.type == "FRAME":
                frames.append(node)
        return frames

    def create_bulk_connections(
        self,
        frame_ids: Sequence[str],
        config: ConnectionConfig,
        strategy: Optional[ConnectionStrategy] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> BulkOperationResult:
        """
        Connect the given frames according to a strategy.

        Setup problems (too few frames, missing frames, invalid
        configuration, nothing to connect) are reported as a single failure
        without drawing anything.
        """
        if len(frame_ids) < 2:
            return _failure("At least 2 frames must be selected for bulk connection creation", "create")
        try:
            validate_config(config)
        except FlowConnectorError as e:
            return _failure(f"Validation failed: {e}", "create")

        frames = self._frames(frame_ids)
        if len(frames) != len(frame_ids):
            return _failure("Some selected frames could not be found", "create")

        pairs = connection_pairs(frames, strategy or ConnectionStrategy(), self.analyzer)
        if not pairs:
            return _failure("No valid connection pairs could be generated", "create")
        return self._create_pairs(pairs, config, should_cancel, progress)

    def _create_pairs(self, pairs, config, should_cancel, progress) -> BulkOperationResult:
        result = BulkOperationResult(operation="create", config=config)
        for index, (frame1, frame2) in enumerate(pairs):
            if should_cancel is not None and should_cancel():
                logger.info("Bulk creation cancelled after %d item(s)", index)
                result.cancelled = True
                break
            if progress is not None:
                progress(index, len(pairs), f"Connecting {frame1.name} → {frame2.name}")
            try:
                group = self.manager.create_connection(frame1.id, frame2.id, config)
            except Exception as e:
                logger.warning("Bulk creation failed for %s -> %s: %s", frame1.id, frame2.id, e)
                result.failed += 1
                result.errors.append(
                    BulkItemError(
                        error=_mark_retryable(
                            f'Failed to create connection between "{frame1.name}" '
                            f'and "{frame2.name}": {e}'
                        ),
                        frame_ids=[frame1.id, frame2.id],
                    )
                )
                continue
            result.successful += 1
            result.created_ids.append(group.id)
        return result

    def update_bulk_connections(
        self,
        connection_ids: Sequence[str],
        config: Optional[ConnectionConfig] = None,
        changes: Optional[Mapping[str, Any]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> BulkOperationResult:
        """
        Redraw several connections with new settings.

        Either a full ``config`` replaces each connection's configuration,
        or ``changes`` (field -> value) is merged into each connection's own
        configuration, leaving other fields as they were.
        """
        if not connection_ids:
            return _failure("No connections specified for bulk update", "update")
        if changes:
            errors = validate_properties(changes)
            if errors:
                details = "; ".join(f"{k}: {v}" for k, v in errors.items())
                return _failure(f"Validation failed: {details}", "update", len(connection_ids))
            changes = {ConnectionConfig.attribute_name(k): v for k, v in changes.items()}
        elif config is not None:
            try:
                validate_config(config)
            except FlowConnectorError as e:
                return _failure(f"Validation failed: {e}", "update", len(connection_ids))
        else:
            return _failure("No configuration provided for bulk update", "update", len(connection_ids))

        result = BulkOperationResult(operation="update", config=config, changes=changes)
        for index, connection_id in enumerate(connection_ids):
            if should_cancel is not None and should_cancel():
                logger.info("Bulk update cancelled after %d item(s)", index)
                result.cancelled = True
                break
            if progress is not None:
                progress(index, len(connection_ids), f"Updating {connection_id}")
            try:
                new_config = config
                if changes:
                    new_config = self.manager.get_metadata(connection_id).config.replace(**changes)
                group = self.manager.update_connection(connection_id, new_config)
            except Exception as e:
                logger.warning("Bulk update failed for %s: %s", connection_id, e)
                result.failed += 1
                result.errors.append(
                    BulkItemError(
                        error=_mark_retryable(f'Failed to update connection "{connection_id}": {e}'),
                        connection_id=connection_id,
                    )
                )
                continue
            result.successful += 1
            result.created_ids.append(group.id)
        return result

    def retry_failed_operations(
        self,
        previous: BulkOperationResult,
        config: Optional[ConnectionConfig] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> BulkOperationResult:
        """
        Re-run the retryable items of an earlier result.

        Created pairs are retried as the same frame pairs; updates as the
        same connection ids. Non-retryable failures are left alone.

        Args:
            previous: Result of the run to retry.
            config: Settings to apply instead of the ones the previous run
                used. Without it an update retry re-applies the previous
                ``changes`` (or full config), and a create retry uses the
                previous config, falling back to DEFAULT_CONFIG.
        """
        retryable = BulkErrorHandler.retryable(previous.errors)
        if not retryable:
            return _failure("No retryable operations found", previous.operation)

        if previous.operation == "update":
            ids = [e.connection_id for e in retryable if e.connection_id]
            if config is not None:
                return self.update_bulk_connections(ids, config, should_cancel=should_cancel)
            return self.update_bulk_connections(
                ids, previous.config, previous.changes, should_cancel=should_cancel
            )

        pairs = []
        for error in retryable:
            if error.frame_ids and len(error.frame_ids) == 2:
                frames = self._frames(error.frame_ids)
                if len(frames) == 2:
                    pairs.append((frames[0], frames[1]))
        if not pairs:
            return _failure("No retryable operations found", "create")
        config = config or previous.config or DEFAULT_CONFIG
        return self._create_pairs(pairs, config, should_cancel, None)
