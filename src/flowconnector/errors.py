"""
Exceptions and bulk-operation error reporting.

The geometry functions never raise for bad coordinates; the exceptions here
belong to the orchestration layer (canvas lookups, validation, bulk runs).
BulkErrorHandler turns raw per-item failure messages into categorized,
user-facing reports.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class FlowConnectorError(Exception):
    """Base class for connector errors."""

    pass


class ValidationError(FlowConnectorError):
    """Raised when configuration values are out of range or malformed."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        details = "; ".join(f"{key}: {msg}" for key, msg in self.errors.items())
        super().__init__(f"Invalid configuration: {details}")


class FrameNotFoundError(FlowConnectorError):
    """Raised when a referenced frame no longer exists."""

    def __init__(self, frame_id: str):
        self.frame_id = frame_id
        super().__init__(f"Frame not found: {frame_id}")


class ConnectionNotFoundError(FlowConnectorError):
    """Raised when a referenced connection no longer exists."""

    def __init__(self, connection_id: str, reason: str = "not found"):
        self.connection_id = connection_id
        super().__init__(f"Connection {reason}: {connection_id}")


@dataclass
class BulkItemError:
    """A failure of one item in a bulk operation."""

    error: str
    frame_ids: Optional[List[str]] = None
    connection_id: Optional[str] = None


@dataclass
class EnhancedBulkError:
    """A categorized failure with a user-facing explanation."""

    original: BulkItemError
    user_message: str
    category: str  # validation, permission, network, system, user
    severity: str  # low, medium, high
    is_retryable: bool
    suggested_action: Optional[str] = None
    technical_details: Optional[str] = None


@dataclass
class ErrorSummary:
    total_errors: int = 0
    retryable_errors: int = 0
    non_retryable_errors: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_severity: Dict[str, int] = field(default_factory=dict)
    top_suggestions: List[str] = field(default_factory=list)


def _contains(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


class BulkErrorHandler:
    """Categorizes bulk failures from their message text."""

    @classmethod
    def enhance_errors(cls, errors: List[BulkItemError]) -> List[EnhancedBulkError]:
        return [cls.enhance_error(error) for error in errors]

    @classmethod
    def enhance_error(cls, error: BulkItemError) -> EnhancedBulkError:
        """
        Categorize one failure.

        Permission, lock and not-found failures are never retryable;
        network and resource failures are. Unrecognized failures are
        retryable only when the message is tagged "(retryable)".
        """
        text = error.error.lower()
        frames = ", ".join(error.frame_ids) if error.frame_ids else None
        conn = error.connection_id

        if _contains(text, "validation", "invalid", "missing"):
            category, severity, retryable = "validation", "high", False
            if frames:
                message = f"Invalid frame configuration for frames: {frames}"
                action = "Check that the selected frames are valid and accessible"
            elif conn:
                message = f"Invalid connection configuration for connection: {conn}"
                action = "Verify the connection exists and has valid properties"
            else:
                message = "Invalid configuration provided"
                action = "Review your connection settings and try again"

        elif _contains(text, "permission", "locked", "read-only"):
            category, severity, retryable = "permission", "high", False
            if frames:
                message = f"Cannot modify frames: {frames} (locked or insufficient permissions)"
                action = "Unlock the frames or check your editing permissions"
            elif conn:
                message = f"Cannot modify connection: {conn} (locked or insufficient permissions)"
                action = "Unlock the connection or check your editing permissions"
            else:
                message = "Insufficient permissions to perform this operation"
                action = "Check your editing permissions and try again"

        elif _contains(text, "not found", "does not exist"):
            category, severity, retryable = "validation", "medium", False
            if frames:
                message = f"Frames not found: {frames} (may have been deleted)"
                action = "Refresh your selection and ensure all frames still exist"
            elif conn:
                message = f"Connection not found: {conn} (may have been deleted)"
                action = "Refresh the connection list and try again"
            else:
                message = "Selected items no longer exist"
                action = "Refresh your selection and try again"

        elif _contains(text, "timeout", "network", "connection"):
            category, severity, retryable = "network", "low", True
            message = "Operation timed out or network issue occurred"
            action = "Check your connection and try again"

        elif _contains(text, "memory", "resource", "limit"):
            category, severity, retryable = "system", "medium", True
            message = "System resource limit reached"
            action = "Try processing fewer items at once or wait a moment before retrying"

        elif _contains(text, "select", "configuration", "parameter"):
            category, severity, retryable = "user", "medium", False
            message = "Invalid selection or configuration"
            action = "Review your selection and settings, then try again"

        else:
            category, severity = "system", "medium"
            retryable = "(retryable)" in text
            if frames:
                message = f"Failed to process frames: {frames}"
                action = (
                    "Try again or check frame accessibility"
                    if retryable
                    else "Check frame configuration and permissions"
                )
            elif conn:
                message = f"Failed to process connection: {conn}"
                action = (
                    "Try again or check connection accessibility"
                    if retryable
                    else "Check connection configuration and permissions"
                )
            else:
                message = "Operation failed due to an unexpected error"
                action = (
                    "Try again in a moment"
                    if retryable
                    else "Check your configuration and try again"
                )

        return EnhancedBulkError(
            original=error,
            user_message=message,
            category=category,
            severity=severity,
            is_retryable=retryable,
            suggested_action=action,
            technical_details=error.error,
        )

    @classmethod
    def summarize(cls, enhanced: List[EnhancedBulkError]) -> ErrorSummary:
        suggestions: List[str] = []
        for item in enhanced:
            if item.suggested_action and item.suggested_action not in suggestions:
                suggestions.append(item.suggested_action)
        retryable = sum(1 for item in enhanced if item.is_retryable)
        return ErrorSummary(
            total_errors=len(enhanced),
            retryable_errors=retryable,
            non_retryable_errors=len(enhanced) - retryable,
            by_category=dict(Counter(item.category for item in enhanced)),
            by_severity=dict(Counter(item.severity for item in enhanced)),
            top_suggestions=suggestions[:3],
        )

    @classmethod
    def result_message(
        cls, successful: int, failed: int, errors: List[BulkItemError], operation: str
    ) -> str:
        """
        One-line outcome of a bulk run.

        Args:
            operation: "create" or "update".
        """
        total = successful + failed
        if failed == 0:
            verb = "created" if operation == "create" else "updated"
            plural = "s" if total != 1 else ""
            return f"Successfully {verb} all {total} connection{plural}!"
        if successful == 0:
            plural = "s" if failed != 1 else ""
            return f"Failed to {operation} any connections. {failed} error{plural} occurred."

        summary = cls.summarize(cls.enhance_errors(errors))
        message = f"Partially completed: {successful} successful, {failed} failed."
        if summary.retryable_errors > 0:
            plural = "s" if summary.retryable_errors != 1 else ""
            message += f" {summary.retryable_errors} error{plural} can be retried."
        return message

    @classmethod
    def retryable(cls, errors: List[BulkItemError]) -> List[BulkItemError]:
        return [item.original for item in cls.enhance_errors(errors) if item.is_retryable]
