"""Exception hierarchy for the history engine.

Every error raised by the core components derives from :class:`HistoryError`
so that the service layer can convert failures into structured responses at a
single boundary.  Milestone validation errors carry a ``kind`` so callers can
tell the three failure modes apart without parsing messages.
"""

from __future__ import annotations


class HistoryError(Exception):
    """Base class for all history engine errors."""

    kind: str = "error"


# ---------------------------------------------------------------------------
# Milestone validation
# ---------------------------------------------------------------------------


class MilestoneValidationError(HistoryError):
    """Raised when a milestone label is rejected before any I/O happens."""

    kind: str = "invalid"


class EmptyMilestoneError(MilestoneValidationError):
    """The milestone is empty or whitespace only."""

    kind = "empty"


class MilestoneTooLongError(MilestoneValidationError):
    """The milestone exceeds the configured maximum length."""

    kind = "too_long"


class MilestonePatternError(MilestoneValidationError):
    """The milestone contains characters outside the configured pattern."""

    kind = "pattern"


class CaptureTypeError(HistoryError):
    """The capture type is not a plain alphanumeric word."""

    kind = "capture_type"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class SnapshotNotFoundError(HistoryError):
    """Raised when a referenced snapshot does not exist."""

    kind = "not_found"


class SnapshotIOError(HistoryError):
    """Raised when reading, writing or moving a history document fails."""

    kind = "io"


class ConfigurationError(HistoryError):
    """Raised for an unreadable or invalid configuration."""

    kind = "configuration"
