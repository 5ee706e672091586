"""Milestone label and capture type validation.

Milestone checks run in a fixed order -- empty, too long, pattern -- so that
each rejection maps to exactly one error kind.
"""

from __future__ import annotations

import re

from history_engine.errors import (
    CaptureTypeError,
    EmptyMilestoneError,
    MilestonePatternError,
    MilestoneTooLongError,
)

# Capture types are embedded between template separators, so they may not
# contain any.
CAPTURE_TYPE_PATTERN = r"[A-Za-z0-9]+"


def validate_milestone(milestone: str, pattern: str, max_length: int) -> str:
    """Validate *milestone* and return it unchanged.

    The whole label must match *pattern* (``re.fullmatch``), so a trailing
    newline is rejected even by a ``^...$`` pattern.

    Raises
    ------
    EmptyMilestoneError
        If the label is empty or whitespace only.
    MilestoneTooLongError
        If the label is longer than *max_length* characters.
    MilestonePatternError
        If the label does not match *pattern*.
    """
    if not milestone or not milestone.strip():
        raise EmptyMilestoneError("Milestone description cannot be empty")

    if len(milestone) > max_length:
        raise MilestoneTooLongError(
            f"Milestone description exceeds maximum length of {max_length} characters"
        )

    if re.fullmatch(pattern, milestone) is None:
        raise MilestonePatternError(
            f"Milestone must match pattern: {pattern} (e.g., 'feature-implementation', 'bug-fix-123')"
        )

    return milestone


def validate_capture_type(capture_type: str) -> str:
    """Validate a capture type such as ``manual`` or ``auto`` and return it.

    Raises
    ------
    CaptureTypeError
        If the type is empty or contains anything but letters and digits.
    """
    if re.fullmatch(CAPTURE_TYPE_PATTERN, capture_type or "") is None:
        raise CaptureTypeError(f"Capture type must contain only letters and digits, got {capture_type!r}")
    return capture_type
