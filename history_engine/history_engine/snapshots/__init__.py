"""Snapshot creation, naming and comparison."""

from __future__ import annotations

from history_engine.snapshots.naming import MIN_DATE, UNKNOWN_MILESTONE, SnapshotNaming
from history_engine.snapshots.renderer import extract_sections, render_snapshot
from history_engine.snapshots.store import SnapshotStore
from history_engine.snapshots.validation import validate_capture_type, validate_milestone

__all__ = [
    "MIN_DATE",
    "SnapshotNaming",
    "SnapshotStore",
    "UNKNOWN_MILESTONE",
    "extract_sections",
    "render_snapshot",
    "validate_capture_type",
    "validate_milestone",
]
