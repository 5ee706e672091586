"""Persistent history documents: active snapshots and archive bundles."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class Snapshot(BaseModel):
    """An immutable snapshot document in the active directory.

    ``snapshot_id`` is the filename stem, which already encodes the date,
    capture type and milestone.
    """

    snapshot_id: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    path: Path
    created_at: datetime
    milestone: str
    capture_type: str
    content: str = Field(default="", repr=False)


class ArchiveBundle(BaseModel):
    """A consolidated document holding the content of retired snapshots.

    ``start_date`` and ``end_date`` are the min/max dates of the absorbed
    snapshots.  Bundles are written once and never compacted again.
    """

    filename: str
    path: Path
    start_date: datetime
    end_date: datetime
    snapshot_count: int = Field(..., ge=0)
    snapshots: list[str] = Field(default_factory=list)
