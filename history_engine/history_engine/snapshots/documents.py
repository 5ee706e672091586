"""Enumeration of history documents on disk.

Active snapshots and archive bundles live in two directories.  Both are
read by several components, so listing, dating and reading them is kept in
one place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from history_engine.config import HistoryConfig
from history_engine.errors import SnapshotIOError
from history_engine.snapshots.naming import MIN_DATE, SnapshotNaming

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"


@dataclass(frozen=True)
class HistoryDocument:
    """A snapshot or bundle file together with the date used to order it."""

    path: Path
    date: datetime
    archived: bool = False

    @property
    def name(self) -> str:
        return self.path.name


def list_markdown(directory: Path) -> list[Path]:
    """Return the ``*.md`` files directly inside *directory*, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix == DOCUMENT_SUFFIX),
        key=lambda p: p.name,
    )


def snapshot_date(path: Path, naming: SnapshotNaming) -> datetime:
    """Date encoded in a snapshot filename, else the file modification time."""
    parsed = naming.parse(path.name)
    if parsed is not None:
        return parsed.date
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
    except OSError:
        return MIN_DATE


def active_documents(config: HistoryConfig, naming: SnapshotNaming) -> list[HistoryDocument]:
    return [HistoryDocument(path=p, date=snapshot_date(p, naming)) for p in list_markdown(config.snapshots_dir)]


def archived_documents(config: HistoryConfig, naming: SnapshotNaming) -> list[HistoryDocument]:
    """Archive bundles dated by the end of their range."""
    documents: list[HistoryDocument] = []
    for path in list_markdown(config.archive_dir):
        parsed = naming.parse_archive(path.name)
        date = parsed.end_date if parsed is not None else MIN_DATE
        documents.append(HistoryDocument(path=path, date=date, archived=True))
    return documents


def read_document(path: Path) -> str:
    """Read a history document as UTF-8 text.

    Raises
    ------
    SnapshotIOError
        If the file cannot be read or is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SnapshotIOError(f"Failed to read {path}: {exc}") from exc
