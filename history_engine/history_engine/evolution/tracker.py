"""Component evolution and project timeline extraction.

Status derivation is heuristic: every line of a historical document that
mentions the component is scanned for markers, and the strongest marker
found decides the status for that document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from history_engine.compaction.bundle import split_bundle
from history_engine.config import HistoryConfig
from history_engine.errors import SnapshotIOError
from history_engine.models.results import (
    ComponentStatus,
    EvolutionResult,
    EvolutionStep,
    TimelineEvent,
    TimelineResult,
)
from history_engine.snapshots.documents import list_markdown, read_document, snapshot_date
from history_engine.snapshots.naming import MIN_DATE, UNKNOWN_MILESTONE, SnapshotNaming

logger = logging.getLogger(__name__)

ARCHIVED_EVENT_TYPE = "Archived"
DEFAULT_EVENT_TYPE = "Snapshot"

# Strongest first.
_STATUS_MARKERS: list[tuple[ComponentStatus, re.Pattern[str]]] = [
    (ComponentStatus.COMPLETED, re.compile(r"\[x\]|✅|\bcompleted?\b|\bdone\b", re.IGNORECASE)),
    (ComponentStatus.IN_PROGRESS, re.compile(r"🚧|\bin[ -]progress\b|\bwip\b", re.IGNORECASE)),
    (ComponentStatus.PLANNED, re.compile(r"\[ \]|❌|\btodo\b|\bplanned\b", re.IGNORECASE)),
]


def derive_status(content: str, component: str) -> ComponentStatus:
    """Strongest status marker on any line of *content* naming *component*."""
    needle = component.casefold()
    best: int | None = None
    for line in content.split("\n"):
        if needle not in line.casefold():
            continue
        for rank, (_, pattern) in enumerate(_STATUS_MARKERS):
            if best is not None and rank >= best:
                break
            if pattern.search(line):
                best = rank
                break
        if best == 0:
            break
    return _STATUS_MARKERS[best][0] if best is not None else ComponentStatus.MENTIONED


def _read_or_skip(path: Path) -> str | None:
    try:
        return read_document(path)
    except SnapshotIOError as exc:
        logger.warning("Skipping unreadable history document: %s", exc)
        return None


@dataclass(frozen=True)
class _HistoricalSnapshot:
    file_name: str
    date: datetime
    milestone: str
    content: str
    archive: str | None = None


class EvolutionTracker:
    """Mine active snapshots and archive bundles for component history."""

    def __init__(self, config: HistoryConfig) -> None:
        self._config = config
        self._naming = SnapshotNaming(config.snapshot)

    def _historical_snapshots(self) -> list[_HistoricalSnapshot]:
        """Every active snapshot plus every snapshot embedded in a bundle, oldest first."""
        snapshots: list[_HistoricalSnapshot] = []

        for path in list_markdown(self._config.snapshots_dir):
            content = _read_or_skip(path)
            if content is None:
                continue
            snapshots.append(
                _HistoricalSnapshot(
                    file_name=path.name,
                    date=snapshot_date(path, self._naming),
                    milestone=self._naming.milestone_of(path.name),
                    content=content,
                )
            )

        for path in list_markdown(self._config.archive_dir):
            bundle = _read_or_skip(path)
            if bundle is None:
                continue
            for entry in split_bundle(bundle):
                parsed = self._naming.parse(entry.source_file)
                if parsed is not None:
                    date, milestone = parsed.date, parsed.milestone
                else:
                    date = self._naming.parse_date(entry.source_date) or MIN_DATE
                    milestone = UNKNOWN_MILESTONE
                snapshots.append(
                    _HistoricalSnapshot(
                        file_name=entry.source_file,
                        date=date,
                        milestone=milestone,
                        content=entry.content,
                        archive=path.name,
                    )
                )

        snapshots.sort(key=lambda s: (s.date, s.file_name))
        return snapshots

    def get_evolution(self, component: str) -> EvolutionResult:
        """Trace *component* through history.

        A snapshot contributes a step when its text contains the component
        name, compared case-insensitively.
        """
        result = EvolutionResult(component_name=component)
        if not component.strip():
            result.summary = "Component not found in history"
            return result

        needle = component.casefold()
        for snap in self._historical_snapshots():
            if needle not in snap.content.casefold():
                continue
            result.steps.append(
                EvolutionStep(
                    date=snap.date,
                    milestone=snap.milestone,
                    status=derive_status(snap.content, component),
                    file_name=snap.file_name,
                    archive=snap.archive,
                )
            )

        if result.steps:
            result.summary = f"Component found in {len(result.steps)} snapshots"
        else:
            result.summary = "Component not found in history"
        logger.debug("Evolution of %r: %s", component, result.summary)
        return result

    def get_timeline(self) -> TimelineResult:
        """One event per active snapshot and per archive bundle, oldest first."""
        events: list[TimelineEvent] = []

        for path in list_markdown(self._config.snapshots_dir):
            parsed = self._naming.parse(path.name)
            events.append(
                TimelineEvent(
                    date=parsed.date if parsed else MIN_DATE,
                    milestone=parsed.milestone if parsed else UNKNOWN_MILESTONE,
                    file_name=path.name,
                    type=(parsed.capture_type if parsed else "") or DEFAULT_EVENT_TYPE,
                )
            )

        for path in list_markdown(self._config.archive_dir):
            parsed_archive = self._naming.parse_archive(path.name)
            if parsed_archive is not None:
                date = parsed_archive.start_date
                milestone = (
                    f"{self._naming.format_date(parsed_archive.start_date)} to "
                    f"{self._naming.format_date(parsed_archive.end_date)}"
                )
            else:
                date, milestone = MIN_DATE, UNKNOWN_MILESTONE
            events.append(
                TimelineEvent(date=date, milestone=milestone, file_name=path.name, type=ARCHIVED_EVENT_TYPE)
            )

        events.sort(key=lambda e: (e.date, e.file_name))
        return TimelineResult(events=events)
