"""Snapshot persistence: validated creation, listing, reading and comparison.

Snapshots are immutable once written.  Files are opened with exclusive
creation, so an existing snapshot is never overwritten; a create whose
rendered filename is already taken fails with :class:`SnapshotIOError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from history_engine.config import HistoryConfig
from history_engine.errors import (
    MilestonePatternError,
    SnapshotIOError,
    SnapshotNotFoundError,
)
from history_engine.models.context import DevelopmentContext
from history_engine.models.results import ComparisonResult
from history_engine.models.snapshot import Snapshot
from history_engine.snapshots.documents import list_markdown, read_document, snapshot_date
from history_engine.snapshots.naming import UNKNOWN_MILESTONE, SnapshotNaming, to_utc
from history_engine.snapshots.renderer import extract_sections, render_snapshot
from history_engine.snapshots.validation import validate_capture_type, validate_milestone

if TYPE_CHECKING:
    from history_engine.compaction.engine import CompactionEngine

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Create and inspect snapshot documents in the active directory.

    Parameters
    ----------
    config:
        Project configuration (paths, naming, milestone rules, policy).
    compaction:
        Engine to notify after each create when the policy enables
        auto-compaction.  Optional.
    """

    def __init__(
        self,
        config: HistoryConfig,
        compaction: CompactionEngine | None = None,
    ) -> None:
        self._config = config
        self._naming = SnapshotNaming(config.snapshot)
        self._compaction = compaction

    @property
    def directory(self) -> Path:
        return self._config.snapshots_dir

    @property
    def naming(self) -> SnapshotNaming:
        return self._naming

    # -- create --------------------------------------------------------------

    def validate(self, milestone: str, capture_type: str) -> None:
        """Check a milestone label and capture type without touching the disk.

        Raises
        ------
        MilestoneValidationError
            One of its subclasses, for a rejected milestone.
        CaptureTypeError
            For a capture type that would not survive filename parsing.
        """
        rules = self._config.snapshot
        validate_milestone(milestone, rules.validation, rules.max_length)
        validate_capture_type(capture_type)

    def create(self, milestone: str, context: DevelopmentContext) -> Snapshot:
        """Validate, render and persist a new snapshot.

        Raises
        ------
        MilestoneValidationError
            One of its subclasses, before any file system access.
        CaptureTypeError
            If ``context.type`` is not a plain alphanumeric word.
        SnapshotIOError
            If the directory or file cannot be written, or the filename is
            already taken.
        """
        self.validate(milestone, context.type)

        filename = self._naming.render(context.timestamp, context.type, milestone)
        if "/" in filename or "\\" in filename or filename in (".", ".."):
            raise MilestonePatternError(f"Milestone produces an invalid filename: {filename!r}")

        snapshot_id = Path(filename).stem
        content = render_snapshot(context.model_copy(update={"milestone": milestone, "snapshot_id": snapshot_id}))

        directory = self.directory
        path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SnapshotIOError(f"Cannot create snapshot directory {directory}: {exc}") from exc

        try:
            with path.open("x", encoding="utf-8") as fh:
                fh.write(content)
        except FileExistsError as exc:
            raise SnapshotIOError(f"Snapshot already exists: {filename}") from exc
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise SnapshotIOError(f"Failed to write snapshot {path}: {exc}") from exc

        logger.info("Created snapshot: %s", path)

        self._trigger_auto_compaction()

        return Snapshot(
            snapshot_id=snapshot_id,
            filename=filename,
            path=path,
            created_at=to_utc(context.timestamp),
            milestone=milestone,
            capture_type=context.type,
            content=content,
        )

    def _trigger_auto_compaction(self) -> None:
        """Run compaction if the policy asks for it.

        Failures are logged and never propagate: a snapshot that was written
        stays written.
        """
        if self._compaction is None or not self._config.compaction.auto_compact:
            return
        try:
            status = self._compaction.check_needed()
            if not status.compaction_needed:
                return
            logger.info("Auto-compaction triggered (reason: %s)", status.reason.value)
            result = self._compaction.compact()
            if result.success:
                logger.info("Auto-compaction completed: %s", result.message)
            else:
                logger.warning("Auto-compaction did not run: %s", result.message)
        except Exception:
            logger.exception("Error during auto-compaction; snapshot creation is unaffected")

    # -- read ----------------------------------------------------------------

    def resolve(self, name: str) -> Path:
        """Resolve a snapshot filename inside the active directory.

        Raises
        ------
        SnapshotNotFoundError
            If *name* is not a plain filename or no such snapshot exists.
        """
        if not name or Path(name).name != name or name in (".", ".."):
            raise SnapshotNotFoundError(f"Snapshot not found: {name!r}")
        path = self.directory / name
        if not path.is_file():
            raise SnapshotNotFoundError(f"Snapshot not found: {name}")
        return path

    def read(self, name: str) -> str:
        return read_document(self.resolve(name))

    def list_snapshots(self) -> list[Snapshot]:
        """Active snapshots in filename order, without their content."""
        snapshots: list[Snapshot] = []
        for path in list_markdown(self.directory):
            parsed = self._naming.parse(path.name)
            snapshots.append(
                Snapshot(
                    snapshot_id=path.stem,
                    filename=path.name,
                    path=path,
                    created_at=snapshot_date(path, self._naming),
                    milestone=parsed.milestone if parsed else UNKNOWN_MILESTONE,
                    capture_type=parsed.capture_type if parsed else "",
                )
            )
        return snapshots

    # -- compare -------------------------------------------------------------

    def compare(self, name_a: str, name_b: str) -> ComparisonResult:
        """Diff two snapshots section by section.

        Sections only in *name_b* are added, only in *name_a* removed, and
        present in both with a different trimmed body modified.

        Raises
        ------
        SnapshotNotFoundError
            If either snapshot does not exist.
        """
        sections_a = extract_sections(self.read(name_a))
        sections_b = extract_sections(self.read(name_b))

        added = [name for name in sections_b if name not in sections_a]
        removed = [name for name in sections_a if name not in sections_b]
        modified = [name for name in sections_a if name in sections_b and sections_a[name] != sections_b[name]]

        result = ComparisonResult(
            snapshot_a=name_a,
            snapshot_b=name_b,
            added_sections=added,
            removed_sections=removed,
            modified_sections=modified,
        )
        logger.debug("Compared %s and %s: %s", name_a, name_b, result.summary)
        return result
