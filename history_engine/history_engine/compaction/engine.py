"""Snapshot compaction: consolidate active snapshots into archive bundles.

Inspired by LSM-tree compaction but flat: active snapshots form the only
mutable tier, and each compaction run merges a batch of them into one
immutable bundle in the archive directory.  Bundles are never merged again.

Crash safety
------------
A run proceeds as

1. write a manifest naming the bundle and the snapshots it absorbs,
2. write the bundle to a temporary file, fsync, and rename it into place,
3. delete the absorbed originals,
4. remove the manifest.

A crash before step 2 completes leaves the active set untouched.  A crash
during step 3 leaves a complete bundle plus a manifest, and
:meth:`CompactionEngine.recover_interrupted` finishes the deletions on the
next run, so a snapshot is never visible in both tiers for longer than the
interrupted run.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from history_engine.compaction.bundle import BundleEntry, declared_count, render_bundle, split_bundle
from history_engine.config import CompactionPolicy, HistoryConfig
from history_engine.errors import SnapshotIOError
from history_engine.models.results import (
    CompactionOutcome,
    CompactionReason,
    CompactionResult,
    CompactionStatus,
)
from history_engine.models.snapshot import ArchiveBundle
from history_engine.snapshots.documents import (
    HistoryDocument,
    active_documents,
    list_markdown,
    read_document,
)
from history_engine.snapshots.naming import MIN_DATE, SnapshotNaming

logger = logging.getLogger(__name__)

MANIFEST_NAME = ".compaction-manifest.json"
_TMP_SUFFIX = ".tmp"


class CompactionEngine:
    """Decide when compaction is warranted and perform it.

    Parameters
    ----------
    config:
        Project configuration; ``config.compaction`` is the policy.
    clock:
        Returns the current time.  Injected by tests to age snapshots.
    """

    def __init__(
        self,
        config: HistoryConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._naming = SnapshotNaming(config.snapshot)
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def policy(self) -> CompactionPolicy:
        return self._config.compaction

    @property
    def manifest_path(self) -> Path:
        return self._config.archive_dir / MANIFEST_NAME

    def _expired(self, documents: list[HistoryDocument], now: datetime) -> list[HistoryDocument]:
        """Snapshots older than the max age.  A max age of 0 disables the age rule."""
        if self.policy.max_age_in_days <= 0:
            return []
        cutoff = now - timedelta(days=self.policy.max_age_in_days)
        return [doc for doc in documents if doc.date < cutoff]

    # -- check ---------------------------------------------------------------

    def check_needed(self) -> CompactionStatus:
        """Report whether the active set should be compacted.

        Compaction is needed when the snapshot count reaches the threshold or
        any snapshot is older than the max age.  The age rule is evaluated
        first and determines the reported reason when both fire.
        """
        documents = active_documents(self._config, self._naming)
        count = len(documents)
        threshold = self.policy.threshold
        expired = self._expired(documents, self._clock())

        if expired:
            reason = CompactionReason.AGE
            action = (
                f"Compaction recommended - {len(expired)} snapshot(s) older than "
                f"{self.policy.max_age_in_days} days"
            )
        elif count >= threshold:
            reason = CompactionReason.THRESHOLD
            action = f"Compaction recommended - {count}/{threshold} snapshots exist (threshold reached)"
        else:
            reason = CompactionReason.NONE
            action = f"No compaction needed - {count}/{threshold} snapshots"

        return CompactionStatus(
            snapshot_count=count,
            compaction_needed=reason != CompactionReason.NONE,
            oldest_snapshot=documents[0].name if documents else None,
            newest_snapshot=documents[-1].name if documents else None,
            reason=reason,
            recommended_action=action,
            threshold=threshold,
            max_age_days=self.policy.max_age_in_days,
            expired_count=len(expired),
            auto_compact_enabled=self.policy.auto_compact,
        )

    # -- compact -------------------------------------------------------------

    def _select(self, documents: list[HistoryDocument], now: datetime) -> list[HistoryDocument]:
        """Pick the snapshots to absorb.

        Age-based selection wins.  Otherwise, once the threshold is reached,
        the older half (at least one) by filename order is taken so that
        every run strictly shrinks the active set.
        """
        expired = self._expired(documents, now)
        if expired:
            return expired
        if len(documents) >= self.policy.threshold:
            return documents[: max(1, len(documents) // 2)]
        return []

    def compact(self) -> CompactionResult:
        """Merge the selected snapshots into a new archive bundle.

        Returns a ``disabled`` outcome when the policy turns compaction off
        and ``not_needed`` when nothing qualifies.

        Raises
        ------
        SnapshotIOError
            If a snapshot cannot be read or the bundle cannot be written.  In
            that case no snapshot has been removed.
        """
        if not self.policy.auto_compact:
            return CompactionResult(
                outcome=CompactionOutcome.DISABLED,
                message="Compaction is disabled by the compaction policy (auto_compact=false)",
            )

        self.recover_interrupted()

        now = self._clock()
        documents = active_documents(self._config, self._naming)
        selected = self._select(documents, now)
        if not selected:
            return CompactionResult(
                outcome=CompactionOutcome.NOT_NEEDED,
                message=f"Compaction not needed yet - {len(documents)}/{self.policy.threshold} snapshots",
            )

        ordered = sorted(selected, key=lambda doc: (doc.date, doc.name))
        entries = [
            BundleEntry(
                source_file=doc.name,
                source_date=self._naming.format_date(doc.date),
                content=read_document(doc.path),
            )
            for doc in ordered
        ]
        start = ordered[0].date
        end = ordered[-1].date
        content = render_bundle(
            entries,
            archived_at=f"{now.astimezone(UTC):%Y-%m-%d %H:%M:%S} UTC",
            start=self._naming.format_date(start),
            end=self._naming.format_date(end),
        )

        archive_dir = self._config.archive_dir
        try:
            archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SnapshotIOError(f"Cannot create archive directory {archive_dir}: {exc}") from exc

        bundle_path = self._available_bundle_path(start, end)
        absorbed = [doc.name for doc in ordered]

        self._write_manifest(bundle_path.name, absorbed, now)
        try:
            self._write_bundle(bundle_path, content)
        except SnapshotIOError:
            self.manifest_path.unlink(missing_ok=True)
            raise

        failed: list[str] = []
        for doc in ordered:
            try:
                doc.path.unlink()
            except OSError as exc:
                logger.warning("Archived snapshot %s could not be removed: %s", doc.name, exc)
                failed.append(doc.name)

        self.manifest_path.unlink(missing_ok=True)

        logger.info("Compacted %d snapshots into %s", len(entries), bundle_path.name)
        message = f"Successfully compacted {len(entries)} snapshots into {bundle_path.name}"
        if failed:
            message += f" ({len(failed)} original(s) could not be removed)"

        return CompactionResult(
            outcome=CompactionOutcome.COMPACTED,
            message=message,
            archived_count=len(entries),
            archive_path=str(bundle_path),
            archived_snapshots=absorbed,
            failed_deletions=failed,
        )

    def _available_bundle_path(self, start: datetime, end: datetime) -> Path:
        archive_dir = self._config.archive_dir
        sequence = 0
        while True:
            candidate = archive_dir / self._naming.render_archive(start, end, sequence)
            if not candidate.exists():
                return candidate
            sequence += 1

    def _write_manifest(self, bundle_name: str, snapshots: list[str], now: datetime) -> None:
        manifest = {
            "bundle": bundle_name,
            "snapshots": snapshots,
            "started_at": now.isoformat(),
        }
        try:
            self.manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SnapshotIOError(f"Failed to write compaction manifest: {exc}") from exc

    @staticmethod
    def _write_bundle(path: Path, content: str) -> None:
        tmp_path = path.with_name(path.name + _TMP_SUFFIX)
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise SnapshotIOError(f"Failed to write archive bundle {path}: {exc}") from exc

    # -- recovery ------------------------------------------------------------

    def recover_interrupted(self) -> list[str]:
        """Finish or discard a compaction run that did not complete.

        If the manifest's bundle exists and declares the expected number of
        snapshots, leftover originals are deleted.  Otherwise the bundle was
        never published and the manifest is dropped.  Returns the names of
        the originals removed.

        Raises
        ------
        SnapshotIOError
            If the manifest exists but cannot be read.
        """
        manifest_path = self.manifest_path
        if not manifest_path.exists():
            return []

        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
            bundle_name = str(manifest["bundle"])
            snapshots = [str(name) for name in manifest["snapshots"]]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise SnapshotIOError(f"Unreadable compaction manifest {manifest_path}: {exc}") from exc

        archive_dir = self._config.archive_dir
        bundle_path = archive_dir / bundle_name
        (archive_dir / (bundle_name + _TMP_SUFFIX)).unlink(missing_ok=True)

        removed: list[str] = []
        if bundle_path.is_file() and declared_count(read_document(bundle_path)) == len(snapshots):
            for name in snapshots:
                original = self._config.snapshots_dir / name
                if not original.exists():
                    continue
                try:
                    original.unlink()
                    removed.append(name)
                except OSError as exc:
                    logger.warning("Could not remove archived snapshot %s: %s", name, exc)
            logger.warning(
                "Completed interrupted compaction into %s; removed %d leftover snapshot(s)",
                bundle_name,
                len(removed),
            )
        else:
            logger.warning("Discarding manifest of interrupted compaction; %s was never written", bundle_name)

        manifest_path.unlink(missing_ok=True)
        return removed

    # -- bundles -------------------------------------------------------------

    def list_bundles(self) -> list[ArchiveBundle]:
        """Archive bundles in filename order with their declared contents."""
        bundles: list[ArchiveBundle] = []
        for path in list_markdown(self._config.archive_dir):
            try:
                content = read_document(path)
            except SnapshotIOError as exc:
                logger.warning("Skipping unreadable archive bundle: %s", exc)
                continue
            entries = split_bundle(content)
            count = declared_count(content)
            parsed = self._naming.parse_archive(path.name)
            if parsed is not None:
                start, end = parsed.start_date, parsed.end_date
            else:
                dates = [d for d in (self._naming.parse_date(e.source_date) for e in entries) if d is not None]
                start = min(dates, default=MIN_DATE)
                end = max(dates, default=MIN_DATE)
            bundles.append(
                ArchiveBundle(
                    filename=path.name,
                    path=path,
                    start_date=start,
                    end_date=end,
                    snapshot_count=count if count is not None else len(entries),
                    snapshots=[e.source_file for e in entries],
                )
            )
        return bundles
