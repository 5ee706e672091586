"""Unit tests for component evolution and timeline extraction."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from history_engine.compaction.bundle import BundleEntry, render_bundle
from history_engine.evolution.tracker import EvolutionTracker, derive_status
from history_engine.models.results import ComponentStatus
from history_engine.snapshots.naming import MIN_DATE


def _write_bundle(config, name: str, entries: list[BundleEntry]) -> None:
    config.archive_dir.mkdir(parents=True, exist_ok=True)
    content = render_bundle(entries, "2026-03-01 00:00:00 UTC", entries[0].source_date, entries[-1].source_date)
    (config.archive_dir / name).write_text(content, encoding="utf-8")


class TestDeriveStatus:
    def test_strongest_marker_wins(self):
        content = "Auth: planned\nAuth: ✅ completed\n"
        assert derive_status(content, "Auth") == ComponentStatus.COMPLETED

    def test_order_of_lines_irrelevant(self):
        content = "Auth: ✅ completed\nAuth: todo polish\n"
        assert derive_status(content, "auth") == ComponentStatus.COMPLETED

    @pytest.mark.parametrize(
        ("line", "status"),
        [
            ("- [x] Auth", ComponentStatus.COMPLETED),
            ("- [X] Auth", ComponentStatus.COMPLETED),
            ("Auth is done", ComponentStatus.COMPLETED),
            ("Auth 🚧", ComponentStatus.IN_PROGRESS),
            ("Auth: in progress", ComponentStatus.IN_PROGRESS),
            ("Auth WIP", ComponentStatus.IN_PROGRESS),
            ("- [ ] Auth", ComponentStatus.PLANNED),
            ("Auth ❌", ComponentStatus.PLANNED),
            ("TODO: Auth", ComponentStatus.PLANNED),
            ("Auth exists", ComponentStatus.MENTIONED),
        ],
    )
    def test_markers(self, line, status):
        assert derive_status(line, "Auth") == status

    def test_markers_on_other_lines_ignored(self):
        content = "Auth module\nBilling ✅ completed\n"
        assert derive_status(content, "Auth") == ComponentStatus.MENTIONED

    def test_word_markers_need_word_boundaries(self):
        assert derive_status("Auth undone? abandoned", "Auth") == ComponentStatus.MENTIONED


class TestGetEvolution:
    def test_steps_ordered_by_date(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-10_manual_finish.md", "Auth ✅\n")
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_start.md", "Auth: planned\n")
        write_snapshot(config, "SNAPSHOT_2026-03-05_manual_middle.md", "Auth 🚧 in progress\n")
        write_snapshot(config, "SNAPSHOT_2026-03-06_manual_other.md", "Billing only\n")

        result = EvolutionTracker(config).get_evolution("auth")

        assert [(s.milestone, s.status) for s in result.steps] == [
            ("start", ComponentStatus.PLANNED),
            ("middle", ComponentStatus.IN_PROGRESS),
            ("finish", ComponentStatus.COMPLETED),
        ]
        assert result.steps[0].date == datetime(2026, 3, 1, tzinfo=UTC)
        assert result.summary == "Component found in 3 snapshots"

    def test_archived_snapshots_included(self, config, write_snapshot):
        _write_bundle(
            config,
            "ARCHIVE_2026-01-01_to_2026-01-02.md",
            [
                BundleEntry("SNAPSHOT_2026-01-01_manual_kickoff.md", "2026-01-01", "Search: todo\n"),
                BundleEntry("SNAPSHOT_2026-01-02_manual_unrelated.md", "2026-01-02", "nothing\n"),
            ],
        )
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_ship.md", "Search [x]\n")

        steps = EvolutionTracker(config).get_evolution("Search").steps

        assert [s.file_name for s in steps] == [
            "SNAPSHOT_2026-01-01_manual_kickoff.md",
            "SNAPSHOT_2026-03-01_manual_ship.md",
        ]
        assert steps[0].archive == "ARCHIVE_2026-01-01_to_2026-01-02.md"
        assert steps[0].milestone == "kickoff"
        assert steps[0].status == ComponentStatus.PLANNED
        assert steps[1].archive is None

    def test_unreadable_documents_skipped(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_start.md", "Auth: planned\n")
        (config.snapshots_dir / "SNAPSHOT_2026-03-02_manual_broken.md").write_bytes(b"Auth \xff\xfe done\n")
        config.archive_dir.mkdir(parents=True)
        (config.archive_dir / "ARCHIVE_2026-01-01_to_2026-01-02.md").write_bytes(b"\xff\xfe")

        steps = EvolutionTracker(config).get_evolution("Auth").steps

        assert [s.milestone for s in steps] == ["start"]

    def test_not_found(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_a.md", "nothing\n")
        result = EvolutionTracker(config).get_evolution("Payments")
        assert result.steps == []
        assert result.summary == "Component not found in history"

    def test_blank_component(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_a.md", "anything\n")
        assert EvolutionTracker(config).get_evolution("  ").steps == []

    def test_no_history(self, config):
        assert EvolutionTracker(config).get_evolution("Auth").steps == []


class TestGetTimeline:
    def test_snapshots_and_bundles(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_auto_build.md", "x\n")
        write_snapshot(config, "SNAPSHOT_2026-02-01_manual_plan.md", "x\n")
        _write_bundle(
            config,
            "ARCHIVE_2026-01-01_to_2026-01-09.md",
            [BundleEntry("SNAPSHOT_2026-01-01_manual_a.md", "2026-01-01", "x\n")],
        )

        events = EvolutionTracker(config).get_timeline().events

        assert [(e.file_name, e.type, e.milestone) for e in events] == [
            ("ARCHIVE_2026-01-01_to_2026-01-09.md", "Archived", "2026-01-01 to 2026-01-09"),
            ("SNAPSHOT_2026-02-01_manual_plan.md", "manual", "plan"),
            ("SNAPSHOT_2026-03-01_auto_build.md", "auto", "build"),
        ]
        assert events[0].date == datetime(2026, 1, 1, tzinfo=UTC)

    def test_non_conforming_name_uses_sentinels(self, config, write_snapshot):
        write_snapshot(config, "random-notes.md", "x\n")
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_real.md", "x\n")

        events = EvolutionTracker(config).get_timeline().events

        assert events[0].file_name == "random-notes.md"
        assert events[0].date == MIN_DATE
        assert events[0].milestone == "Unknown"
        assert events[1].milestone == "real"
