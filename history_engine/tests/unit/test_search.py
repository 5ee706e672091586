"""Unit tests for the linear search index."""

from __future__ import annotations

import pytest

from history_engine.compaction.bundle import BundleEntry, render_bundle
from history_engine.models.results import SearchScope
from history_engine.search.index import SearchIndex, context_window


def _write_bundle(config, name: str, entries: list[BundleEntry]) -> None:
    config.archive_dir.mkdir(parents=True, exist_ok=True)
    content = render_bundle(entries, "2026-03-01 00:00:00 UTC", entries[0].source_date, entries[-1].source_date)
    (config.archive_dir / name).write_text(content, encoding="utf-8")


@pytest.fixture()
def populated(config, write_snapshot):
    write_snapshot(config, "SNAPSHOT_2026-03-01_manual_first.md", "intro\nAuth module planned\nend\n")
    write_snapshot(config, "SNAPSHOT_2026-03-05_manual_second.md", "AUTH work continues\nmore\n")
    write_snapshot(config, "SNAPSHOT_2026-03-05_manual_third.md", "nothing here\n")
    _write_bundle(
        config,
        "ARCHIVE_2026-01-01_to_2026-01-10.md",
        [BundleEntry("SNAPSHOT_2026-01-01_manual_old.md", "2026-01-01", "old auth notes\n")],
    )
    return config


class TestSearch:
    def test_newest_first_across_tiers(self, populated):
        result = SearchIndex(populated).search("auth", max_results=10)
        assert [m.source_file for m in result.matches] == [
            "SNAPSHOT_2026-03-05_manual_second.md",
            "SNAPSHOT_2026-03-01_manual_first.md",
            "ARCHIVE_2026-01-01_to_2026-01-10.md",
        ]
        assert result.total_matches == 3

    def test_case_insensitive_and_trimmed(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_x.md", "   Database MIGRATION done   \n")
        [match] = SearchIndex(config).search("migration").matches
        assert match.matched_line == "Database MIGRATION done"
        assert match.line_number == 1

    def test_unreadable_document_skipped(self, populated):
        (populated.snapshots_dir / "SNAPSHOT_2026-03-09_manual_broken.md").write_bytes(b"auth \xff\xfe\n")
        result = SearchIndex(populated).search("auth", max_results=10)
        assert "SNAPSHOT_2026-03-09_manual_broken.md" not in {m.source_file for m in result.matches}
        assert result.total_matches == 3

    def test_max_results_stops_early(self, populated):
        result = SearchIndex(populated).search("auth", max_results=1)
        assert [m.source_file for m in result.matches] == ["SNAPSHOT_2026-03-05_manual_second.md"]

    def test_default_max_results_from_config(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-01_manual_x.md", "hit\n" * 20)
        assert SearchIndex(config).search("hit").total_matches == config.search.default_max_results

    def test_repeatable(self, populated):
        index = SearchIndex(populated)
        assert index.search("auth", 10) == index.search("auth", 10)

    def test_equal_dates_tie_break_by_filename_descending(self, config, write_snapshot):
        write_snapshot(config, "SNAPSHOT_2026-03-05_manual_aaa.md", "token\n")
        write_snapshot(config, "SNAPSHOT_2026-03-05_manual_bbb.md", "token\n")
        result = SearchIndex(config).search("token", 5)
        assert [m.source_file for m in result.matches] == [
            "SNAPSHOT_2026-03-05_manual_bbb.md",
            "SNAPSHOT_2026-03-05_manual_aaa.md",
        ]

    @pytest.mark.parametrize(
        ("scope", "expected"),
        [
            (SearchScope.ACTIVE, 2),
            (SearchScope.ARCHIVED, 1),
            (SearchScope.ALL, 3),
        ],
    )
    def test_scope(self, populated, scope, expected):
        assert SearchIndex(populated).search("auth", 10, scope).total_matches == expected

    @pytest.mark.parametrize(("term", "limit"), [("", 5), ("auth", 0), ("auth", -1)])
    def test_empty_term_or_limit(self, populated, term, limit):
        assert SearchIndex(populated).search(term, limit).matches == []

    def test_missing_directories(self, config):
        assert SearchIndex(config).search("anything").matches == []


class TestContextWindow:
    def test_marks_matched_line(self):
        lines = ["a", "b", "c", "d", "e"]
        assert context_window(lines, 2, 1) == "    b\n>>> c\n    d"

    def test_clipped_at_document_edges(self):
        lines = ["a", "b", "c"]
        assert context_window(lines, 0, 2) == ">>> a\n    b\n    c"

    def test_search_uses_configured_radius(self, populated):
        [match] = SearchIndex(populated).search("planned", 1).matches
        assert match.context == "    intro\n>>> Auth module planned\n    end\n    "


class TestFilesByPattern:
    @pytest.mark.parametrize(
        ("pattern", "expected"),
        [
            ("*", 3),
            ("*second*", 1),
            ("SNAPSHOT_2026-03-05*", 2),
            ("*third.md", 1),
            ("SNAPSHOT_2026-03-01_manual_first.md", 1),
            ("ARCHIVE*", 0),
        ],
    )
    def test_patterns(self, populated, pattern, expected):
        assert len(SearchIndex(populated).files_by_pattern(pattern)) == expected

    def test_sorted(self, populated):
        files = SearchIndex(populated).files_by_pattern("*")
        assert files == sorted(files)
