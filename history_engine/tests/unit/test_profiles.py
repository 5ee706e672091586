"""Unit tests for workflow profiles: lookup, activation and detection."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from history_engine.config import (
    BUILTIN_PROFILES,
    CONFIG_FILENAME,
    DetectionConfig,
    HistoryConfig,
    PathConfig,
    WorkflowProfile,
    load_config,
)
from history_engine.errors import ConfigurationError
from history_engine.profiles import detect_profile

# ---------------------------------------------------------------------------
# Built-in presets
# ---------------------------------------------------------------------------


class TestBuiltinProfiles:
    @pytest.mark.parametrize(
        ("name", "history", "prefix", "threshold"),
        [
            ("claude-workflow", "FeatureData/DataHistory", "CLAUDE_", 10),
            ("readme-workflow", ".history", "README_", 20),
            ("docs-workflow", "docs/.history", "DOCS_", 15),
        ],
    )
    def test_preset_layout(self, name, history, prefix, threshold):
        profile = BUILTIN_PROFILES[name]
        assert profile.paths.snapshots == f"{history}/snapshots"
        assert profile.paths.archived == f"{history}/archived"
        assert profile.snapshot.filename_pattern == f"{prefix}{{date}}_{{type}}_{{milestone}}.md"
        assert profile.compaction.threshold == threshold

    def test_matches_requires_every_rule(self, tmp_path: Path):
        profile = BUILTIN_PROFILES["claude-workflow"]
        (tmp_path / "CLAUDE.md").write_text("", encoding="utf-8")
        assert profile.matches(tmp_path) is False

        (tmp_path / "FeatureData/DataHistory").mkdir(parents=True)
        assert profile.matches(tmp_path) is True


# ---------------------------------------------------------------------------
# Lookup and activation
# ---------------------------------------------------------------------------


class TestResolveProfile:
    def test_short_name(self):
        assert HistoryConfig().resolve_profile("docs").name == "docs-workflow"

    def test_full_name(self):
        assert HistoryConfig().resolve_profile("readme-workflow").name == "readme-workflow"

    def test_configured_profile_shadows_builtin(self):
        custom = WorkflowProfile(name="docs-workflow", paths=PathConfig(history="manual", snapshots="manual/s"))
        config = HistoryConfig(profiles={"docs-workflow": custom})
        assert config.resolve_profile("docs").paths.snapshots == "manual/s"

    def test_unknown_lists_known_names(self):
        with pytest.raises(ConfigurationError, match="claude-workflow"):
            HistoryConfig().resolve_profile("nightly")

    def test_with_profile_replaces_sections(self, tmp_path: Path):
        config = HistoryConfig(project_root=tmp_path).with_profile(BUILTIN_PROFILES["readme-workflow"])
        assert config.default_profile == "readme-workflow"
        assert config.snapshots_dir == tmp_path / ".history/snapshots"
        assert config.snapshot.filename_pattern.startswith("README_")
        assert "readme-workflow" in config.profiles


class TestLoadConfigWithProfile:
    def test_explicit_profile_without_file(self, tmp_path: Path):
        config = load_config(tmp_path, profile="claude")
        assert config.default_profile == "claude-workflow"
        assert config.archive_dir == tmp_path / "FeatureData/DataHistory/archived"

    def test_default_profile_from_file(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"default_profile": "docs"}), encoding="utf-8")
        config = load_config(tmp_path)
        assert config.default_profile == "docs-workflow"
        assert config.compaction.threshold == 15

    def test_explicit_profile_beats_file(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"default_profile": "docs"}), encoding="utf-8")
        assert load_config(tmp_path, profile="readme").default_profile == "readme-workflow"

    def test_configured_profile_from_file(self, tmp_path: Path):
        payload = {
            "default_profile": "team",
            "profiles": {
                "team": {
                    "name": "team",
                    "paths": {"history": "notes", "snapshots": "notes/snaps", "archived": "notes/old"},
                    "compaction": {"threshold": 4},
                }
            },
        }
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps(payload), encoding="utf-8")

        config = load_config(tmp_path)

        assert config.snapshots_dir == tmp_path / "notes/snaps"
        assert config.compaction.threshold == 4

    def test_unknown_default_profile(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"default_profile": "nope"}), encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unknown profile"):
            load_config(tmp_path)

    def test_profile_config_round_trips(self, tmp_path: Path):
        config = HistoryConfig(project_root=tmp_path).with_profile(BUILTIN_PROFILES["docs-workflow"])
        payload = json.loads(config.to_json())

        assert "paths" not in payload
        assert "compaction" not in payload
        assert payload["default_profile"] == "docs-workflow"

        (tmp_path / CONFIG_FILENAME).write_text(config.to_json(), encoding="utf-8")
        assert load_config(tmp_path) == config


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


class TestDetectProfile:
    def test_claude_file_wins(self, tmp_path: Path):
        (tmp_path / "CLAUDE.md").write_text("# Notes\n", encoding="utf-8")
        (tmp_path / "docs").mkdir()
        assert detect_profile(tmp_path).name == "claude-workflow"

    @pytest.mark.parametrize("heading", ["## History", "## Changelog"])
    def test_readme_with_history_heading(self, tmp_path: Path, heading):
        (tmp_path / "README.md").write_text(f"# Tool\n\n{heading}\n- first\n", encoding="utf-8")
        (tmp_path / "docs").mkdir()
        assert detect_profile(tmp_path).name == "readme-workflow"

    def test_docs_directory(self, tmp_path: Path):
        (tmp_path / "README.md").write_text("# Tool\n", encoding="utf-8")
        (tmp_path / "docs").mkdir()
        assert detect_profile(tmp_path).name == "docs-workflow"

    def test_plain_readme_falls_back_to_rules(self, tmp_path: Path):
        (tmp_path / "README.md").write_text("# Tool\n", encoding="utf-8")
        assert detect_profile(tmp_path).name == "readme-workflow"

    def test_configured_profile_rules(self, tmp_path: Path):
        (tmp_path / "wiki").mkdir()
        team = WorkflowProfile(name="wiki", detection=DetectionConfig(paths=["wiki"]))
        assert detect_profile(tmp_path, {"wiki": team}) is team

    def test_undecodable_readme_is_not_fatal(self, tmp_path: Path):
        (tmp_path / "README.md").write_bytes(b"\xff\xfe## History")
        assert detect_profile(tmp_path).name == "readme-workflow"

    def test_empty_project(self, tmp_path: Path):
        assert detect_profile(tmp_path) is None
