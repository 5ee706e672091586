"""Shared fixtures for CLI tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from history_engine.config import CONFIG_FILENAME


@pytest.fixture()
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory whose config disables git and shell-history capture."""
    for var in (
        "CONTEXTKEEPER_PROJECT_ROOT",
        "CONTEXTKEEPER_CONFIG_PATH",
        "CONTEXTKEEPER_PROFILE",
        "CONTEXTKEEPER_STRUCTURED_LOGGING",
    ):
        monkeypatch.delenv(var, raising=False)

    (tmp_path / CONFIG_FILENAME).write_text(
        json.dumps(
            {
                "compaction": {"threshold": 3, "max_age_in_days": 9999},
                "context_tracking": {
                    "documentation_files": ["*.md"],
                    "track_git_state": False,
                    "track_recent_commands": False,
                },
            }
        ),
        encoding="utf-8",
    )
    (tmp_path / "ROADMAP.md").write_text("# Roadmap\n- [ ] Auth\n- [x] Billing\n", encoding="utf-8")
    return tmp_path
