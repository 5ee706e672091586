"""Shared fixtures for history engine unit tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from history_engine.config import CompactionPolicy, HistoryConfig
from history_engine.models.context import (
    DevelopmentContext,
    GitContext,
    WorkspaceContext,
)


class FixedClock:
    """Callable clock returning a settable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def config(tmp_path: Path) -> HistoryConfig:
    """Default configuration rooted in a temporary project directory."""
    return HistoryConfig(project_root=tmp_path)


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., HistoryConfig]:
    """Build a configuration with a custom compaction policy."""

    def _make(threshold: int = 20, max_age_in_days: int = 90, auto_compact: bool = True) -> HistoryConfig:
        return HistoryConfig(
            project_root=tmp_path,
            compaction=CompactionPolicy(
                threshold=threshold,
                max_age_in_days=max_age_in_days,
                auto_compact=auto_compact,
            ),
        )

    return _make


@pytest.fixture()
def make_context() -> Callable[..., DevelopmentContext]:
    def _make(
        timestamp: datetime | None = None,
        capture_type: str = "manual",
        documentation: dict[str, str] | None = None,
        branch: str = "",
    ) -> DevelopmentContext:
        return DevelopmentContext(
            timestamp=timestamp or datetime(2026, 3, 14, 9, 30, tzinfo=UTC),
            type=capture_type,
            workspace=WorkspaceContext(working_directory="/work/project"),
            git=GitContext(branch=branch, commit="abc123" if branch else "", commit_message="Initial work"),
            documentation=documentation or {},
        )

    return _make


@pytest.fixture()
def write_snapshot() -> Callable[[HistoryConfig, str, str], Path]:
    """Place a hand-written snapshot file in the active directory."""

    def _write(config: HistoryConfig, name: str, content: str) -> Path:
        config.snapshots_dir.mkdir(parents=True, exist_ok=True)
        path = config.snapshots_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 20, 12, 0, tzinfo=UTC))
