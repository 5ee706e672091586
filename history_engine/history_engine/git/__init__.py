"""Git integration for context capture."""

from __future__ import annotations

from history_engine.git.git_client import (
    GitClientError,
    capture_git_context,
    is_git_repository,
)

__all__ = [
    "GitClientError",
    "capture_git_context",
    "is_git_repository",
]
