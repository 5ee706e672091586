"""Thin git client for capturing repository state into a snapshot.

All interaction with the ``git`` binary is done through :func:`subprocess.run`
with explicit timeouts and structured error handling so that callers receive
:class:`GitClientError` exceptions with descriptive messages rather than raw
subprocess failures.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

from history_engine.models.context import CommitInfo, GitContext

logger = logging.getLogger(__name__)

_SUBPROCESS_TIMEOUT = 30  # seconds
_RECENT_COMMIT_COUNT = 5
_LOG_FORMAT = "%H|%s|%an|%ai"

# Index-column letters in `git status --porcelain` that mean "staged".
_STAGED_CODES = frozenset("MADRC")


class GitClientError(Exception):
    """Raised when a git operation fails or the repository is invalid."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _run_git(
    cmd: list[str],
    repo_path: Path,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and return the completed process.

    Raises
    ------
    GitClientError
        On non-zero exit, timeout, or if the process cannot be started.
    """
    try:
        return subprocess.run(
            cmd,
            cwd=repo_path,
            capture_output=True,
            text=True,
            check=True,
            timeout=_SUBPROCESS_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitClientError(f"git command failed: {' '.join(cmd)}\n" f"Exit code {exc.returncode}: {stderr}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitClientError(f"git command timed out after {_SUBPROCESS_TIMEOUT}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise GitClientError("git executable not found. Ensure git is installed and on PATH.") from exc


def parse_porcelain_status(output: str) -> tuple[list[str], list[str]]:
    """Split ``git status --porcelain`` output into ``(staged, uncommitted)``.

    A file with both index and work-tree changes appears in both lists.
    """
    staged: list[str] = []
    uncommitted: list[str] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index_code, worktree_code, path = line[0], line[1], line[3:].strip()
        if index_code in _STAGED_CODES:
            staged.append(path)
        if worktree_code != " ":
            uncommitted.append(path)
    return staged, uncommitted


def parse_log(output: str) -> list[CommitInfo]:
    """Parse ``git log --pretty=format:%H|%s|%an|%ai`` output."""
    commits: list[CommitInfo] = []
    for line in output.splitlines():
        parts = line.split("|")
        if len(parts) < 4:
            logger.warning("Skipping unparseable log line: %s", line)
            continue
        # The subject may itself contain '|'; hash, author and date never do.
        commit_hash, author, raw_date = parts[0], parts[-2], parts[-1]
        message = "|".join(parts[1:-2])
        try:
            date: datetime | None = datetime.strptime(raw_date.strip(), "%Y-%m-%d %H:%M:%S %z")
        except ValueError:
            date = None
        commits.append(CommitInfo(hash=commit_hash, message=message, author=author, date=date))
    return commits


def parse_remotes(output: str) -> dict[str, str]:
    """Map remote name to URL from ``git remote -v`` output."""
    remotes: dict[str, str] = {}
    for line in output.splitlines():
        name, _, rest = line.partition("\t")
        if not rest:
            continue
        remotes.setdefault(name, rest.split(" ")[0])
    return remotes


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_git_repository(repo_path: Path) -> bool:
    """Return whether *repo_path* lies inside a git work tree."""
    if not repo_path.is_dir():
        return False
    try:
        result = _run_git(["git", "rev-parse", "--is-inside-work-tree"], repo_path)
    except GitClientError:
        return False
    return result.stdout.strip() == "true"


def capture_git_context(repo_path: Path) -> GitContext:
    """Collect branch, HEAD, working-tree status, recent commits and remotes.

    Returns an empty :class:`GitContext` outside a repository.  If a later
    command fails (for example ``git log`` in a repository without commits),
    the fields gathered so far are kept and the failure is logged.
    """
    if not is_git_repository(repo_path):
        logger.debug("%s is not a git repository", repo_path)
        return GitContext()

    fields: dict[str, Any] = {}
    try:
        fields["branch"] = _run_git(["git", "rev-parse", "--abbrev-ref", "HEAD"], repo_path).stdout.strip()

        status = _run_git(["git", "status", "--porcelain"], repo_path).stdout
        fields["staged_files"], fields["uncommitted_files"] = parse_porcelain_status(status)

        remotes = _run_git(["git", "remote", "-v"], repo_path).stdout
        fields["remotes"] = parse_remotes(remotes)

        fields["commit"] = _run_git(["git", "rev-parse", "HEAD"], repo_path).stdout.strip()
        fields["commit_message"] = _run_git(["git", "log", "-1", "--pretty=%B"], repo_path).stdout.strip()

        log = _run_git(
            ["git", "log", f"-{_RECENT_COMMIT_COUNT}", f"--pretty=format:{_LOG_FORMAT}"],
            repo_path,
        ).stdout
        fields["recent_commits"] = parse_log(log)
    except GitClientError as exc:
        logger.warning("Incomplete git context for %s: %s", repo_path, exc)

    return GitContext(**fields)
