"""Development context capture.

The snapshot store only consumes :class:`DevelopmentContext` values; how they
are produced sits behind the :class:`ContextCapture` protocol.
:class:`ContextCaptureService` is the default implementation: it reads
tracked documentation files, git state, recent shell history and host
metadata for the project root.
"""

from __future__ import annotations

import getpass
import logging
import os
import platform
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from history_engine import __version__
from history_engine.config import HistoryConfig
from history_engine.git.git_client import capture_git_context
from history_engine.models.context import (
    CommandHistory,
    ContextMetadata,
    DevelopmentContext,
    GitContext,
    WorkspaceContext,
)

logger = logging.getLogger(__name__)

# ": <epoch>:<duration>;<command>" lines written with zsh EXTENDED_HISTORY.
_ZSH_EXTENDED_RE = re.compile(r"^: (\d+):\d+;(.*)$")
_FISH_CMD_PREFIX = "- cmd: "


class ContextCapture(Protocol):
    """Produces the development context a snapshot is rendered from."""

    def capture(self, capture_type: str, milestone: str) -> DevelopmentContext:
        ...


def shell_history_files(home: Path) -> list[Path]:
    return [
        home / ".bash_history",
        home / ".zsh_history",
        home / ".local" / "share" / "fish" / "fish_history",
    ]


def parse_history_lines(lines: list[str], working_directory: str) -> list[CommandHistory]:
    """Turn raw bash, zsh or fish history lines into command records."""
    commands: list[CommandHistory] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("when: ") or line.startswith("#"):
            continue
        timestamp: datetime | None = None
        match = _ZSH_EXTENDED_RE.match(line)
        if match:
            timestamp = datetime.fromtimestamp(int(match.group(1)), tz=UTC)
            line = match.group(2).strip()
        elif line.startswith(_FISH_CMD_PREFIX):
            line = line[len(_FISH_CMD_PREFIX) :].strip()
        if line:
            commands.append(CommandHistory(command=line, timestamp=timestamp, working_directory=working_directory))
    return commands


class ContextCaptureService:
    """Capture context for the project rooted at ``config.project_root``.

    Parameters
    ----------
    config:
        Project configuration; ``context_tracking`` controls what is read.
    home:
        Directory searched for shell history files.  Defaults to the user's
        home directory.
    """

    def __init__(self, config: HistoryConfig, home: Path | None = None) -> None:
        self._config = config
        self._home = home if home is not None else Path.home()

    @property
    def root(self) -> Path:
        return self._config.project_root.resolve()

    def capture(self, capture_type: str = "manual", milestone: str = "") -> DevelopmentContext:
        tracking = self._config.context_tracking
        root = self.root

        git = capture_git_context(root) if tracking.track_git_state else GitContext()
        context = DevelopmentContext(
            timestamp=datetime.now(UTC),
            type=capture_type,
            milestone=milestone,
            workspace=self._capture_workspace(root),
            git=git,
            documentation=self._capture_documentation(root),
            metadata=self._capture_metadata(root),
        )
        logger.info(
            "Captured development context: %d documentation file(s), branch=%s",
            len(context.documentation),
            git.branch or "-",
        )
        return context

    # -- workspace -----------------------------------------------------------

    def _capture_workspace(self, root: Path) -> WorkspaceContext:
        tracking = self._config.context_tracking
        commands: list[CommandHistory] = []
        if tracking.track_recent_commands and tracking.max_recent_commands > 0:
            commands = self._recent_commands(str(root), tracking.max_recent_commands)
        return WorkspaceContext(working_directory=str(root), recent_commands=commands)

    def _recent_commands(self, working_directory: str, limit: int) -> list[CommandHistory]:
        for history_file in shell_history_files(self._home):
            if not history_file.is_file():
                continue
            try:
                lines = history_file.read_text(encoding="utf-8", errors="replace").splitlines()
            except OSError as exc:
                logger.debug("Could not read shell history %s: %s", history_file, exc)
                continue
            return parse_history_lines(lines, working_directory)[-limit:]
        return []

    # -- documentation -------------------------------------------------------

    def _is_ignored(self, relative: Path) -> bool:
        ignored = self._config.context_tracking.ignore_patterns
        if any(part in ignored for part in relative.parts):
            return True
        # The history itself is never documentation, wherever a profile puts it.
        history = Path(self._config.paths.history)
        return relative == history or history in relative.parents

    def _capture_documentation(self, root: Path) -> dict[str, str]:
        """Tracked documentation files keyed by project-relative POSIX path."""
        documentation: dict[str, str] = {}
        for pattern in self._config.context_tracking.documentation_files:
            for path in sorted(root.rglob(pattern)):
                if not path.is_file():
                    continue
                relative = path.relative_to(root)
                if self._is_ignored(relative):
                    continue
                try:
                    documentation[relative.as_posix()] = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    logger.warning("Could not read documentation file %s: %s", path, exc)
        return documentation

    # -- metadata ------------------------------------------------------------

    @staticmethod
    def _capture_metadata(root: Path) -> ContextMetadata:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = os.environ.get("USER", "")
        return ContextMetadata(
            project_name=root.name,
            tool_version=__version__,
            os=f"{platform.system()} {platform.release()}".strip(),
            machine=platform.node(),
            user=user,
        )
