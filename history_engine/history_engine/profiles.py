"""Workflow profile detection from the shape of a project directory."""

from __future__ import annotations

import logging
from pathlib import Path

from history_engine.config import BUILTIN_PROFILES, WorkflowProfile

logger = logging.getLogger(__name__)

_README_HISTORY_HEADINGS = ("## History", "## Changelog")


def detect_profile(
    project_root: Path,
    profiles: dict[str, WorkflowProfile] | None = None,
) -> WorkflowProfile | None:
    """Pick the profile that best fits *project_root*, or ``None``.

    A ``CLAUDE.md`` file wins, then a README with a history or changelog
    heading, then a ``docs/`` directory.  Failing those, the first profile
    (configured ones before built-ins) whose detection rules all hold.
    """
    if (project_root / "CLAUDE.md").is_file():
        logger.info("Detected CLAUDE.md project")
        return BUILTIN_PROFILES["claude-workflow"]

    readme = project_root / "README.md"
    if readme.is_file():
        try:
            text = readme.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Could not read %s: %s", readme, exc)
            text = ""
        if any(heading in text for heading in _README_HISTORY_HEADINGS):
            logger.info("Detected README-based project")
            return BUILTIN_PROFILES["readme-workflow"]

    if (project_root / "docs").is_dir():
        logger.info("Detected docs-based project")
        return BUILTIN_PROFILES["docs-workflow"]

    for profile in [*(profiles or {}).values(), *BUILTIN_PROFILES.values()]:
        if profile.matches(project_root):
            logger.info("Project matches profile %s", profile.name)
            return profile

    return None
