"""Markdown rendering and sectioning of snapshot documents.

Rendering is deterministic for a given :class:`DevelopmentContext`: the same
context always produces byte-identical text.  Documentation files are emitted
in path order.
"""

from __future__ import annotations

import json

from history_engine.models.context import DevelopmentContext
from history_engine.snapshots.naming import to_utc

SNAPSHOT_TITLE = "# Development Context Snapshot"

_MAX_LISTED_FILES = 10
_MAX_LISTED_COMMANDS = 5

_SECTION_PREFIXES = ("## ", "### ")


def render_snapshot(context: DevelopmentContext) -> str:
    """Render *context* as a snapshot document.

    Layout: header, git section (only when a branch is known), workspace
    section, documentation section (only when files are tracked), and a
    trailing fenced JSON metadata block.  The metadata block lists the
    documentation paths but not their bodies, which are already embedded
    above.
    """
    lines: list[str] = [
        SNAPSHOT_TITLE,
        f"**Timestamp**: {to_utc(context.timestamp):%Y-%m-%d %H:%M:%S} UTC",
        f"**Type**: {context.type}",
        f"**Milestone**: {context.milestone}",
        "",
    ]

    git = context.git
    if git.branch:
        lines.append("## Git Context")
        lines.append(f"- **Branch**: {git.branch}")
        lines.append(f"- **Commit**: {git.commit}")
        message = git.commit_message.strip().splitlines()
        lines.append(f"- **Message**: {message[0] if message else ''}")
        if git.uncommitted_files:
            lines.append(f"- **Uncommitted Files**: {len(git.uncommitted_files)}")
            for path in git.uncommitted_files[:_MAX_LISTED_FILES]:
                lines.append(f"  - {path}")
            overflow = len(git.uncommitted_files) - _MAX_LISTED_FILES
            if overflow > 0:
                lines.append(f"  - ... and {overflow} more")
        lines.append("")

    lines.append("## Workspace Context")
    lines.append(f"- **Working Directory**: {context.workspace.working_directory}")
    if context.workspace.recent_commands:
        lines.append("- **Recent Commands**:")
        for cmd in context.workspace.recent_commands[:_MAX_LISTED_COMMANDS]:
            lines.append(f"  - `{cmd.command}`")
    lines.append("")

    if context.documentation:
        lines.append("## Documentation")
        for path in sorted(context.documentation):
            lines.append(f"### {path}")
            lines.append("")
            lines.append(context.documentation[path])
            lines.append("")
            lines.append("---")
            lines.append("")

    metadata = context.model_dump(mode="json", exclude={"documentation"})
    metadata["documentation_files"] = sorted(context.documentation)
    lines.append("## Context Metadata")
    lines.append("```json")
    lines.append(json.dumps(metadata, indent=2, ensure_ascii=False))
    lines.append("```")

    return "\n".join(lines) + "\n"


def extract_sections(content: str) -> dict[str, str]:
    """Split a document into ``{heading: trimmed body}``.

    Headings are lines starting with ``## `` or ``### ``; text before the
    first heading is ignored.  A repeated heading keeps its last body.
    """
    sections: dict[str, str] = {}
    current: str | None = None
    body: list[str] = []

    for line in content.split("\n"):
        if line.startswith(_SECTION_PREFIXES):
            if current is not None:
                sections[current] = "\n".join(body).strip()
            current = line.lstrip("#").strip()
            body = []
        else:
            body.append(line)

    if current is not None:
        sections[current] = "\n".join(body).strip()

    return sections
