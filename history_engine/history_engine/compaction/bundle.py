"""Archive bundle document format.

A bundle is a header followed by one block per absorbed snapshot::

    # Archived Snapshot Bundle
    **Archived**: 2026-10-18 09:30:00 UTC
    **Snapshots**: 2
    **Date Range**: 2026-01-02 to 2026-01-09

    ================================================================================
    **Source**: SNAPSHOT_2026-01-02_manual_auth-login.md (2026-01-02)

    <original snapshot text, verbatim>

The separator line followed by a ``**Source**:`` provenance line marks the
start of every block, which lets readers recover the individual snapshots.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

BUNDLE_TITLE = "# Archived Snapshot Bundle"
SEPARATOR = "=" * 80
PROVENANCE_PREFIX = "**Source**: "

_COUNT_RE = re.compile(r"^\*\*Snapshots\*\*: (\d+)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class BundleEntry:
    """One absorbed snapshot: its original filename and text."""

    source_file: str
    source_date: str
    content: str


def render_bundle(
    entries: list[BundleEntry],
    archived_at: str,
    start: str,
    end: str,
) -> str:
    """Concatenate *entries* (already in ascending date order) into a bundle."""
    parts = [
        BUNDLE_TITLE,
        f"**Archived**: {archived_at}",
        f"**Snapshots**: {len(entries)}",
        f"**Date Range**: {start} to {end}",
        "",
    ]
    header = "\n".join(parts) + "\n"

    blocks: list[str] = []
    for entry in entries:
        body = entry.content if entry.content.endswith("\n") else entry.content + "\n"
        blocks.append(f"{SEPARATOR}\n{PROVENANCE_PREFIX}{entry.source_file} ({entry.source_date})\n\n{body}")

    return header + "".join(blocks)


def split_bundle(content: str) -> list[BundleEntry]:
    """Recover the absorbed snapshots from bundle text, in bundle order.

    Each recovered ``content`` is byte-identical to what was bundled, given
    that :func:`render_bundle` terminates every block with a newline.
    """
    entries: list[BundleEntry] = []
    lines = content.split("\n")

    source: str | None = None
    source_date = ""
    body: list[str] = []

    def _flush(at_end: bool) -> None:
        if source is None:
            return
        # Drop the blank line after the provenance line.  A block cut off by
        # the next separator lost its final newline to the split.
        text = "\n".join(body[1:] if body and body[0] == "" else body)
        if not at_end:
            text += "\n"
        entries.append(BundleEntry(source_file=source, source_date=source_date, content=text))

    i = 0
    while i < len(lines):
        line = lines[i]
        if line == SEPARATOR and i + 1 < len(lines) and lines[i + 1].startswith(PROVENANCE_PREFIX):
            _flush(at_end=False)
            provenance = lines[i + 1][len(PROVENANCE_PREFIX) :].strip()
            name, _, rest = provenance.partition(" (")
            source = name
            source_date = rest.rstrip(")")
            body = []
            i += 2
            continue
        if source is not None:
            body.append(line)
        i += 1

    _flush(at_end=True)
    return entries


def declared_count(content: str) -> int | None:
    """The ``**Snapshots**: N`` value from a bundle header, if present."""
    match = _COUNT_RE.search(content)
    return int(match.group(1)) if match else None
