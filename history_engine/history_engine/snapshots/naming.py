"""Filename template rendering and inversion.

Snapshot filenames are produced from a template such as
``SNAPSHOT_{date}_{type}_{milestone}.md``.  The same template is turned into
a regular expression to recover the date, capture type and milestone from a
filename.  Recovery is heuristic: a name that does not fit the template yields
``None`` and callers substitute :data:`MIN_DATE` / ``"Unknown"``.

Archive bundles use a fixed convention, ``ARCHIVE_{start}_to_{end}.md``, with
an optional ``_<n>`` sequence suffix when several bundles share a range.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime

from history_engine.config import SnapshotConfig
from history_engine.errors import ConfigurationError
from history_engine.snapshots.validation import CAPTURE_TYPE_PATTERN

MIN_DATE = datetime.min.replace(tzinfo=UTC)
UNKNOWN_MILESTONE = "Unknown"

ARCHIVE_PREFIX = "ARCHIVE_"

# strftime directives accepted in ``date_format`` and the text they produce.
_DIRECTIVE_PATTERNS: dict[str, str] = {
    "%Y": r"\d{4}",
    "%y": r"\d{2}",
    "%m": r"\d{2}",
    "%d": r"\d{2}",
    "%H": r"\d{2}",
    "%M": r"\d{2}",
    "%S": r"\d{2}",
    "%f": r"\d{6}",
    "%j": r"\d{3}",
    "%%": "%",
}

_PLACEHOLDER_RE = re.compile(r"(\{date\}|\{type\}|\{milestone\})")


def date_format_regex(date_format: str) -> str:
    """Translate a strftime format into a regex matching its output.

    Raises
    ------
    ConfigurationError
        If the format uses a directive whose output width is not fixed.
    """
    parts: list[str] = []
    i = 0
    while i < len(date_format):
        char = date_format[i]
        if char == "%":
            directive = date_format[i : i + 2]
            pattern = _DIRECTIVE_PATTERNS.get(directive)
            if pattern is None:
                raise ConfigurationError(f"Unsupported date format directive {directive!r} in {date_format!r}")
            parts.append(pattern)
            i += 2
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts)


def to_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class ParsedName:
    """Fields recovered from a snapshot filename."""

    date: datetime
    capture_type: str
    milestone: str


@dataclass(frozen=True)
class ParsedArchiveName:
    start_date: datetime
    end_date: datetime


class SnapshotNaming:
    """Render and parse snapshot and archive filenames for one configuration."""

    def __init__(self, config: SnapshotConfig) -> None:
        self._template = config.filename_pattern
        self._date_format = config.date_format
        date_re = date_format_regex(config.date_format)
        self._name_re = self._compile_template(config.filename_pattern, date_re)
        self._archive_re = re.compile(
            rf"^{re.escape(ARCHIVE_PREFIX)}(?P<start>{date_re})_to_(?P<end>{date_re})(?:_\d+)?\.md$"
        )

    @staticmethod
    def _compile_template(template: str, date_re: str) -> re.Pattern[str]:
        group_patterns = {
            "{date}": date_re,
            "{type}": CAPTURE_TYPE_PATTERN,
            "{milestone}": r".+",
        }
        seen: set[str] = set()
        parts: list[str] = []
        for token in _PLACEHOLDER_RE.split(template):
            if token in group_patterns:
                name = token[1:-1]
                if name in seen:
                    parts.append(f"(?P={name})")
                else:
                    seen.add(name)
                    parts.append(f"(?P<{name}>{group_patterns[token]})")
            else:
                parts.append(re.escape(token))
        return re.compile("^" + "".join(parts) + "$")

    # -- dates ---------------------------------------------------------------

    def format_date(self, value: datetime) -> str:
        return to_utc(value).strftime(self._date_format)

    def parse_date(self, text: str) -> datetime | None:
        try:
            return datetime.strptime(text, self._date_format).replace(tzinfo=UTC)
        except ValueError:
            return None

    def truncate(self, value: datetime) -> datetime:
        """Return *value* truncated to the precision of the date format."""
        parsed = self.parse_date(self.format_date(value))
        return parsed if parsed is not None else MIN_DATE

    # -- snapshot names ------------------------------------------------------

    def render(self, timestamp: datetime, capture_type: str, milestone: str) -> str:
        return (
            self._template.replace("{date}", self.format_date(timestamp))
            .replace("{type}", capture_type)
            .replace("{milestone}", milestone)
        )

    def parse(self, filename: str) -> ParsedName | None:
        """Invert the template.  Returns ``None`` for a non-conforming name."""
        match = self._name_re.match(filename)
        if match is None:
            return None
        parsed_date = self.parse_date(match.group("date"))
        if parsed_date is None:
            return None
        groups = match.groupdict()
        return ParsedName(
            date=parsed_date,
            capture_type=groups.get("type") or "",
            milestone=match.group("milestone"),
        )

    def date_of(self, filename: str) -> datetime:
        parsed = self.parse(filename)
        return parsed.date if parsed is not None else MIN_DATE

    def milestone_of(self, filename: str) -> str:
        parsed = self.parse(filename)
        return parsed.milestone if parsed is not None else UNKNOWN_MILESTONE

    # -- archive names -------------------------------------------------------

    def render_archive(self, start: datetime, end: datetime, sequence: int = 0) -> str:
        suffix = f"_{sequence}" if sequence > 0 else ""
        return f"{ARCHIVE_PREFIX}{self.format_date(start)}_to_{self.format_date(end)}{suffix}.md"

    def parse_archive(self, filename: str) -> ParsedArchiveName | None:
        match = self._archive_re.match(filename)
        if match is None:
            return None
        start = self.parse_date(match.group("start"))
        end = self.parse_date(match.group("end"))
        if start is None or end is None:
            return None
        return ParsedArchiveName(start_date=start, end_date=end)
