"""Linear text search over active snapshots and archive bundles.

There is no inverted index: every query reads the documents in scope,
newest first, and stops once enough matches are collected.  History
directories stay small enough (compaction caps the active set) that a scan
is fast, and the result is trivially consistent with what is on disk.
"""

from __future__ import annotations

import fnmatch
import logging

from history_engine.config import HistoryConfig
from history_engine.errors import SnapshotIOError
from history_engine.models.results import SearchMatch, SearchResult, SearchScope
from history_engine.snapshots.documents import (
    HistoryDocument,
    active_documents,
    archived_documents,
    list_markdown,
    read_document,
)
from history_engine.snapshots.naming import SnapshotNaming

logger = logging.getLogger(__name__)

MATCH_PREFIX = ">>> "
CONTEXT_PREFIX = "    "


def context_window(lines: list[str], index: int, radius: int) -> str:
    """Lines ``index - radius .. index + radius`` with the match marked."""
    start = max(0, index - radius)
    end = min(len(lines) - 1, index + radius)
    return "\n".join(
        f"{MATCH_PREFIX if i == index else CONTEXT_PREFIX}{lines[i]}" for i in range(start, end + 1)
    )


class SearchIndex:
    """Case-insensitive substring search across history documents."""

    def __init__(self, config: HistoryConfig) -> None:
        self._config = config
        self._naming = SnapshotNaming(config.snapshot)

    def _documents(self, scope: SearchScope) -> list[HistoryDocument]:
        documents: list[HistoryDocument] = []
        if scope in (SearchScope.ACTIVE, SearchScope.ALL):
            documents.extend(active_documents(self._config, self._naming))
        if scope in (SearchScope.ARCHIVED, SearchScope.ALL):
            documents.extend(archived_documents(self._config, self._naming))
        # Newest first; equal dates fall back to filename, descending.
        documents.sort(key=lambda doc: (doc.date, doc.name), reverse=True)
        return documents

    def search(
        self,
        term: str,
        max_results: int | None = None,
        scope: SearchScope = SearchScope.ALL,
    ) -> SearchResult:
        """Return up to *max_results* matching lines, newest documents first.

        An empty *term* or a non-positive *max_results* yields no matches.
        """
        limit = self._config.search.default_max_results if max_results is None else max_results
        result = SearchResult(search_term=term)
        if not term or limit < 1:
            return result

        needle = term.casefold()
        radius = self._config.search.context_lines

        for doc in self._documents(scope):
            try:
                text = read_document(doc.path)
            except SnapshotIOError as exc:
                logger.warning("Skipping unreadable history document: %s", exc)
                continue
            lines = [line.rstrip("\r") for line in text.split("\n")]
            for i, line in enumerate(lines):
                if needle not in line.casefold():
                    continue
                result.matches.append(
                    SearchMatch(
                        source_file=doc.name,
                        line_number=i + 1,
                        matched_line=line.strip(),
                        context=context_window(lines, i, radius),
                    )
                )
                if len(result.matches) >= limit:
                    logger.debug("Search for %r stopped at %d matches", term, limit)
                    return result

        return result

    def files_by_pattern(self, pattern: str) -> list[str]:
        """Active snapshot filenames matching a shell-style *pattern*, sorted."""
        if not pattern:
            return []
        return [
            path.name
            for path in list_markdown(self._config.snapshots_dir)
            if fnmatch.fnmatchcase(path.name, pattern)
        ]
