"""Use-case orchestration over the history components.

:class:`HistoryService` is the boundary callers talk to.  Each operation
returns a typed response record; core exceptions never escape.  A
:class:`~history_engine.errors.HistoryError` becomes ``success=False`` with
its ``kind`` in ``error_kind``, and anything unexpected is logged with its
traceback and reported as ``error_kind="internal"``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from history_engine.capture import ContextCapture, ContextCaptureService
from history_engine.compaction.engine import CompactionEngine
from history_engine.config import CONFIG_FILENAME, HistoryConfig, WorkflowProfile
from history_engine.errors import HistoryError
from history_engine.evolution.tracker import EvolutionTracker
from history_engine.models.responses import (
    CompactionCheckResponse,
    CompactResponse,
    ComparisonResponse,
    CreateSnapshotResponse,
    EvolutionResponse,
    FilesResponse,
    InitResponse,
    SearchResponse,
    ServiceResponse,
    TimelineResponse,
)
from history_engine.models.results import CompactionOutcome, SearchScope
from history_engine.profiles import detect_profile
from history_engine.search.index import SearchIndex
from history_engine.snapshots.store import SnapshotStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ServiceResponse)


def to_payload(response: ServiceResponse) -> dict[str, Any]:
    """Serialise a response record into JSON-compatible primitives."""
    return response.model_dump(mode="json")


class HistoryService:
    """Wire the snapshot store, compaction engine, search index and tracker.

    Parameters
    ----------
    config:
        Project configuration.
    capture:
        Context source for new snapshots.  Defaults to
        :class:`ContextCaptureService` over ``config.project_root``.
    config_path:
        Where :meth:`init_project` writes the config file.
    clock:
        Current-time source for the compaction engine.
    """

    def __init__(
        self,
        config: HistoryConfig,
        capture: ContextCapture | None = None,
        config_path: Path | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._custom_capture = capture
        self._config_path = config_path or (config.project_root / CONFIG_FILENAME)
        self._clock = clock
        self._wire(config)

    def _wire(self, config: HistoryConfig) -> None:
        self._config = config
        self._capture = self._custom_capture if self._custom_capture is not None else ContextCaptureService(config)
        self.compaction = CompactionEngine(config, clock=self._clock)
        self.store = SnapshotStore(config, compaction=self.compaction)
        self.search_index = SearchIndex(config)
        self.tracker = EvolutionTracker(config)

    @property
    def config(self) -> HistoryConfig:
        return self._config

    def _run(
        self,
        operation: str,
        response_type: type[R],
        call: Callable[[], R],
        **request: Any,
    ) -> R:
        """Invoke *call*; on failure echo *request* fields into the error response."""
        try:
            return call()
        except HistoryError as exc:
            logger.warning("%s failed: %s", operation, exc)
            return response_type(success=False, message=str(exc), error_kind=exc.kind, **request)
        except Exception as exc:
            logger.exception("Unexpected error during %s", operation)
            return response_type(success=False, message=f"Error: {exc}", error_kind="internal", **request)

    # -- snapshots -----------------------------------------------------------

    def create_snapshot(self, milestone: str, capture_type: str = "manual") -> CreateSnapshotResponse:
        def call() -> CreateSnapshotResponse:
            self.store.validate(milestone, capture_type)
            context = self._capture.capture(capture_type, milestone)
            snapshot = self.store.create(milestone, context)
            return CreateSnapshotResponse(
                path=str(snapshot.path),
                snapshot_id=snapshot.snapshot_id,
                message=f"Snapshot created: {snapshot.filename}",
            )

        return self._run("create_snapshot", CreateSnapshotResponse, call)

    def compare(self, name_a: str, name_b: str) -> ComparisonResponse:
        def call() -> ComparisonResponse:
            result = self.store.compare(name_a, name_b)
            return ComparisonResponse(
                snapshot_a=name_a,
                snapshot_b=name_b,
                added=result.added_sections,
                removed=result.removed_sections,
                modified=result.modified_sections,
                message=result.summary,
            )

        return self._run("compare", ComparisonResponse, call, snapshot_a=name_a, snapshot_b=name_b)

    # -- compaction ----------------------------------------------------------

    def check_compaction(self) -> CompactionCheckResponse:
        def call() -> CompactionCheckResponse:
            status = self.compaction.check_needed()
            return CompactionCheckResponse(status=status, message=status.recommended_action)

        return self._run("check_compaction", CompactionCheckResponse, call)

    def compact(self) -> CompactResponse:
        def call() -> CompactResponse:
            result = self.compaction.compact()
            if result.outcome == CompactionOutcome.DISABLED:
                return CompactResponse(success=False, result=result, message=result.message, error_kind="disabled")
            return CompactResponse(result=result, message=result.message)

        return self._run("compact", CompactResponse, call)

    # -- queries -------------------------------------------------------------

    def search(
        self,
        term: str,
        max_results: int | None = None,
        scope: SearchScope | str = SearchScope.ALL,
    ) -> SearchResponse:
        def call() -> SearchResponse:
            result = self.search_index.search(term, max_results, SearchScope(scope))
            return SearchResponse(
                search_term=term,
                total_matches=result.total_matches,
                matches=result.matches,
                message=f"Found {result.total_matches} match(es)",
            )

        return self._run("search", SearchResponse, call, search_term=term)

    def files(self, pattern: str) -> FilesResponse:
        def call() -> FilesResponse:
            files = self.search_index.files_by_pattern(pattern)
            return FilesResponse(pattern=pattern, files=files, message=f"{len(files)} file(s) match")

        return self._run("files", FilesResponse, call, pattern=pattern)

    def get_evolution(self, component: str) -> EvolutionResponse:
        def call() -> EvolutionResponse:
            result = self.tracker.get_evolution(component)
            return EvolutionResponse(
                component_name=result.component_name,
                steps=result.steps,
                summary=result.summary,
                message=result.summary,
            )

        return self._run("get_evolution", EvolutionResponse, call, component_name=component)

    def get_timeline(self) -> TimelineResponse:
        def call() -> TimelineResponse:
            events = self.tracker.get_timeline().events
            return TimelineResponse(events=events, message=f"{len(events)} event(s)")

        return self._run("get_timeline", TimelineResponse, call)

    # -- setup ---------------------------------------------------------------

    def _select_profile(self, name: str | None) -> WorkflowProfile | None:
        if name:
            return self._config.resolve_profile(name)
        if self._config.default_profile or self._config_path.exists():
            # The layout is already decided by the loaded configuration.
            return None
        return detect_profile(self._config.project_root, self._config.profiles)

    def init_project(self, profile: str | None = None) -> InitResponse:
        """Create the history directories and a config file if absent.

        With *profile* the named workflow profile is used; without it a
        profile is detected from the project layout when no config file
        exists yet.  When nothing is selected the current configuration's
        layout is used.  An existing config file is never overwritten.
        """

        def call() -> InitResponse:
            selected = self._select_profile(profile)
            if selected is not None:
                self._wire(self._config.with_profile(selected))

            directories = {
                "history": self._config.history_dir,
                "snapshots": self._config.snapshots_dir,
                "archived": self._config.archive_dir,
            }
            for path in directories.values():
                path.mkdir(parents=True, exist_ok=True)

            created = False
            if not self._config_path.exists():
                self._config_path.parent.mkdir(parents=True, exist_ok=True)
                self._config_path.write_text(self._config.to_json() + "\n", encoding="utf-8")
                created = True
                logger.info("Wrote configuration to %s", self._config_path)

            if selected is not None:
                message = f"Initialized ContextKeeper with '{selected.name}' profile"
            else:
                message = "Initialized history directories" + (" and configuration" if created else "")
            return InitResponse(
                config_path=str(self._config_path),
                config_created=created,
                profile=self._config.default_profile,
                directories={name: str(path) for name, path in directories.items()},
                message=message,
            )

        return self._run("init_project", InitResponse, call, profile=profile)
