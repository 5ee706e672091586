"""Typed response records returned by :class:`~history_engine.service.HistoryService`.

Every service operation returns one of these instead of raising, and
:func:`~history_engine.service.to_payload` is the only place they are turned
into JSON-compatible dictionaries.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from history_engine.models.results import (
    CompactionResult,
    CompactionStatus,
    EvolutionStep,
    SearchMatch,
    TimelineEvent,
)


class ServiceResponse(BaseModel):
    """Common envelope.  ``error_kind`` is set only when ``success`` is false."""

    success: bool = True
    message: str = ""
    error_kind: str | None = None


class CreateSnapshotResponse(ServiceResponse):
    path: str | None = None
    snapshot_id: str | None = None


class CompactionCheckResponse(ServiceResponse):
    status: CompactionStatus | None = None


class CompactResponse(ServiceResponse):
    result: CompactionResult | None = None


class SearchResponse(ServiceResponse):
    search_term: str = ""
    total_matches: int = 0
    matches: list[SearchMatch] = Field(default_factory=list)


class EvolutionResponse(ServiceResponse):
    component_name: str = ""
    steps: list[EvolutionStep] = Field(default_factory=list)
    summary: str = ""


class FilesResponse(ServiceResponse):
    pattern: str = ""
    files: list[str] = Field(default_factory=list)


class TimelineResponse(ServiceResponse):
    events: list[TimelineEvent] = Field(default_factory=list)


class ComparisonResponse(ServiceResponse):
    snapshot_a: str = ""
    snapshot_b: str = ""
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)


class InitResponse(ServiceResponse):
    config_path: str | None = None
    config_created: bool = False
    profile: str | None = None
    directories: dict[str, str] = Field(default_factory=dict)
