"""Domain models for the history engine."""

from history_engine.models.context import (
    CommandHistory,
    CommitInfo,
    ContextMetadata,
    DevelopmentContext,
    GitContext,
    WorkspaceContext,
)
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
from history_engine.models.results import (
    CompactionOutcome,
    CompactionReason,
    CompactionResult,
    CompactionStatus,
    ComparisonResult,
    ComponentStatus,
    EvolutionResult,
    EvolutionStep,
    SearchMatch,
    SearchResult,
    SearchScope,
    TimelineEvent,
    TimelineResult,
)
from history_engine.models.snapshot import ArchiveBundle, Snapshot

__all__ = [
    "ArchiveBundle",
    "CommandHistory",
    "CommitInfo",
    "CompactResponse",
    "CompactionCheckResponse",
    "CompactionOutcome",
    "CompactionReason",
    "CompactionResult",
    "CompactionStatus",
    "ComparisonResponse",
    "ComparisonResult",
    "ComponentStatus",
    "ContextMetadata",
    "CreateSnapshotResponse",
    "DevelopmentContext",
    "EvolutionResponse",
    "FilesResponse",
    "EvolutionResult",
    "EvolutionStep",
    "GitContext",
    "InitResponse",
    "SearchMatch",
    "SearchResponse",
    "SearchResult",
    "SearchScope",
    "ServiceResponse",
    "Snapshot",
    "TimelineEvent",
    "TimelineResponse",
    "TimelineResult",
    "WorkspaceContext",
]
