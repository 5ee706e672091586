"""Query and operation results produced by the core components.

These are ephemeral projections computed per call; none of them is persisted.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class ComparisonResult(BaseModel):
    """Section-level differences between two snapshot documents.

    Section names keep the order in which they appear in their document.
    """

    snapshot_a: str
    snapshot_b: str
    added_sections: list[str] = Field(default_factory=list)
    removed_sections: list[str] = Field(default_factory=list)
    modified_sections: list[str] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"Comparison complete: {len(self.added_sections)} added, "
            f"{len(self.removed_sections)} removed, {len(self.modified_sections)} modified"
        )


# ---------------------------------------------------------------------------
# Compaction
# ---------------------------------------------------------------------------


class CompactionReason(str, Enum):
    AGE = "age"
    THRESHOLD = "threshold"
    NONE = "none"


class CompactionStatus(BaseModel):
    snapshot_count: int = 0
    compaction_needed: bool = False
    oldest_snapshot: str | None = None
    newest_snapshot: str | None = None
    reason: CompactionReason = CompactionReason.NONE
    recommended_action: str = ""
    threshold: int = 0
    max_age_days: int = 0
    expired_count: int = 0
    auto_compact_enabled: bool = False


class CompactionOutcome(str, Enum):
    COMPACTED = "compacted"
    NOT_NEEDED = "not_needed"
    DISABLED = "disabled"


class CompactionResult(BaseModel):
    """Outcome of a compaction request.

    ``failed_deletions`` lists originals that were archived into the bundle
    but could not be removed from the active directory afterwards.
    """

    outcome: CompactionOutcome
    message: str = ""
    archived_count: int = 0
    archive_path: str | None = None
    archived_snapshots: list[str] = Field(default_factory=list)
    failed_deletions: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome == CompactionOutcome.COMPACTED


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchScope(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    ALL = "all"


class SearchMatch(BaseModel):
    source_file: str
    line_number: int = Field(..., ge=1)
    matched_line: str
    context: str


class SearchResult(BaseModel):
    search_term: str
    matches: list[SearchMatch] = Field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.matches)


# ---------------------------------------------------------------------------
# Evolution
# ---------------------------------------------------------------------------


class ComponentStatus(str, Enum):
    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    PLANNED = "Planned"
    MENTIONED = "Mentioned"


class EvolutionStep(BaseModel):
    """One observation of a component in a historical snapshot.

    ``archive`` names the bundle the snapshot was read from, if any.
    """

    date: datetime
    milestone: str
    status: ComponentStatus
    file_name: str
    archive: str | None = None


class EvolutionResult(BaseModel):
    component_name: str
    steps: list[EvolutionStep] = Field(default_factory=list)
    summary: str = ""


class TimelineEvent(BaseModel):
    date: datetime
    milestone: str
    file_name: str
    type: str


class TimelineResult(BaseModel):
    events: list[TimelineEvent] = Field(default_factory=list)
