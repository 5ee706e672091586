"""Development context captured at the moment a snapshot is taken.

A :class:`DevelopmentContext` is produced once by a context capture
implementation and then treated as opaque, read-only render input by the
snapshot store.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class CommandHistory(BaseModel):
    """A shell command recently executed in the workspace."""

    model_config = ConfigDict(frozen=True)

    command: str
    timestamp: datetime | None = None
    exit_code: int | None = None
    working_directory: str = ""


class WorkspaceContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    working_directory: str = ""
    recent_commands: list[CommandHistory] = Field(default_factory=list)


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    message: str = ""
    author: str = ""
    date: datetime | None = None


class GitContext(BaseModel):
    """Repository state.  An empty ``branch`` means no repository was found."""

    model_config = ConfigDict(frozen=True)

    branch: str = ""
    commit: str = ""
    commit_message: str = ""
    uncommitted_files: list[str] = Field(default_factory=list)
    staged_files: list[str] = Field(default_factory=list)
    recent_commits: list[CommitInfo] = Field(default_factory=list)
    remotes: dict[str, str] = Field(default_factory=dict)


class ContextMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_name: str = ""
    tool_version: str = ""
    os: str = ""
    machine: str = ""
    user: str = ""
    tags: list[str] = Field(default_factory=list)


class DevelopmentContext(BaseModel):
    """Everything an assistant needs to understand the project at one moment.

    ``documentation`` maps a project-relative path to the full file text.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    snapshot_id: str = ""
    type: str = Field(default="manual", min_length=1)
    milestone: str = ""
    workspace: WorkspaceContext = Field(default_factory=WorkspaceContext)
    git: GitContext = Field(default_factory=GitContext)
    documentation: dict[str, str] = Field(default_factory=dict)
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)
