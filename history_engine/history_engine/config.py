"""History engine configuration.

Two layers:

* :class:`Settings` -- process-level knobs loaded from environment variables
  with the ``CONTEXTKEEPER_`` prefix (where the config file lives, active
  profile, logging mode, debug flag).
* :class:`HistoryConfig` -- the project's persisted JSON configuration
  (``contextkeeper.config.json``): storage paths, naming template, milestone
  validation and compaction policy.  It is an explicit value handed to every
  component; nothing reads it from global state.

A :class:`WorkflowProfile` bundles paths, naming and compaction policy under a
name.  When one is active its sections replace the top-level ones.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from history_engine.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "contextkeeper.config.json"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables with CONTEXTKEEPER_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="CONTEXTKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    project_root: Path = Path(".")
    config_path: Path | None = None
    profile: str | None = None
    debug: bool = False
    structured_logging: bool = False

    def resolved_config_path(self) -> Path:
        if self.config_path is None:
            return self.project_root / CONFIG_FILENAME
        if self.config_path.is_absolute():
            return self.config_path
        return self.project_root / self.config_path


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings for project root: %s", settings.project_root)

    return settings


# ---------------------------------------------------------------------------
# Persisted project configuration
# ---------------------------------------------------------------------------


class PathConfig(BaseModel):
    """Directory layout, relative to the project root."""

    history: str = ".contextkeeper"
    snapshots: str = ".contextkeeper/snapshots"
    archived: str = ".contextkeeper/archived"


class SnapshotConfig(BaseModel):
    """Snapshot naming and milestone validation rules."""

    date_format: str = "%Y-%m-%d"
    filename_pattern: str = "SNAPSHOT_{date}_{type}_{milestone}.md"
    validation: str = r"^[a-zA-Z0-9-]+$"
    max_length: int = Field(default=50, ge=1)

    @field_validator("filename_pattern")
    @classmethod
    def _require_placeholders(cls, v: str) -> str:
        for placeholder in ("{date}", "{milestone}"):
            if placeholder not in v:
                raise ValueError(f"filename_pattern must contain {placeholder}")
        if "/" in v or "\\" in v:
            raise ValueError("filename_pattern must be a plain filename")
        return v

    @field_validator("validation")
    @classmethod
    def _compile_validation(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid validation pattern {v!r}: {exc}") from exc
        return v


class CompactionPolicy(BaseModel):
    """When and whether snapshots are consolidated into archive bundles."""

    threshold: int = Field(default=20, ge=1)
    max_age_in_days: int = Field(default=90, ge=0)
    auto_compact: bool = True


class SearchConfig(BaseModel):
    default_max_results: int = Field(default=5, ge=1)
    context_lines: int = Field(default=2, ge=0)


class ContextTrackingConfig(BaseModel):
    """What the default context capture collects."""

    documentation_files: list[str] = Field(default_factory=lambda: ["*.md"])
    ignore_patterns: list[str] = Field(
        default_factory=lambda: ["node_modules", ".git", ".contextkeeper", "bin", "obj", ".venv"]
    )
    track_git_state: bool = True
    track_recent_commands: bool = True
    max_recent_commands: int = Field(default=20, ge=0)


class DetectionConfig(BaseModel):
    """Files and directories whose presence marks a project as fitting a profile."""

    files: list[str] = Field(default_factory=list)
    paths: list[str] = Field(default_factory=list)


class WorkflowProfile(BaseModel):
    """A named preset of storage paths, naming rules and compaction policy."""

    name: str = Field(..., min_length=1)
    description: str = ""
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    paths: PathConfig = Field(default_factory=PathConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    compaction: CompactionPolicy = Field(default_factory=CompactionPolicy)

    def matches(self, project_root: Path) -> bool:
        """True when every detection file and directory exists under *project_root*."""
        return all((project_root / f).is_file() for f in self.detection.files) and all(
            (project_root / p).is_dir() for p in self.detection.paths
        )


def _builtin_profile(
    name: str,
    description: str,
    history: str,
    prefix: str,
    threshold: int,
    detection: DetectionConfig,
) -> WorkflowProfile:
    return WorkflowProfile(
        name=name,
        description=description,
        detection=detection,
        paths=PathConfig(history=history, snapshots=f"{history}/snapshots", archived=f"{history}/archived"),
        snapshot=SnapshotConfig(
            filename_pattern=f"{prefix}{{date}}_{{type}}_{{milestone}}.md",
            validation=r"^[a-z0-9-]+$",
        ),
        compaction=CompactionPolicy(threshold=threshold),
    )


BUILTIN_PROFILES: dict[str, WorkflowProfile] = {
    profile.name: profile
    for profile in (
        _builtin_profile(
            "claude-workflow",
            "Development history for projects driven by a CLAUDE.md file",
            history="FeatureData/DataHistory",
            prefix="CLAUDE_",
            threshold=10,
            detection=DetectionConfig(files=["CLAUDE.md"], paths=["FeatureData/DataHistory"]),
        ),
        _builtin_profile(
            "readme-workflow",
            "History tracking for README-based projects",
            history=".history",
            prefix="README_",
            threshold=20,
            detection=DetectionConfig(files=["README.md"]),
        ),
        _builtin_profile(
            "docs-workflow",
            "History tracking for documentation projects",
            history="docs/.history",
            prefix="DOCS_",
            threshold=15,
            detection=DetectionConfig(paths=["docs"]),
        ),
    )
}

_PROFILE_SUFFIX = "-workflow"


class HistoryConfig(BaseModel):
    """Complete project configuration.

    ``project_root`` anchors the relative paths and is never written to the
    config file.
    """

    version: str = "2.0"
    paths: PathConfig = Field(default_factory=PathConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    compaction: CompactionPolicy = Field(default_factory=CompactionPolicy)
    search: SearchConfig = Field(default_factory=SearchConfig)
    context_tracking: ContextTrackingConfig = Field(default_factory=ContextTrackingConfig)
    default_profile: str | None = None
    profiles: dict[str, WorkflowProfile] = Field(default_factory=dict)
    project_root: Path = Field(default=Path("."), exclude=True)

    @property
    def history_dir(self) -> Path:
        return self.project_root / self.paths.history

    @property
    def snapshots_dir(self) -> Path:
        return self.project_root / self.paths.snapshots

    @property
    def archive_dir(self) -> Path:
        return self.project_root / self.paths.archived

    def to_json(self) -> str:
        """Serialise for the config file.

        With an active profile the profile entry is authoritative, so the
        sections it overrides are left out.
        """
        if self.default_profile is None:
            return self.model_dump_json(indent=2)
        return self.model_dump_json(indent=2, exclude={"paths", "snapshot", "compaction"})

    def resolve_profile(self, name: str) -> WorkflowProfile:
        """Look up a profile by name in this config, then among the built-ins.

        A short name such as ``docs`` also finds ``docs-workflow``.

        Raises
        ------
        ConfigurationError
            If no profile has that name.
        """
        candidates = {**BUILTIN_PROFILES, **self.profiles}
        for key in (name, name + _PROFILE_SUFFIX):
            if key in candidates:
                return candidates[key]
        known = ", ".join(sorted(candidates))
        raise ConfigurationError(f"Unknown profile {name!r} (known profiles: {known})")

    def with_profile(self, profile: WorkflowProfile) -> HistoryConfig:
        """Copy of this config with *profile* active and recorded."""
        return self.model_copy(
            update={
                "paths": profile.paths,
                "snapshot": profile.snapshot,
                "compaction": profile.compaction,
                "default_profile": profile.name,
                "profiles": {**self.profiles, profile.name: profile},
            }
        )


def load_config(
    project_root: Path,
    config_path: Path | None = None,
    profile: str | None = None,
) -> HistoryConfig:
    """Load the project configuration, falling back to defaults.

    Parameters
    ----------
    project_root:
        Directory the configured relative paths are resolved against.
    config_path:
        Explicit config file.  Defaults to ``<project_root>/contextkeeper.config.json``.
    profile:
        Profile to activate instead of the file's ``default_profile``.  The
        active profile's paths, snapshot and compaction sections replace the
        top-level ones.

    Raises
    ------
    ConfigurationError
        If the file exists but is unreadable, not JSON, or fails validation,
        or the requested profile is unknown.
    """
    path = config_path or (project_root / CONFIG_FILENAME)
    if not path.exists():
        logger.debug("No config file at %s; using defaults", path)
        return _activate(HistoryConfig(project_root=project_root), profile)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    try:
        config = HistoryConfig.model_validate({**raw, "project_root": project_root})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc

    logger.debug("Loaded configuration from %s", path)
    return _activate(config, profile)


def _activate(config: HistoryConfig, profile: str | None) -> HistoryConfig:
    name = profile or config.default_profile
    if not name:
        return config
    active = config.resolve_profile(name)
    logger.debug("Using profile %s", active.name)
    return config.with_profile(active)
