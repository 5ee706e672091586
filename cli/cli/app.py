"""ContextKeeper CLI application -- Typer-based developer interface.

Provides commands for snapshot creation, compaction, history search,
component evolution and timeline inspection.  Human-readable output goes to
*stderr* via Rich; with ``--json`` each command writes its response record
as JSON to *stdout* so that pipelines and assistants can compose cleanly.

Exit codes: 0 on success, 3 when the operation failed.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from cli.display import (
    display_compaction_result,
    display_compaction_status,
    display_comparison,
    display_evolution,
    display_files,
    display_init,
    display_search_results,
    display_snapshot_created,
    display_timeline,
)
from history_engine.config import load_config, load_settings
from history_engine.errors import ConfigurationError
from history_engine.models.results import SearchScope
from history_engine.service import HistoryService, to_payload
from history_engine.telemetry import configure_logging

if TYPE_CHECKING:
    from collections.abc import Callable

    from history_engine.models import ServiceResponse

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="contextkeeper",
    help="ContextKeeper - chronological, searchable history of your project's documentation.",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_project_root: Path | None = None
_config_path: Path | None = None


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    project_root: Path | None = typer.Option(
        None,
        "--project-root",
        help="Project directory (defaults to CONTEXTKEEPER_PROJECT_ROOT or the current directory).",
        file_okay=False,
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to contextkeeper.config.json (defaults to CONTEXTKEEPER_CONFIG_PATH).",
        dir_okay=False,
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _project_root, _config_path  # noqa: PLW0603
    _json_output = json_mode
    _project_root = project_root
    _config_path = config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_service() -> HistoryService:
    """Load settings and project config, configure logging, wire the service."""
    overrides: dict[str, object] = {}
    if _project_root is not None:
        overrides["project_root"] = _project_root
    if _config_path is not None:
        overrides["config_path"] = _config_path
    settings = load_settings(**overrides)
    configure_logging(settings)

    config_path = settings.resolved_config_path()
    try:
        config = load_config(settings.project_root, config_path, profile=settings.profile)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=3) from exc
    return HistoryService(config, config_path=config_path)


def _finish(
    response: ServiceResponse,
    render: Callable[[Console, ServiceResponse], None],
) -> None:
    """Emit *response* as JSON or through *render*; exit 3 on failure."""
    if _json_output:
        sys.stdout.write(json.dumps(to_payload(response), indent=2) + "\n")
    elif response.success:
        render(console, response)
    else:
        console.print(f"[red]{response.message}[/red]")

    if not response.success:
        raise typer.Exit(code=3)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    profile: str | None = typer.Option(
        None,
        "--profile",
        "-p",
        help="Workflow profile (claude, readme, docs or a configured name). Detected when omitted.",
    ),
) -> None:
    """Create the history directories and a configuration file."""
    service = _build_service()
    _finish(service.init_project(profile), display_init)


@app.command()
def snapshot(
    milestone: str = typer.Argument(..., help="Short label, e.g. 'auth-login' (letters, digits, hyphens)."),
    capture_type: str = typer.Option("manual", "--type", "-t", help="Capture type recorded in the filename."),
) -> None:
    """Capture the current development context as a new snapshot."""
    service = _build_service()
    _finish(service.create_snapshot(milestone, capture_type), display_snapshot_created)


@app.command()
def check() -> None:
    """Report whether the active snapshots should be compacted."""
    service = _build_service()
    _finish(service.check_compaction(), display_compaction_status)


@app.command()
def compact() -> None:
    """Consolidate old snapshots into an archive bundle."""
    service = _build_service()
    _finish(service.compact(), display_compaction_result)


@app.command()
def search(
    term: str = typer.Argument(..., help="Case-insensitive text to look for."),
    max_results: int | None = typer.Option(
        None,
        "--max-results",
        "-n",
        help="Stop after this many matches (defaults to the configured value).",
    ),
    scope: SearchScope = typer.Option(
        SearchScope.ALL,
        "--scope",
        help="Search active snapshots, archive bundles, or both.",
        case_sensitive=False,
    ),
) -> None:
    """Search snapshot history, newest first."""
    service = _build_service()
    _finish(service.search(term, max_results, scope), display_search_results)


@app.command()
def evolution(
    component: str = typer.Argument(..., help="Component name as it appears in your documentation."),
) -> None:
    """Trace a component's status across all historical snapshots."""
    service = _build_service()
    _finish(service.get_evolution(component), display_evolution)


@app.command()
def timeline() -> None:
    """List snapshots and archive bundles in chronological order."""
    service = _build_service()
    _finish(service.get_timeline(), display_timeline)


@app.command()
def compare(
    snapshot_a: str = typer.Argument(..., help="Older snapshot filename."),
    snapshot_b: str = typer.Argument(..., help="Newer snapshot filename."),
) -> None:
    """Show which sections were added, removed or modified between two snapshots."""
    service = _build_service()
    _finish(service.compare(snapshot_a, snapshot_b), display_comparison)


@app.command()
def files(
    pattern: str = typer.Argument("*", help="Glob over active snapshot filenames, e.g. '*auth*'."),
) -> None:
    """List active snapshot files matching a pattern."""
    service = _build_service()
    _finish(service.files(pattern), display_files)
