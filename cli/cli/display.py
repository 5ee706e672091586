"""Rich output formatting for the ContextKeeper CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console

    from history_engine.models import (
        CompactionCheckResponse,
        CompactResponse,
        ComparisonResponse,
        CreateSnapshotResponse,
        EvolutionResponse,
        FilesResponse,
        InitResponse,
        SearchResponse,
        TimelineResponse,
    )


# ---------------------------------------------------------------------------
# Status colour mapping
# ---------------------------------------------------------------------------

_STATUS_COLOURS: dict[str, str] = {
    "Completed": "green",
    "In Progress": "yellow",
    "Planned": "cyan",
    "Mentioned": "dim",
}


def _coloured_status(status: str) -> str:
    """Return a Rich markup string with the status colour-coded."""
    colour = _STATUS_COLOURS.get(status, "white")
    return f"[{colour}]{status}[/{colour}]"


def _date(value: object) -> str:
    text = str(value)
    return text[:10] if text[:4].isdigit() and text[:4] != "0001" else "-"


# ---------------------------------------------------------------------------
# Setup and snapshots
# ---------------------------------------------------------------------------


def display_init(console: Console, response: InitResponse) -> None:
    lines = [f"[bold]{name}:[/bold] {escape(path)}" for name, path in response.directories.items()]
    config_state = "created" if response.config_created else "already present"
    lines.append(f"[bold]config:[/bold] {escape(response.config_path or '-')} ({config_state})")
    if response.profile:
        lines.append(f"[bold]profile:[/bold] {escape(response.profile)}")
    console.print(Panel("\n".join(lines), title="ContextKeeper initialised", border_style="green"))


def display_snapshot_created(console: Console, response: CreateSnapshotResponse) -> None:
    console.print(f"[green]{escape(response.message)}[/green]")
    if response.path:
        console.print(f"[dim]{escape(response.path)}[/dim]")


def display_comparison(console: Console, response: ComparisonResponse) -> None:
    """Show section-level differences between two snapshots."""
    table = Table(
        title=f"{response.snapshot_a} -> {response.snapshot_b}",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("Change")
    table.add_column("Section", style="bold")

    for name in response.added:
        table.add_row("[green]added[/green]", escape(name))
    for name in response.removed:
        table.add_row("[red]removed[/red]", escape(name))
    for name in response.modified:
        table.add_row("[yellow]modified[/yellow]", escape(name))

    if response.added or response.removed or response.modified:
        console.print(table)
    else:
        console.print("[dim]No section differences.[/dim]")
    console.print(escape(response.message))


# ---------------------------------------------------------------------------
# Compaction
# ---------------------------------------------------------------------------


def display_compaction_status(console: Console, response: CompactionCheckResponse) -> None:
    status = response.status
    if status is None:
        return
    needed = "[yellow]yes[/yellow]" if status.compaction_needed else "[green]no[/green]"
    lines = [
        f"[bold]Snapshots:[/bold]   {status.snapshot_count} / {status.threshold}",
        f"[bold]Expired:[/bold]     {status.expired_count} (max age {status.max_age_days} days)",
        f"[bold]Oldest:[/bold]      {escape(status.oldest_snapshot or '-')}",
        f"[bold]Newest:[/bold]      {escape(status.newest_snapshot or '-')}",
        f"[bold]Needed:[/bold]      {needed} ({status.reason.value})",
        f"[bold]Auto-compact:[/bold] {'on' if status.auto_compact_enabled else 'off'}",
    ]
    console.print(Panel("\n".join(lines), title="Compaction Status", border_style="blue"))
    console.print(escape(status.recommended_action))


def display_compaction_result(console: Console, response: CompactResponse) -> None:
    result = response.result
    if result is None:
        return
    if not result.success:
        console.print(f"[yellow]{escape(result.message)}[/yellow]")
        return

    console.print(f"[green]{escape(result.message)}[/green]")
    if result.archive_path:
        console.print(f"[dim]{escape(result.archive_path)}[/dim]")
    for name in result.failed_deletions:
        console.print(f"[red]Could not remove archived original:[/red] {escape(name)}")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def display_search_results(console: Console, response: SearchResponse) -> None:
    """Print each match with its surrounding context lines."""
    if not response.matches:
        console.print(f"[dim]No matches for '{escape(response.search_term)}'.[/dim]")
        return

    for match in response.matches:
        console.print(
            Panel(
                escape(match.context),
                title=f"{escape(match.source_file)}:{match.line_number}",
                title_align="left",
                border_style="cyan",
            )
        )
    console.print(f"[bold]{response.total_matches}[/bold] match(es) for '{escape(response.search_term)}'")


def display_files(console: Console, response: FilesResponse) -> None:
    if not response.files:
        console.print(f"[dim]No snapshots match '{escape(response.pattern)}'.[/dim]")
        return
    for name in response.files:
        console.print(escape(name))


def display_evolution(console: Console, response: EvolutionResponse) -> None:
    """Render one row per snapshot in which the component appears."""
    if not response.steps:
        console.print(f"[dim]{escape(response.summary)}[/dim]")
        return

    table = Table(
        title=f"Evolution of {escape(response.component_name)}",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("Date")
    table.add_column("Milestone", style="bold")
    table.add_column("Status")
    table.add_column("Snapshot")
    table.add_column("Archive", style="dim")

    for step in response.steps:
        table.add_row(
            _date(step.date),
            escape(step.milestone),
            _coloured_status(step.status.value),
            escape(step.file_name),
            escape(step.archive or "-"),
        )

    console.print(table)
    console.print(escape(response.summary))


def display_timeline(console: Console, response: TimelineResponse) -> None:
    if not response.events:
        console.print("[dim]No history yet.[/dim]")
        return

    table = Table(title="Timeline", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Milestone", style="bold")
    table.add_column("File", style="dim")

    for event in response.events:
        type_style = "magenta" if event.type == "Archived" else "cyan"
        table.add_row(
            _date(event.date),
            f"[{type_style}]{escape(event.type)}[/{type_style}]",
            escape(event.milestone),
            escape(event.file_name),
        )

    console.print(table)
