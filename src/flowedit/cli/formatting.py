"""Rich formatting helpers for the flowedit CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from flowedit.editor import EditOutcome
    from flowedit.models.validation import ValidationIssue, ValidationResult
    from flowedit.models.versions import SaveResult, VersionInfo, WorkflowInfo


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _issue_rows(table: Table, issues: list[ValidationIssue], level: str, style: str) -> None:
    for issue in issues:
        table.add_row(
            f"[{style}]{level}[/{style}]",
            escape(issue.path),
            issue.code.value,
            escape(issue.message),
        )


def format_validation(result: ValidationResult, console: Console) -> None:
    """Display validation errors and warnings as one table."""
    if result.is_valid and not result.warnings:
        console.print("[green]Valid.[/green] No errors or warnings.")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Level", width=7)
    table.add_column("Path", style="cyan")
    table.add_column("Code", style="dim")
    table.add_column("Message")
    _issue_rows(table, result.errors, "error", "red")
    _issue_rows(table, result.warnings, "warning", "yellow")
    console.print(table)

    status = "[green]Valid[/green]" if result.is_valid else "[red]Invalid[/red]"
    console.print(
        f"{status}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )


def format_history(entries: list[VersionInfo], console: Console) -> None:
    """Display version history in compact table format."""
    if not entries:
        console.print("[dim]No versions.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Version", justify="right", style="yellow")
    table.add_column("Time", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Checksum", style="dim", width=8)
    table.add_column("Summary")

    for entry in entries:
        table.add_row(
            str(entry.version),
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            escape(entry.created_by),
            entry.checksum[:8],
            escape(entry.edit_summary),
        )

    console.print(table)


def format_workflows(entries: list[WorkflowInfo], console: Console) -> None:
    if not entries:
        console.print("[dim]No workflows.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Workflow", style="cyan")
    table.add_column("Version", justify="right", style="yellow")
    table.add_column("Last modified", style="dim")
    for entry in entries:
        table.add_row(
            escape(entry.workflow_id),
            str(entry.current_version),
            entry.last_modified.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def format_save(result: SaveResult, console: Console) -> None:
    if result.skipped:
        console.print(
            f"[dim]No changes; {escape(result.workflow_id)} stays at "
            f"version {result.version}.[/dim]"
        )
        return
    console.print(
        f"Saved [cyan]{escape(result.workflow_id)}[/cyan] as version "
        f"[yellow]{result.version}[/yellow] ({result.checksum[:8]})"
    )


def format_edit_outcome(outcome: EditOutcome, console: Console) -> None:
    """Display an edit: the tool calls made, then the agent's message and save."""
    result = outcome.result
    for record in result.tool_calls:
        style = {"success": "green", "error": "red", "skipped": "dim"}[record.status.value]
        line = f"  [{style}]{record.status.value:>7}[/{style}] {escape(record.tool)}"
        if record.error:
            line += f" [dim]({escape(record.error)})[/dim]"
        console.print(line)

    if result.success:
        console.print(f"[green]{escape(result.message)}[/green]")
        if outcome.version is not None:
            format_save(outcome.version, console)
        return

    console.print(f"[red]{escape(result.message)}[/red]")
    if result.error_details:
        console.print(f"  [dim]{escape(result.error_details)}[/dim]")
    for issue in result.validation_errors:
        console.print(f"  [dim]{escape(issue.path)}: {escape(issue.message)}[/dim]")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
