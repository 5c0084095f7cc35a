"""Rich output helpers: panels, tables, session and completion summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from phasebranch import __version__

if TYPE_CHECKING:
    from phasebranch.core.context import (
        CompletionReport,
        LedgerEntry,
        SessionInfo,
        SessionRecord,
    )
    from phasebranch.core.phases import PhaseTable

console = Console()


def get_version_string() -> str:
    return f"phasebranch {__version__}"


def print_session_started(info: SessionInfo) -> None:
    """Show the branch a workflow will run on."""
    record = info.record
    verb = "Resumed" if info.resumed else "Created"
    lines = [
        f"[bold]{verb} branch:[/bold] [cyan]{record.feature_branch}[/cyan]",
        f"Workflow: {record.workflow_id}",
        f"Phase: {record.phase_number}",
        f"Base: {record.base_branch}",
    ]
    if record.phase_branch:
        lines.append(f"Phase branch: {record.phase_branch}")
    console.print(Panel("\n".join(lines), title="Session started", border_style="cyan"))


def print_session(record: SessionRecord) -> None:
    """Display the active session record."""
    table = Table(title="Active Session", border_style="blue")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Session ID", record.session_id)
    table.add_row("Workflow", record.workflow_id)
    table.add_row("Phase", str(record.phase_number))
    table.add_row("Base branch", record.base_branch)
    table.add_row("Feature branch", record.feature_branch)
    table.add_row("Phase branch", record.phase_branch or "[dim]none (unscoped)[/dim]")
    table.add_row("Started", record.created_at.isoformat()[:19].replace("T", " "))
    console.print(table)


def print_ledger(entries: list[LedgerEntry]) -> None:
    """Display the branches the orchestrator has created."""
    if not entries:
        console.print("[dim]No feature branches recorded.[/dim]")
        return

    table = Table(title="Feature Branches")
    table.add_column("Branch", style="cyan")
    table.add_column("Workflow")
    table.add_column("Phase", justify="right")
    table.add_column("Status")
    table.add_column("Opened", style="dim")

    status_styles = {"open": "yellow", "closed": "green"}
    for e in entries:
        style = status_styles.get(e.status.value, "")
        table.add_row(
            e.branch,
            e.workflow_id,
            str(e.phase_number),
            f"[{style}]{e.status.value}[/{style}]" if style else e.status.value,
            e.opened_at.isoformat()[:19].replace("T", " "),
        )
    console.print(table)


def print_phase_table(phases: PhaseTable) -> None:
    from phasebranch.core.phases import phase_label

    table = Table(title="Phase Mapping", border_style="blue")
    table.add_column("Workflow", style="bold")
    table.add_column("Phase", justify="right")
    table.add_column("Label")
    for workflow_id, number in phases.items():
        table.add_row(workflow_id, str(number), phase_label(number))
    console.print(table)
    console.print("[dim]Any other workflow runs unscoped (phase 0).[/dim]")


def print_completion(report: CompletionReport) -> None:
    """Display the result of complete_work."""
    record = report.record
    outcome_styles = {
        "committed": "green",
        "no_changes": "blue",
        "uncommitted": "yellow",
        "cancelled": "dim",
    }
    style = outcome_styles.get(report.outcome.value, "white")

    table = Table(border_style=style)
    table.add_column("Step", style="bold")
    table.add_column("Result")
    table.add_row("Outcome", f"[{style}]{report.outcome.value}[/{style}]")
    table.add_row("Feature branch", record.feature_branch)
    table.add_row("Changed files", str(len(report.changed_files)))
    if report.commit_id:
        table.add_row("Commit", f"{report.commit_id[:10]} {report.commit_message or ''}")
    if report.pushed:
        table.add_row("Push", "[green]pushed[/green]")
    elif report.push_warning:
        table.add_row("Push", f"[yellow]failed[/yellow] {report.push_warning}")
    if report.phase_branch:
        switched = "[green]switched[/green]" if report.phase_switched else "[dim]not switched[/dim]"
        table.add_row("Phase branch", f"{report.phase_branch} ({switched})")
    if report.final_branch:
        table.add_row("Now on", report.final_branch)
    console.print(Panel(table, title=f"Completed {record.workflow_id}", border_style=style))

    review = report.review
    if review is not None:
        if review.status.value == "offered" and review.url:
            console.print(f"[bold]Open review request:[/bold] {review.url}")
        elif review.status.value == "remote_unknown":
            console.print(
                "[dim]No recognized remote. Open a review request manually:[/dim]\n"
                f"  from: {review.from_branch}\n"
                f"  into: {review.to_branch}"
            )

    for warning in report.warnings:
        print_warning(warning)


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_notice(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]{message}[/bold green]")
