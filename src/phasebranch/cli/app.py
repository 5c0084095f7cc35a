"""Typer CLI commands: begin, complete, status, phases, config, check, abandon."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer

from phasebranch.cli.display import (
    console,
    get_version_string,
    print_error,
    print_notice,
    print_success,
)

app = typer.Typer(
    name="phasebranch",
    help="Phase-aware branch orchestration for workflow runs",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(get_version_string())
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """Phase-aware branch orchestration for workflow runs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _pick_confirm(yes: bool):
    from phasebranch.cli.prompts import assume_yes, confirm_action, use_defaults

    if yes:
        return assume_yes
    if not sys.stdin.isatty():
        return use_defaults
    return confirm_action


def _load_settings(path: Path):
    """Layered settings for *path*; exits 1 with a message on bad config."""
    import yaml
    from pydantic import ValidationError

    from phasebranch.config.loader import load_settings

    try:
        settings = load_settings(project_path=path)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)
    settings.project.path = path.resolve()
    return settings


def _build_orchestrator(path: Path, yes: bool = False):
    """Load settings for *path* and wire an orchestrator; exits 1 on bad config."""
    from phasebranch.core.orchestrator import BranchOrchestrator

    settings = _load_settings(path)
    try:
        return BranchOrchestrator.from_settings(settings, confirm=_pick_confirm(yes))
    except (ValueError, OSError) as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)


def _report_error(e: Exception) -> None:
    """Print *e*; reported-only conditions exit 0 so hook callers carry on."""
    from phasebranch.core.errors import OrchestratorError

    if isinstance(e, OrchestratorError) and e.reported_only:
        print_notice(str(e))
        raise typer.Exit(0)
    print_error(str(e))
    raise typer.Exit(1)


@app.command()
def begin(
    workflow_id: str = typer.Argument(..., help="Workflow identifier, e.g. 'dev-story'"),
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every prompt"),
    as_json: bool = typer.Option(False, "--json", help="Print the session as JSON"),
) -> None:
    """Pre-workflow hook: check out the feature branch for WORKFLOW_ID."""
    from phasebranch.cli.display import print_session_started
    from phasebranch.core.errors import OrchestratorError

    orchestrator = _build_orchestrator(path, yes)
    try:
        info = orchestrator.begin_work(workflow_id)
    except (OrchestratorError, ValueError) as e:
        _report_error(e)
        return

    if as_json:
        typer.echo(info.model_dump_json(indent=2))
    else:
        print_session_started(info)


@app.command()
def complete(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every prompt"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Post-workflow hook: commit, push, offer review and switch to the phase branch."""
    from phasebranch.cli.display import print_completion
    from phasebranch.core.errors import OrchestratorError

    orchestrator = _build_orchestrator(path, yes)
    try:
        report = orchestrator.complete_work()
    except OrchestratorError as e:
        _report_error(e)
        return

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        print_completion(report)


@app.command()
def status(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
) -> None:
    """Show the active session and the feature branches recorded so far."""
    from phasebranch.cli.display import print_ledger, print_session
    from phasebranch.core.errors import CorruptSession

    orchestrator = _build_orchestrator(path)
    try:
        record = orchestrator.describe()
    except CorruptSession as e:
        print_error(str(e))
        raise typer.Exit(1)

    if record is None:
        console.print("[dim]No active session.[/dim]")
    else:
        print_session(record)
    console.print()
    print_ledger(orchestrator.store.list_ledger())


@app.command()
def phases(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
) -> None:
    """List the workflow-to-phase mapping in effect."""
    from phasebranch.cli.display import print_phase_table

    orchestrator = _build_orchestrator(path)
    print_phase_table(orchestrator.phases)


@app.command()
def config(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
) -> None:
    """Show current configuration."""
    from phasebranch.config.loader import find_config_file

    settings = _load_settings(path)

    config_file = find_config_file(path)
    if config_file:
        console.print(f"Config file: [cyan]{config_file}[/cyan]")
    else:
        console.print("[dim]No config file found (using defaults)[/dim]")

    g = settings.git
    console.print("\n[bold]Git:[/bold]")
    console.print(f"  Enabled: {g.enabled}")
    console.print(f"  Auto commit: {g.auto_commit}")
    console.print(f"  Confirm before commit: {g.confirm_before_commit}")
    console.print(f"  Auto push: {g.auto_push}")
    console.print(f"  Offer review: {g.offer_review}")
    console.print(f"  Auto phase switch: {g.auto_phase_switch}")
    console.print(f"  Warn on dirty workdir: {g.warn_dirty_workdir}")
    console.print(f"  Commit template: {g.commit_template}", markup=False)
    console.print(f"  User name: {g.user_name or '[dim](default)[/dim]'}")
    console.print(f"  Remote: {g.remote_name}")
    console.print(f"  Branch separator: {g.branch_separator!r}")

    console.print("\n[bold]Project:[/bold]")
    console.print(f"  Path: {settings.project.path}")
    console.print(f"  State dir: {settings.project.state_dir or '[dim](inside .git)[/dim]'}")
    console.print(f"  Phase map: {settings.project.phase_map_file or '[dim](built-in)[/dim]'}")


@app.command()
def check(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
) -> None:
    """Self-test: verify git, repository, config and remote are ready."""
    from phasebranch.cli.display import print_phase_table
    from phasebranch.core.checks import CheckStatus, all_passed, run_checks
    from phasebranch.core.phases import PhaseTable

    settings = _load_settings(path)
    results = run_checks(settings)

    marks = {
        CheckStatus.PASS: "[green]PASS[/green]",
        CheckStatus.WARN: "[yellow]WARN[/yellow]",
        CheckStatus.FAIL: "[red]FAIL[/red]",
    }
    for r in results:
        detail = f" [dim]{r.detail}[/dim]" if r.detail else ""
        console.print(f"  {marks[r.status]}  {r.name}{detail}")

    console.print()
    try:
        table = PhaseTable()
        if settings.project.phase_map_file:
            table = PhaseTable.from_yaml(Path(settings.project.phase_map_file))
        print_phase_table(table)
    except (ValueError, OSError) as e:
        print_error(f"Phase map could not be loaded: {e}")
        raise typer.Exit(1)

    if not all_passed(results):
        print_error("Integration check failed.")
        raise typer.Exit(1)
    print_success("Integration check passed.")


@app.command()
def abandon(
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help="Project path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation"),
) -> None:
    """Close the active session without committing or switching branches."""
    from phasebranch.core.errors import CorruptSession

    orchestrator = _build_orchestrator(path)
    confirm = _pick_confirm(yes)
    try:
        record = orchestrator.describe()
    except CorruptSession as e:
        print_error(str(e))
        if confirm("Delete the unreadable session file?", False):
            orchestrator.store.clear()
            print_success("Removed the session file.")
            return
        raise typer.Exit(1)
    if record is None:
        print_notice("No active session.")
        return

    if not confirm(
        f"Abandon session for '{record.workflow_id}' on '{record.feature_branch}'? "
        "Uncommitted work stays in the working tree.",
        False,
    ):
        print_notice("Kept the session.")
        return

    orchestrator.abandon_session()
    print_success(f"Abandoned session {record.session_id}.")
