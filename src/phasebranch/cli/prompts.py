"""Interactive prompts: yes/no confirmations at the orchestrator's decision points."""

from __future__ import annotations

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.formatted_text import HTML
from rich.console import Console

console = Console()


def confirm_action(message: str, default: bool = True) -> bool:
    """Ask user for a yes/no confirmation."""
    suffix = "[Y/n]" if default else "[y/N]"
    console.print(f"{message} {suffix}")
    choice = pt_prompt(HTML("<b>> </b>")).strip().lower()
    if not choice:
        return default
    return choice in ("y", "yes")


def assume_yes(message: str, default: bool = True) -> bool:
    """Non-interactive confirmation used with ``--yes``."""
    console.print(f"[dim]{message} -> yes[/dim]")
    return True


def use_defaults(message: str, default: bool = True) -> bool:
    """Confirmation for non-interactive callers: take each prompt's default."""
    answer = "yes" if default else "no"
    console.print(f"[dim]{message} -> {answer} (non-interactive)[/dim]")
    return default
