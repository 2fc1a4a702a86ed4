"""
Terminal UI utilities using Rich.

Provides:
- Colored console output
- Progress bars
- Diff display
- Run / purge summaries
- Confirmation prompts
"""

import difflib
import os
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskProgressColumn, TextColumn
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

# Global console instance
console = Console(no_color=True, highlight=False)


def configure(colors: bool = False) -> None:
    """Rebuild the global console with or without colors."""
    global console
    console = Console(no_color=not colors, highlight=False)


def _relative(path) -> str:
    try:
        return os.path.relpath(str(path))
    except ValueError:
        return str(path)


def print_header(text: str) -> None:
    """Print a header"""
    console.print(f"\n[bold blue]{text}[/bold blue]\n")


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[bold green]{message}[/bold green]")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_error(message: str) -> None:
    """Print error message"""
    console.print(f"[bold red]{message}[/bold red]")


def show_diff(filepath: str, old: str, new: str) -> None:
    """
    Display a colored unified diff of a rewritten file.

    Args:
        filepath: File path shown in the headers
        old: Original content
        new: Rewritten content
    """
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)

    diff = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=f"a/{filepath}",
        tofile=f"b/{filepath}",
        lineterm="",
    )

    diff_output = Text()

    for line in diff:
        line = line.rstrip("\r\n")

        if line.startswith("---") or line.startswith("+++"):
            diff_output.append(line + "\n", style="bold white")
        elif line.startswith("@@"):
            diff_output.append(line + "\n", style="bold cyan")
        elif line.startswith("-"):
            diff_output.append(line + "\n", style="red")
        elif line.startswith("+"):
            diff_output.append(line + "\n", style="green")
        else:
            diff_output.append(line + "\n", style="dim")

    if diff_output:
        panel = Panel(
            diff_output,
            title=f"File changed: {filepath}",
            border_style="cyan",
            expand=False,
        )
        console.print(panel)
    else:
        console.print("[dim]No changes[/dim]")


def show_summary(summary) -> None:
    """
    Display a run summary as a table.

    Args:
        summary: RunSummary instance
    """
    table = Table(title="Summary")

    table.add_column("Attribute", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Total source files processed", str(summary.modules_processed))
    table.add_row("Total import declarations updated", str(summary.statements_rewritten))
    table.add_row("Total import symbols updated", str(summary.bindings_updated))
    if not summary.dry_run:
        table.add_row("Files written", str(len(summary.written)))
    if summary.failed:
        table.add_row("Failed writes", str(len(summary.failed)))
    if summary.cancelled:
        table.add_row("Status", "Cancelled")

    console.print(table)


def show_failures(paths: list) -> None:
    """List files that could not be written."""
    for path in paths:
        print_error(f"Failed to write: {_relative(path)}")


def show_purge_result(directory: Path, result) -> None:
    """
    Display the partition found by a purge scan.

    Args:
        directory: Scanned directory
        result: PurgeResult instance
    """
    print_header(f"Scanning directory: {_relative(directory)}")
    console.print(f"[green]Found {len(result.pure)} pure barrel file(s).[/green]")
    console.print(
        f"[yellow]Found {len(result.impure)} impure barrel file(s) (containing additional code).[/yellow]"
    )

    if result.dry_run:
        console.print("[blue]Dry run: The following pure barrel files would be deleted:[/blue]")
        for path in result.pure:
            console.print(_relative(path))
        for path in result.impure:
            console.print(f"[red]Warning: Cannot delete impure barrel file: {_relative(path)}[/red]")
        return

    for path in result.deleted:
        console.print(f"[green]Deleted: {_relative(path)}[/green]")
    for path in result.failed:
        console.print(f"[red]Could not delete: {_relative(path)}[/red]")
    for path in result.impure:
        console.print(f"[red]Warning: Skipped impure barrel file: {_relative(path)}[/red]")


def confirm_action(message: str, default: bool = False) -> bool:
    """
    Ask user to confirm an action.

    Args:
        message: Confirmation message
        default: Default value if user just presses enter

    Returns:
        True if confirmed
    """
    try:
        console.print(f"\n[bold yellow]{message}[/bold yellow]")
        response = Prompt.ask(
            "Your choice",
            choices=["y", "n"],
            default="y" if default else "n",
            show_choices=True,
            console=console,
        ).lower()
        return response == "y"

    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Action cancelled[/yellow]")
        return False


def create_progress() -> Progress:
    """
    Create a progress bar.

    Returns:
        Progress context manager
    """
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=False,
    )
