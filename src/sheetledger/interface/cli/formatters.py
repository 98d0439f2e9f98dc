"""
Rich output for CLI commands.
"""

from typing import Any, Iterable

from rich.console import Console
from rich.table import Table

console = Console()


def error(message: Any) -> None:
    console.print(f"[red]❌ Error:[/red] {message}")


def success(message: str) -> None:
    console.print(f"[green]✅ {message}[/green]")


def warning(message: str) -> None:
    console.print(f"[yellow]⚠️  {message}[/yellow]")


def collection_table(counts: dict[str, int], title: str) -> Table:
    """Record count per collection."""
    table = Table(title=title)
    table.add_column("Collection", style="cyan")
    table.add_column("Records", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table


def files_table(files: Iterable[Any]) -> Table:
    table = Table(title="Remote workbooks")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("SHA", style="dim")
    for remote in files:
        table.add_row(remote.name, f"{remote.size:,}", remote.sha[:7])
    return table


def validation_report(problems: dict[str, list[str]]) -> None:
    if not problems:
        success("All records passed validation")
        return
    console.print(f"[red]❌ {len(problems)} invalid record(s):[/red]")
    for key, errors in problems.items():
        console.print(f"  [bold]{key}[/bold]")
        for message in errors:
            console.print(f"    • {message}")
