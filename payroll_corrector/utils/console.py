import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

_console = Console()
_error_console = Console(stderr=True)


def use_consoles(console: Console, error_console: Optional[Console] = None) -> None:
    """Redirect output, e.g. to a recording console in tests."""
    global _console, _error_console
    _console = console
    _error_console = error_console or console


def print_step(title: str) -> None:
    """Print a step header."""
    _console.rule(f"[bold blue]{title}[/]")


def print_success(message: str) -> None:
    _console.print(f"[bold green]SUCCESS:[/] {message}")


def print_warning(message: str) -> None:
    _console.print(f"[bold yellow]WARNING:[/] {message}")


def print_error(message: str, exit_code: Optional[int] = None) -> None:
    """Print an error message and optionally exit."""
    _error_console.print(f"[bold red]ERROR:[/] {message}")
    if exit_code is not None:
        sys.exit(exit_code)


def print_table(title: str, columns: List[str], rows: List[List[str]], empty_message: str = "(No data)") -> None:
    if not rows:
        _console.print(f"[bold]{title}[/]: {empty_message}")
        return
    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*[str(value) for value in row])
    _console.print(table)


def print_counts(title: str, counts: dict, label: str = "Changes") -> None:
    """Render a name -> count mapping as a two-column table."""
    print_table(title, ["Name", label], [[name, str(count)] for name, count in counts.items()])
