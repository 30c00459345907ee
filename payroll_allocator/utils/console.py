from typing import List, Optional

from rich.console import Console
from rich.table import Table

_console = Console()


def print_step(title: str) -> None:
    """Print a step header."""
    _console.rule(f"[bold blue]{title}[/]")


def print_success(message: str) -> None:
    """Print a success message."""
    _console.print(f"[bold green]SUCCESS:[/] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    _console.print(f"[bold yellow]WARNING:[/] {message}")


def print_table(title: str, columns: List[str], rows: List[List[str]], numeric: Optional[List[str]] = None) -> None:
    """Print a table; columns listed in `numeric` are right-aligned."""
    numeric = numeric or []
    table = Table(title=title)
    for col in columns:
        table.add_column(col, justify="right" if col in numeric else "left")
    for row in rows:
        table.add_row(*row)
    _console.print(table)
