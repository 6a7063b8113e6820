"""Rich-backed status output for the CLI."""

from typing import Any

from rich.console import Console as RichConsole
from rich.table import Table


class Console:
    """Status lines and tables for CLI commands.

    With ``stderr=True`` every status line goes to stderr, leaving stdout
    free for streamed attachment bytes. Errors always go to stderr.
    """

    def __init__(self, *, stderr: bool = False) -> None:
        self._out = RichConsole(stderr=stderr)
        self._err = RichConsole(stderr=True)

    def success(self, message: str) -> None:
        self._out.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._out.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        self._err.print(f"[red]✗[/red] {message}")
        if hint:
            self._err.print(f"  [dim]{hint}[/dim]")

    def table(self, rows: list[dict[str, Any]], columns: list[tuple[str, str]], *, title: str) -> None:
        """Print ``rows`` as a numbered table.

        Args:
            rows: Row data keyed by column key.
            columns: (key, header) pairs in display order.
            title: Table title.
        """
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("#", style="dim", width=3)
        for _, header in columns:
            table.add_column(header)
        for position, row in enumerate(rows, 1):
            table.add_row(str(position), *(str(row.get(key, "")) for key, _ in columns))
        self._out.print(table)


_default: Console | None = None


def get_console() -> Console:
    """Get the shared stdout console."""
    global _default
    if _default is None:
        _default = Console()
    return _default
