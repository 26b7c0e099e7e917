"""Terminal reporter with rich output formatting.

Everything goes to stderr: stdout belongs to the test binary's relayed
output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from shardrun.sharding.group_runner import build_filter_pattern

if TYPE_CHECKING:
    from collections.abc import Sequence

console = Console(stderr=True)

_MAX_PATTERN_LENGTH = 60


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class CLIReporter:
    """Rich terminal output for launcher diagnostics."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_shard_plan(self, groups: Sequence[Sequence[str]]) -> None:
        """Print one row per shard: size, first and last test, filter pattern."""
        table = Table(title="Shard Plan", title_style="bold cyan")
        table.add_column("Shard", justify="right", style="bold")
        table.add_column("Tests", justify="right")
        table.add_column("First")
        table.add_column("Last")
        table.add_column("Filter")

        for index, group in enumerate(groups):
            if not group:
                continue
            table.add_row(
                str(index),
                str(len(group)),
                Text(group[0]),
                Text(group[-1]),
                Text(_truncate(build_filter_pattern(group), _MAX_PATTERN_LENGTH)),
            )

        self.console.print(table)

        total = sum(len(group) for group in groups)
        shard_count = sum(1 for group in groups if group)
        self.console.print(f"\n[bold]{total}[/bold] tests across [bold]{shard_count}[/bold] shards")


reporter = CLIReporter()
