"""Plain console display for non-interactive terminals and pipes."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from loggregate.core.models import DisplaySnapshot, ProgressInfo
from loggregate.display.formatting import aggregate_rows, stats_rows, summary_line


class ConsoleDisplay:
    """Prints log lines and throttled one-line summaries; a full table at the end."""

    def __init__(self, title: str, *, console: Console | None = None) -> None:
        self.title = title
        self.console = console or Console()

    def __enter__(self) -> ConsoleDisplay:
        self.console.rule(f"[bold]{self.title}[/]")
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def render_progress(self, progress: ProgressInfo) -> None:
        # per-batch progress is too chatty for a scrolling console
        return None

    def append_log_line(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)

    def render_snapshot(self, snapshot: DisplaySnapshot) -> None:
        if not snapshot.final:
            self.console.print(summary_line(snapshot), markup=False, highlight=False)
            return
        table = Table(title=self.title, show_header=False)
        table.add_column("stat", style="cyan")
        table.add_column("value", justify="right")
        for label, value in stats_rows(snapshot, snapshot.aggregate.count):
            table.add_row(label, value)
        table.add_section()
        for label, value in aggregate_rows(snapshot.aggregate):
            table.add_row(label, value)
        self.console.print(table)
