"""Live terminal dashboard built on rich.

Layout
------
    ┌──────────── header (title / status) ────────────┐
    │ progress bar                                     │
    ├──────── stats ────────┬──── aggregate stats ─────┤
    │ block, %, events, ... │ count, sum, min, max ... │
    ├──────────────────── event log ───────────────────┤
    │ last 30 lines                                    │
    └──────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections import deque

from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from loggregate.core.models import DisplaySnapshot, ProgressInfo
from loggregate.display.formatting import aggregate_rows, format_number, stats_rows

ACCENT = "deep_sky_blue1"
LOG_BUFFER_LINES = 30


def _grid(rows: list[tuple[str, str]]) -> Table:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style=f"bold {ACCENT}")
    grid.add_column(justify="right")
    for label, value in rows:
        grid.add_row(label, value)
    return grid


class RichDisplay:
    """`IDisplaySink` rendering into a rich `Live` layout.

    Use as a context manager; the sink only ever sees value objects.
    """

    def __init__(
        self,
        title: str,
        *,
        parameter_label: str = "",
        console: Console | None = None,
        refresh_per_second: float = 4,
    ) -> None:
        self.title = title
        self.parameter_label = parameter_label
        self.console = console or Console()
        self._log: deque[Text] = deque(maxlen=LOG_BUFFER_LINES)
        self._status = "Initializing Event Scanner..."

        self._progress = Progress(
            SpinnerColumn(),
            BarColumn(bar_width=None),
            TextColumn("{task.percentage:>6.2f}%"),
            TextColumn("•"),
            TimeElapsedColumn(),
            TextColumn(" • {task.description}"),
            expand=True,
        )
        self._task = self._progress.add_task("Block: 0/0", total=1, completed=0)

        self._layout = Layout()
        self._layout.split_column(
            Layout(name="header", size=3),
            Layout(name="progress", size=3),
            Layout(name="body", size=14),
            Layout(name="log"),
        )
        self._layout["body"].split_row(Layout(name="stats"), Layout(name="aggregate"))
        self._layout["progress"].update(Panel(self._progress, title="Scanning Progress", border_style=ACCENT))
        self._layout["stats"].update(Panel(Text("waiting for data"), title="Stats", border_style=ACCENT))
        self._layout["aggregate"].update(
            Panel(Text("waiting for data"), title=self._aggregate_title(), border_style=ACCENT)
        )
        self._render_header()
        self._render_log()

        self._live = Live(self._layout, console=self.console, refresh_per_second=refresh_per_second, screen=False)

    def __enter__(self) -> RichDisplay:
        self._live.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self._live.stop()

    # ---- IDisplaySink ----

    def render_progress(self, progress: ProgressInfo) -> None:
        total = max(progress.upper_bound, 1)
        self._progress.update(
            self._task,
            total=total,
            completed=min(progress.cursor_position, total),
            description=f"Block: {format_number(progress.cursor_position)}/{format_number(progress.upper_bound)}",
        )
        self._layout["stats"].update(
            Panel(_grid(stats_rows(progress, progress.total_events)), title="Stats", border_style=ACCENT)
        )

    def render_snapshot(self, snapshot: DisplaySnapshot) -> None:
        self._layout["aggregate"].update(
            Panel(_grid(aggregate_rows(snapshot.aggregate)), title=self._aggregate_title(), border_style=ACCENT)
        )
        if snapshot.final:
            self._status = "Scan failed" if snapshot.failed else "Scan complete"
            self._render_header()

    def append_log_line(self, text: str) -> None:
        style = "green" if text.startswith("✓") else ("red" if text.startswith("Error") else "")
        self._log.append(Text(text, style=style))
        self._render_log()

    # ---- helpers ----

    def _aggregate_title(self) -> str:
        label = f" - {self.parameter_label}" if self.parameter_label else ""
        return f"Aggregate stats{label}"

    def _render_header(self) -> None:
        header = Text.assemble((self.title, f"bold {ACCENT}"), "  ", (self._status, "yellow"))
        self._layout["header"].update(Panel(header, border_style=ACCENT))

    def _render_log(self) -> None:
        self._layout["log"].update(Panel(Group(*self._log), title="Event Log", border_style=ACCENT))
