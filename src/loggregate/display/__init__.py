"""Display sinks for scan snapshots."""

from loggregate.display.console import ConsoleDisplay
from loggregate.display.rich_display import RichDisplay

__all__ = ["ConsoleDisplay", "RichDisplay"]
