"""
Logging configuration for loggregate.

Provides rich-formatted logging and a filter policy for terminal noise.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Terminal capability chatter that is not actionable for the user.
NOISE_MARKERS = (
    "Error on xterm",
    "Setulc",
    "setulc",
    "terminal capability",
    "escape sequence",
)


class TerminalNoiseFilter(logging.Filter):
    """Drop records whose message matches a terminal-noise marker."""

    def __init__(self, markers: tuple[str, ...] = NOISE_MARKERS) -> None:
        super().__init__()
        self.markers = markers

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(marker in message for marker in self.markers)


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure logging with a rich handler for colored output.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to
        console: Console to log through (share it with a live display so
            log lines render above it)

    Returns:
        Configured logger instance for loggregate
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    noise = TerminalNoiseFilter()
    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    rich_handler.addFilter(noise)
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        file_handler.addFilter(noise)
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    # Quiet chatty HTTP client loggers unless debugging
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    logger = logging.getLogger("loggregate")
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'loggregate.clients'); None returns the root loggregate logger
    """
    if name is None:
        return logging.getLogger("loggregate")
    if not name.startswith("loggregate"):
        name = f"loggregate.{name}"
    return logging.getLogger(name)
