"""Error taxonomy for loggregate.

Only `SetupError` and `FeedError` leave the scan core as failures.
`DecodeFailure` is absorbed per log and only shows up in counters and
diagnostics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from loggregate.core.models import ScanResult


class LoggregateError(Exception):
    """Base exception for all loggregate errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class SetupError(LoggregateError):
    """Fatal error raised before streaming starts."""


class UnknownNetworkError(SetupError):
    """Network name is not in the directory."""


class DecodeFailure(LoggregateError):
    """A matched log whose payload cannot be decoded."""


class FeedError(LoggregateError):
    """Fatal transport or protocol failure from the log feed.

    Carries the last successfully processed cursor position and the partial
    result accumulated so far so that a caller can restart externally.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        last_position: int | None = None,
        partial: ScanResult | None = None,
    ) -> None:
        super().__init__(message, details)
        self.last_position = last_position
        self.partial = partial


class InvalidCursorAdvance(FeedError):
    """The feed reported a position behind the cursor."""


class FeedTimeout(FeedError):
    """No batch arrived within the configured timeout."""
