"""Throttle that turns per-batch cursor movement into occasional display updates."""

from __future__ import annotations

DEFAULT_SNAPSHOT_INTERVAL = 10_000
DEFAULT_LOG_INTERVAL = 50_000


class UpdateThrottle:
    """Two independent watermarks keyed on cursor position deltas.

    `should_snapshot` / `should_log` return True once the cursor has moved
    at least the configured interval past the last emission and move the
    watermark to the current position. `force` is used once at stream end.
    """

    def __init__(
        self,
        *,
        snapshot_interval: int = DEFAULT_SNAPSHOT_INTERVAL,
        log_interval: int = DEFAULT_LOG_INTERVAL,
        start: int = 0,
    ) -> None:
        if snapshot_interval <= 0 or log_interval <= 0:
            raise ValueError("throttle intervals must be positive")
        self.snapshot_interval = snapshot_interval
        self.log_interval = log_interval
        self.last_snapshot_position = start
        self.last_log_position = start

    def should_snapshot(self, position: int) -> bool:
        if position - self.last_snapshot_position >= self.snapshot_interval:
            self.last_snapshot_position = position
            return True
        return False

    def should_log(self, position: int) -> bool:
        if position - self.last_log_position >= self.log_interval:
            self.last_log_position = position
            return True
        return False

    def force(self, position: int) -> tuple[bool, bool]:
        """Open both gates unconditionally (terminal emission)."""
        self.last_snapshot_position = position
        self.last_log_position = position
        return True, True
