"""Core data models and value objects.

This module defines:
- `EventLog`: one raw log record as produced by a feed.
- `LogBatch` / `END_OF_STREAM`: what a feed returns per request.
- `AggregateSnapshot`: frozen copy of the running statistics.
- `DisplaySnapshot` / `ProgressInfo`: values handed to the display sink.
- `ScanState` / `ScanResult`: controller lifecycle and outcome.

Design notes
------------
- All on-chain quantities are Python ints (arbitrary precision).
- Mean and variance are exact `Fraction`s; decimal scaling is applied once,
  when a human-facing number is requested via `AggregateSnapshot.scaled`.
- Nothing in here holds a reference to engine-owned mutable state.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Union


# === Feed records ===


@dataclass(slots=True, frozen=True)
class EventLog:
    """Raw log as returned by a feed, minimally normalized."""

    topics: tuple[str, ...]  # lowercased 0x...
    data_hex: str  # "0x..."
    block_number: int
    tx_hash: str  # lowercased 0x...
    log_index: int
    address: str = ""  # lowercased 0x..., empty when the feed does not select it


@dataclass(slots=True, frozen=True)
class LogBatch:
    """One page of logs plus the position to request next."""

    logs: list[EventLog]
    next_position: int


class EndOfStream(enum.Enum):
    """Sentinel type returned by a feed once there is no more data."""

    END_OF_STREAM = "end_of_stream"


END_OF_STREAM = EndOfStream.END_OF_STREAM

FeedResponse = Union[LogBatch, EndOfStream]


# === Aggregates ===


@dataclass(frozen=True)
class AggregateSnapshot:
    """Read-only copy of the aggregate state with derived statistics.

    `count` is the number of records observed (matched or not),
    `samples` the number of successfully decoded values the numeric
    statistics are computed over.
    """

    count: int
    unknown_count: int
    decode_error_count: int
    per_event_counts: dict[str, int]
    samples: int
    sum: int
    sum_of_squares: int
    min: int | None
    max: int | None
    mean: Fraction | None
    variance: Fraction | None
    std_dev: int | None
    decimals: int = 0
    display_precision: int = 2

    def scaled(self, value: int | Fraction | None, power: int = 1) -> Decimal | None:
        """Return `value / 10**(decimals * power)` truncated to `display_precision` digits.

        `power=2` is used for variance (squared units).
        """
        if value is None:
            return None
        q = Fraction(value) * 10**self.display_precision / 10 ** (self.decimals * power)
        # built from the digit tuple so no context precision is applied
        sign, digits, _ = Decimal(math.trunc(q)).as_tuple()
        return Decimal((sign, digits, -self.display_precision))

    def human(self) -> dict[str, Decimal | None]:
        """Scaled statistics keyed by display label."""
        return {
            "Sum": self.scaled(self.sum),
            "Min": self.scaled(self.min),
            "Max": self.scaled(self.max),
            "Avg": self.scaled(self.mean),
            "Variance": self.scaled(self.variance, power=2),
            "StdDev": self.scaled(self.std_dev),
        }


# === Display values ===


@dataclass(frozen=True)
class ProgressInfo:
    """Light-weight per-batch progress update."""

    cursor_position: int
    upper_bound: int
    total_events: int
    elapsed_s: float
    throughput: float

    @property
    def progress(self) -> float:
        return progress_fraction(self.cursor_position, self.upper_bound)


@dataclass(frozen=True)
class DisplaySnapshot:
    """Full snapshot handed to the display sink."""

    cursor_position: int
    upper_bound: int
    aggregate: AggregateSnapshot
    elapsed_s: float
    throughput: float
    final: bool = False
    failed: bool = False  # final snapshot of a scan that ended in ERROR

    @property
    def progress(self) -> float:
        return progress_fraction(self.cursor_position, self.upper_bound)


def progress_fraction(position: int, upper_bound: int) -> float:
    if upper_bound <= 0:
        return 1.0
    return min(position / upper_bound, 1.0)


# === Controller lifecycle ===


class ScanState(enum.Enum):
    INIT = "init"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


@dataclass(kw_only=True)
class ScanResult:
    """Outcome of one scan; partial results are valid on ERROR and on cancellation."""

    state: ScanState
    snapshot: DisplaySnapshot | None
    last_position: int
    cancelled: bool = False
    error: str | None = None
    batches: int = 0
