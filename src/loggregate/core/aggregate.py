"""Running statistics over one stream of decoded integer values.

The engine stores only exact, unscaled totals (`sum`, `sum_of_squares`,
`min`, `max`) as Python ints. Mean, variance and standard deviation are
derived in one pass at snapshot time:

    mean     = sum / n
    variance = sum_of_squares / n - mean**2
    std_dev  = isqrt(floor(variance))

using `fractions.Fraction`, so no truncation is ever fed back into the
running state. Decimal scaling happens only when a snapshot is rendered.
"""

from __future__ import annotations

import math
from collections import defaultdict
from fractions import Fraction

from loggregate.core.models import AggregateSnapshot


class AggregateEngine:
    """Owns the aggregate state of a single scan.

    Parameters
    ----------
    decimals : int
        Token decimals used when rendering human-facing numbers.
    display_precision : int
        Fractional digits kept in rendered numbers.
    """

    def __init__(self, *, decimals: int = 0, display_precision: int = 2) -> None:
        if decimals < 0:
            raise ValueError("decimals must be >= 0")
        if display_precision < 0:
            raise ValueError("display_precision must be >= 0")
        self.decimals = decimals
        self.display_precision = display_precision

        self.count = 0
        self.unknown_count = 0
        self.decode_error_count = 0
        self.per_event_counts: dict[str, int] = defaultdict(int)

        self.samples = 0
        self.sum = 0
        self.sum_of_squares = 0
        self.min: int | None = None
        self.max: int | None = None

    # ---- classification counters ----

    def observe_unknown(self) -> None:
        """Count a log whose topic0 is not registered."""
        self.count += 1
        self.unknown_count += 1

    def observe_match(self, event_name: str) -> None:
        """Count a log that matched a registered event (decoded or not)."""
        self.count += 1
        self.per_event_counts[event_name] += 1

    def observe_decode_error(self) -> None:
        """Count a matched log whose parameter could not be decoded."""
        self.decode_error_count += 1

    # ---- numeric update ----

    def update(self, value: int) -> None:
        """Fold one decoded value into the running totals."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected int, got {type(value).__name__}")
        first = self.samples == 0
        self.samples += 1
        self.sum += value
        self.sum_of_squares += value * value
        if first:
            self.min = value
            self.max = value
        else:
            if value < self.min:
                self.min = value
            if value > self.max:
                self.max = value

    # ---- read side ----

    def snapshot(self) -> AggregateSnapshot:
        """Return a frozen copy with derived statistics. Does not mutate state."""
        mean: Fraction | None = None
        variance: Fraction | None = None
        std_dev: int | None = None
        if self.samples:
            mean = Fraction(self.sum, self.samples)
            variance = Fraction(self.sum_of_squares, self.samples) - mean * mean
            std_dev = math.isqrt(math.floor(variance))

        return AggregateSnapshot(
            count=self.count,
            unknown_count=self.unknown_count,
            decode_error_count=self.decode_error_count,
            per_event_counts=dict(self.per_event_counts),
            samples=self.samples,
            sum=self.sum,
            sum_of_squares=self.sum_of_squares,
            min=self.min,
            max=self.max,
            mean=mean,
            variance=variance,
            std_dev=std_dev,
            decimals=self.decimals,
            display_precision=self.display_precision,
        )

    def consistent(self) -> bool:
        """`count == sum(per_event_counts) + unknown_count`."""
        return self.count == sum(self.per_event_counts.values()) + self.unknown_count
