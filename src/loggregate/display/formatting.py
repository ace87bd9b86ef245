"""Text formatting shared by the display sinks."""

from __future__ import annotations

from decimal import Decimal

from loggregate.core.models import AggregateSnapshot, DisplaySnapshot, ProgressInfo

UNSET = "-"


def format_number(n: int | float) -> str:
    """Thousands separators: 1234567 → '1,234,567'."""
    return f"{n:,}"


def format_amount(value: Decimal | None, precision: int = 2) -> str:
    """Fixed-point with thousands separators, never scientific notation."""
    if value is None:
        return UNSET
    return f"{value:,.{precision}f}"


def aggregate_rows(agg: AggregateSnapshot) -> list[tuple[str, str]]:
    """(label, value) rows for the aggregate panel, scaled for humans."""
    rows = [
        ("Count", format_number(agg.count)),
        ("Decoded", format_number(agg.samples)),
        ("Unknown", format_number(agg.unknown_count)),
        ("Decode errors", format_number(agg.decode_error_count)),
    ]
    p = agg.display_precision
    rows.extend((label, format_amount(value, p)) for label, value in agg.human().items())
    rows.extend((f"# {name}", format_number(n)) for name, n in sorted(agg.per_event_counts.items()))
    return rows


def stats_rows(info: ProgressInfo | DisplaySnapshot, total_events: int) -> list[tuple[str, str]]:
    return [
        ("Current Block", format_number(info.cursor_position)),
        ("Progress", f"{info.progress * 100:.2f}%"),
        ("Total Events", format_number(total_events)),
        ("Elapsed Time", f"{info.elapsed_s:.1f}s"),
        ("Speed", f"{info.throughput:,.1f} events/s"),
    ]


def summary_line(snapshot: DisplaySnapshot) -> str:
    agg = snapshot.aggregate
    human = agg.human()
    p = agg.display_precision
    return (
        f"block {format_number(snapshot.cursor_position)}/{format_number(snapshot.upper_bound)} "
        f"({snapshot.progress * 100:.2f}%) | count={format_number(agg.count)} "
        f"sum={format_amount(human['Sum'], p)} avg={format_amount(human['Avg'], p)} "
        f"min={format_amount(human['Min'], p)} max={format_amount(human['Max'], p)} "
        f"std={format_amount(human['StdDev'], p)}"
    )
