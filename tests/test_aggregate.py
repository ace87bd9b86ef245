import math
from decimal import Decimal
from fractions import Fraction

import pytest

from loggregate.core.aggregate import AggregateEngine


def test_two_values_statistics() -> None:
    engine = AggregateEngine()
    for v in (100, 300):
        engine.observe_match("Transfer")
        engine.update(v)

    snap = engine.snapshot()
    assert snap.count == 2
    assert snap.samples == 2
    assert snap.sum == 400
    assert snap.min == 100
    assert snap.max == 300
    assert snap.mean == 200
    assert snap.variance == 10_000
    assert snap.std_dev == 100


def test_empty_snapshot_has_no_derived_stats() -> None:
    snap = AggregateEngine().snapshot()
    assert snap.count == 0
    assert snap.samples == 0
    assert snap.min is None and snap.max is None
    assert snap.mean is None and snap.variance is None and snap.std_dev is None
    assert all(v is None for k, v in snap.human().items() if k != "Sum")
    assert snap.human()["Sum"] == Decimal("0.00")


def test_first_value_sets_min_and_max() -> None:
    engine = AggregateEngine()
    engine.update(-5)
    assert engine.min == -5
    assert engine.max == -5
    engine.update(7)
    assert (engine.min, engine.max) == (-5, 7)


def test_values_wider_than_64_bits_are_exact() -> None:
    big = [2**200 + 1, 2**255 - 19, 3 * 10**70, 12345678901234567890123]
    engine = AggregateEngine()
    for v in big:
        engine.update(v)

    n = len(big)
    mean = Fraction(sum(big), n)
    textbook = sum((Fraction(v) - mean) ** 2 for v in big) / n
    snap = engine.snapshot()
    assert snap.sum == sum(big)
    assert snap.sum_of_squares == sum(v * v for v in big)
    assert snap.mean == mean
    assert snap.variance == textbook
    assert snap.std_dev == math.isqrt(math.floor(textbook))


def test_many_samples_do_not_drift() -> None:
    engine = AggregateEngine(decimals=18, display_precision=6)
    values = [(i * 7919) % 10_007 * 10**18 + i for i in range(12_000)]
    assert len(values) >= 10_000 and max(values) > 2**64
    for v in values:
        engine.update(v)

    mean = Fraction(sum(values), len(values))
    textbook = sum((Fraction(v) - mean) ** 2 for v in values) / len(values)
    assert engine.snapshot().variance == textbook


def test_snapshot_is_pure() -> None:
    engine = AggregateEngine()
    engine.observe_match("Transfer")
    engine.update(42)
    first = engine.snapshot()
    second = engine.snapshot()
    assert first == second
    assert engine.samples == 1


def test_snapshot_is_detached_from_engine_state() -> None:
    engine = AggregateEngine()
    engine.observe_match("Transfer")
    snap = engine.snapshot()
    engine.observe_match("Transfer")
    assert snap.per_event_counts == {"Transfer": 1}


def test_count_invariant_holds() -> None:
    engine = AggregateEngine()
    engine.observe_match("Transfer")
    engine.observe_match("Approval")
    engine.observe_decode_error()
    engine.observe_unknown()
    assert engine.count == 3
    assert engine.unknown_count == 1
    assert engine.decode_error_count == 1
    assert engine.consistent()


def test_unknown_leaves_numeric_state_untouched() -> None:
    engine = AggregateEngine()
    engine.update(10)
    before = engine.snapshot()
    engine.observe_unknown()
    after = engine.snapshot()
    assert after.unknown_count == before.unknown_count + 1
    assert (after.sum, after.min, after.max, after.samples) == (before.sum, before.min, before.max, before.samples)


@pytest.mark.parametrize("bad", [1.5, "10", True, None])
def test_update_rejects_non_integers(bad: object) -> None:
    with pytest.raises(TypeError):
        AggregateEngine().update(bad)  # type: ignore[arg-type]


def test_scaling_happens_once_at_render_time() -> None:
    engine = AggregateEngine(decimals=18, display_precision=2)
    engine.update(1_500_000_000_000_000_000)  # 1.5 tokens
    engine.update(2_000_000_000_000_000_000)
    human = engine.snapshot().human()
    assert human["Sum"] == Decimal("3.50")
    assert human["Min"] == Decimal("1.50")
    assert human["Max"] == Decimal("2.00")
    assert human["Avg"] == Decimal("1.75")
    # variance is in squared units: 0.0625 truncated to 2 digits
    assert human["Variance"] == Decimal("0.06")


def test_negative_scaling_truncates_toward_zero() -> None:
    engine = AggregateEngine(decimals=1, display_precision=0)
    engine.update(-15)
    assert engine.snapshot().human()["Min"] == Decimal("-1")


def test_invalid_decimals_rejected() -> None:
    with pytest.raises(ValueError):
        AggregateEngine(decimals=-1)
