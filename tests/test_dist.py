import math
from datetime import timedelta

import pytest

from spanmetrics.dist import (
    RESERVOIR_SIZE,
    DurationDist,
    FloatDist,
    IntDist,
    SeriesKey,
)

STAT_FIELDS = [
    "count", "sum", "min", "avg", "max", "rmin",
    "ravg", "r10", "r50", "r90", "rmax", "recent",
]


def collect(dist):
    out = []
    dist.stats(lambda key, field, val: out.append((key, field, val)))
    return out


def test_series_key_with_tag_leaves_original():
    key = SeriesKey("m")
    tagged = key.with_tag("kind", "success")
    assert tagged.tags == (("kind", "success"),)
    assert key.tags == ()
    assert tagged.measurement == "m"


def test_series_key_with_tag_replaces_and_orders():
    key = SeriesKey("m").with_tag("b", "1").with_tag("a", "2").with_tag("b", "3")
    assert key.tags == (("a", "2"), ("b", "3"))
    assert key == SeriesKey("m", (("b", "3"), ("a", "2")))


def test_int_dist_basic_fields():
    d = IntDist(SeriesKey("x"))
    for v in [5, -2, 9, 3]:
        d.insert(v)
    assert d.count == 4
    assert d.low == -2
    assert d.high == 9
    assert d.recent == 3
    assert d.sum == 15
    assert d.query(0) == -2
    assert d.query(1) == 9


def test_int_full_average_truncates_toward_zero():
    d = IntDist(SeriesKey("x"))
    d.insert(-3)
    d.insert(0)
    assert d.full_average() == -1


def test_query_interpolates_between_two():
    d = IntDist(SeriesKey("x"))
    d.insert(10)
    d.insert(0)
    assert d.query(0.5) == 5


def test_empty_dist():
    d = FloatDist(SeriesKey("x"))
    assert d.full_average() == 0
    assert d.reservoir_average() == 0
    assert d.query(0.5) == 0
    assert collect(d) == [(SeriesKey("x"), "count", 0.0)]


def test_single_value_query_returns_it():
    d = IntDist(SeriesKey("x"))
    d.insert(7)
    assert d.query(0.3) == 7
    assert d.reservoir_average() == 7


def test_float_samples_are_single_precision():
    d = FloatDist(SeriesKey("x"))
    d.insert(0.1)
    d.insert(0.1)
    assert d.query(0) == pytest.approx(0.1, rel=1e-6)
    assert d.query(0) != 0.1
    assert d.low == 0.1


def test_reservoir_stays_in_range_past_capacity():
    d = IntDist(SeriesKey("x"))
    for v in range(1000):
        d.insert(v)
    assert d.count == 1000
    assert d.sum == sum(range(1000))
    assert d.low == 0 and d.high == 999
    qs = [d.query(q) for q in (0, 0.1, 0.5, 0.9, 1)]
    assert qs == sorted(qs)
    assert all(0 <= q <= 999 for q in qs)


def test_constant_values_reservoir_average():
    d = FloatDist(SeriesKey("x"))
    for _ in range(RESERVOIR_SIZE * 3):
        d.insert(2.5)
    assert d.reservoir_average() == 2.5
    assert d.full_average() == 2.5


def test_reset_clears_counts():
    d = IntDist(SeriesKey("x"))
    d.insert(4)
    d.insert(8)
    d.reset()
    assert (d.low, d.high, d.recent, d.count, d.sum) == (0, 0, 0, 0, 0)
    d.insert(-1)
    assert d.low == -1 and d.high == -1 and d.count == 1


def test_copy_is_independent():
    d = IntDist(SeriesKey("x"))
    d.insert(1)
    d.insert(2)
    cp = d.copy()
    d.insert(100)
    assert cp.count == 2
    assert cp.high == 2
    assert cp.query(1) == 2
    assert d.query(1) == 100


def test_stats_field_order_and_values():
    key = SeriesKey("k")
    d = IntDist(key)
    for v in (3, 1, 2):
        d.insert(v)
    out = collect(d)
    assert [f for _, f, _ in out] == STAT_FIELDS
    assert all(k == key for k, _, _ in out)
    values = {f: v for _, f, v in out}
    assert values["count"] == 3.0
    assert values["sum"] == 6.0
    assert values["min"] == 1.0
    assert values["max"] == 3.0
    assert values["recent"] == 2.0
    assert values["rmin"] == 1.0
    assert values["rmax"] == 3.0


def test_duration_dist():
    d = DurationDist(SeriesKey("t"))
    d.insert(timedelta(seconds=1))
    d.insert(timedelta(seconds=3))
    assert d.low == timedelta(seconds=1)
    assert d.high == timedelta(seconds=3)
    assert d.sum == timedelta(seconds=4)
    assert d.full_average() == timedelta(seconds=2)
    assert d.query(0) == timedelta(seconds=1)
    assert d.query(1) == timedelta(seconds=3)
    values = {f: v for _, f, v in collect(d)}
    assert values["sum"] == 4.0
    assert values["max"] == 3.0
    assert math.isclose(values["ravg"], 2.0)


def test_duration_empty_average():
    d = DurationDist(SeriesKey("t"))
    assert d.full_average() == timedelta(0)
    assert d.reservoir_average() == timedelta(0)