"""Reservoir-sampled distributions of integers, floats and durations."""

from __future__ import annotations

import copy as _copy
import math
import random
import struct
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, ClassVar

RESERVOIR_SIZE = 64

# When positive, the chance of replacing a sampled value never falls below
# RESERVOIR_SIZE / WINDOW. Should be a multiple of RESERVOIR_SIZE.
WINDOW = 1024

# The quantiles the distribution logic is tuned for.
OBSERVED_QUANTILES = (0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 1.0)

StatCallback = Callable[["SeriesKey", str, float], None]

_NS_PER_US = 1000


@dataclass(frozen=True)
class SeriesKey:
    """A measurement name together with a set of tags."""

    measurement: str
    tags: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(sorted(dict(self.tags).items())))

    def with_tag(self, key: str, value: str) -> SeriesKey:
        """Return a new key with ``key`` set to ``value``."""
        tags = dict(self.tags)
        tags[key] = value
        return SeriesKey(self.measurement, tuple(tags.items()))


def _float32(value: float) -> float:
    """Round ``value`` to single precision."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


class Dist:
    """Keeps low, high, recent, count, sum and sampled quantiles of values.

    Not thread-safe. The public attributes are for reading only.
    """

    zero: ClassVar[Any] = 0

    def __init__(self, key: SeriesKey) -> None:
        self.key = key
        self.low: Any = self.zero
        self.high: Any = self.zero
        self.recent: Any = self.zero
        self.count = 0
        self.sum: Any = self.zero
        self._reservoir = [0.0] * RESERVOIR_SIZE
        self._rng = random.Random()
        self._sorted = False

    # Conversions supplied by the concrete distributions.
    def _to_sample(self, val: Any) -> float:
        raise NotImplementedError

    def _from_sample(self, sample: float) -> Any:
        raise NotImplementedError

    def _to_float64(self, val: Any) -> float:
        raise NotImplementedError

    def _average(self, total: Any, count: int) -> Any:
        raise NotImplementedError

    def insert(self, val: Any) -> None:
        """Add a value to the distribution."""
        if self.count != 0:
            if val < self.low:
                self.low = val
            if val > self.high:
                self.high = val
        else:
            self.low = val
            self.high = val
        self.recent = val
        self.sum = self.sum + val

        index = self.count
        self.count += 1

        if index < RESERVOIR_SIZE:
            self._reservoir[index] = _float32(self._to_sample(val))
            self._sorted = False
            return
        window = self.count
        if WINDOW > 0 and window > WINDOW:
            window = WINDOW
        slot = self._rng.getrandbits(64) % window
        if slot < RESERVOIR_SIZE:
            self._reservoir[slot] = _float32(self._to_sample(val))
            self._sorted = False

    def full_average(self) -> Any:
        """The average of every value inserted."""
        if self.count > 0:
            return self._average(self.sum, self.count)
        return self.zero

    def reservoir_average(self) -> Any:
        """The average of the sampled values."""
        amount = min(RESERVOIR_SIZE, self.count)
        if amount <= 0:
            return self.zero
        total = 0.0
        for sample in self._reservoir[:amount]:
            total = _float32(total + sample)
        return self._from_sample(_float32(total / amount))

    def query(self, quantile: float) -> Any:
        """Approximate value at ``quantile`` (0 to 1) from the samples."""
        rlen = min(RESERVOIR_SIZE, self.count)
        if rlen < 2:
            return self._from_sample(self._reservoir[0])

        if not self._sorted:
            self._reservoir[:rlen] = sorted(self._reservoir[:rlen])
            self._sorted = True
        samples = self._reservoir

        if quantile <= 0:
            return self._from_sample(samples[0])
        if quantile >= 1:
            return self._from_sample(samples[rlen - 1])

        idx_float = quantile * (rlen - 1)
        idx = int(idx_float)
        diff = idx_float - idx
        prior = samples[idx]
        return self._from_sample(prior + diff * (samples[idx + 1] - prior))

    def copy(self) -> Dist:
        """Return an independent copy of the distribution."""
        duplicate = _copy.copy(self)
        duplicate._reservoir = list(self._reservoir)
        duplicate._rng = random.Random()
        return duplicate

    def reset(self) -> None:
        """Forget all observed values."""
        self.low = self.high = self.recent = self.sum = self.zero
        self.count = 0

    def stats(self, cb: StatCallback) -> None:
        """Report the distribution through ``cb(key, field, value)``."""
        count = self.count
        cb(self.key, "count", float(count))
        if count <= 0:
            return
        f = self._to_float64
        cb(self.key, "sum", f(self.sum))
        cb(self.key, "min", f(self.low))
        cb(self.key, "avg", f(self.full_average()))
        cb(self.key, "max", f(self.high))
        cb(self.key, "rmin", f(self.query(0)))
        cb(self.key, "ravg", f(self.reservoir_average()))
        cb(self.key, "r10", f(self.query(0.1)))
        cb(self.key, "r50", f(self.query(0.5)))
        cb(self.key, "r90", f(self.query(0.9)))
        cb(self.key, "rmax", f(self.query(1)))
        cb(self.key, "recent", f(self.recent))


class IntDist(Dist):
    """Distribution of integers."""

    zero: ClassVar[Any] = 0

    def _to_sample(self, val: int) -> float:
        return float(val)

    def _from_sample(self, sample: float) -> int:
        return int(sample)

    def _to_float64(self, val: int) -> float:
        return float(val)

    def _average(self, total: int, count: int) -> int:
        return _trunc_div(total, count)


class FloatDist(Dist):
    """Distribution of floats."""

    zero: ClassVar[Any] = 0.0

    def _to_sample(self, val: float) -> float:
        return float(val)

    def _from_sample(self, sample: float) -> float:
        return float(sample)

    def _to_float64(self, val: float) -> float:
        return float(val)

    def _average(self, total: float, count: int) -> float:
        return total / count


def _nanoseconds(td: timedelta) -> int:
    return ((td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds) * _NS_PER_US


def _from_nanoseconds(ns: int) -> timedelta:
    return timedelta(microseconds=ns / _NS_PER_US)


class DurationDist(Dist):
    """Distribution of durations, given as ``timedelta`` values."""

    zero: ClassVar[Any] = timedelta(0)

    def _to_sample(self, val: timedelta) -> float:
        return float(_nanoseconds(val))

    def _from_sample(self, sample: float) -> timedelta:
        return _from_nanoseconds(int(sample))

    def _to_float64(self, val: timedelta) -> float:
        return val.total_seconds()

    def _average(self, total: timedelta, count: int) -> timedelta:
        return _from_nanoseconds(_trunc_div(_nanoseconds(total), count))