"""A thread-safe running total that remembers its extremes."""

from __future__ import annotations

import math
import threading
from collections.abc import Callable
from typing import Any

StatCallback = Callable[[Any, str, float], None]


class Counter:
    """Running total that tracks the highest and lowest values seen."""

    def __init__(self, key: Any) -> None:
        self.key = key
        self._lock = threading.Lock()
        self._val = 0
        self._low = 0
        self._high = 0
        self._nonempty = False

    def _record(self, val: int) -> None:
        self._val = val
        if not self._nonempty or val < self._low:
            self._low = val
        if not self._nonempty or val > self._high:
            self._high = val
        self._nonempty = True

    def set(self, val: int) -> int:
        """Replace the value and return the former one."""
        with self._lock:
            former = self._val
            self._record(val)
        return former

    def inc(self, delta: int) -> int:
        """Add ``delta`` and return the new value."""
        with self._lock:
            self._record(self._val + delta)
            return self._val

    def dec(self, delta: int) -> int:
        """Subtract ``delta`` and return the new value."""
        return self.inc(-delta)

    def high(self) -> int:
        """Highest value seen since construction or the last reset."""
        with self._lock:
            return self._high

    def low(self) -> int:
        """Lowest value seen since construction or the last reset."""
        with self._lock:
            return self._low

    def current(self) -> int:
        """The current value."""
        with self._lock:
            return self._val

    def reset(self) -> tuple[int, int, int]:
        """Clear everything and return the former (value, low, high)."""
        with self._lock:
            former = (self._val, self._low, self._high)
            self._val = self._low = self._high = 0
            self._nonempty = False
        return former

    def stats(self, cb: StatCallback) -> None:
        """Report high, low and value through ``cb(key, field, value)``."""
        with self._lock:
            val, low, high, nonempty = self._val, self._low, self._high, self._nonempty
        if nonempty:
            cb(self.key, "high", float(high))
            cb(self.key, "low", float(low))
        else:
            cb(self.key, "high", math.nan)
            cb(self.key, "low", math.nan)
        cb(self.key, "value", float(val))