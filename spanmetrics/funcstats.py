"""Execution statistics for a monitored function."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Any

from spanmetrics.dist import DurationDist, SeriesKey
from spanmetrics.error_names import get_error_name
from spanmetrics.funcset import FuncSet

StatCallback = Callable[[SeriesKey, str, float], None]


class FuncStats:
    """Tracks concurrency, successes, errors, panics and timings of a function.

    A panic is an exception that is not an ``Exception`` subclass (for
    example ``KeyboardInterrupt``); ordinary exceptions count as errors.
    """

    def __init__(self, key: SeriesKey) -> None:
        self.key = key
        self._lock = threading.Lock()
        self._current = 0
        self._highwater = 0
        self._parents = FuncSet()
        self._errors: dict[str, int] = {}
        self._panics = 0
        times_key = SeriesKey(key.measurement + "_times", key.tags)
        self._success_times = DurationDist(times_key.with_tag("kind", "success"))
        self._failure_times = DurationDist(times_key.with_tag("kind", "failure"))

    def reset(self) -> None:
        """Forget all recorded data."""
        with self._lock:
            self._current = 0
            self._highwater = 0
            self._errors = {}
            self._panics = 0
            self._success_times.reset()
            self._failure_times.reset()

    def start(self, parent: Any) -> None:
        """Record that an invocation began, called from ``parent`` (or None)."""
        self._parents.add(parent)
        with self._lock:
            self._current += 1
            if self._current > self._highwater:
                self._highwater = self._current

    def end(
        self, err: BaseException | None, panicked: bool, duration: timedelta
    ) -> None:
        """Record that an invocation finished after ``duration``."""
        with self._lock:
            self._current -= 1
            if panicked:
                self._panics += 1
                self._failure_times.insert(duration)
                return
            if err is None:
                self._success_times.insert(duration)
                return
            self._failure_times.insert(duration)
            name = get_error_name(err)
            self._errors[name] = self._errors.get(name, 0) + 1

    def current(self) -> int:
        """How many invocations are running now."""
        with self._lock:
            return self._current

    def highwater(self) -> int:
        """The most invocations ever running at once."""
        with self._lock:
            return self._highwater

    def success(self) -> int:
        """The number of successful invocations."""
        with self._lock:
            return self._success_times.count

    def panics(self) -> int:
        """The number of invocations that panicked."""
        with self._lock:
            return self._panics

    def errors(self) -> dict[str, int]:
        """Error counts by error name."""
        with self._lock:
            return dict(self._errors)

    def parents(self) -> list[Any]:
        """The unique callers seen so far; None means no monitored caller."""
        return list(self._parents)

    def stats(self, cb: StatCallback) -> None:
        """Report all statistics through ``cb(key, field, value)``."""
        cb(self.key, "current", float(self.current()))
        cb(self.key, "highwater", float(self.highwater()))

        with self._lock:
            panics = self._panics
            errors = dict(self._errors)
            success_times = self._success_times.copy()
            failure_times = self._failure_times.copy()

        cb(self.key, "successes", float(success_times.count))
        error_count = 0
        for name, count in errors.items():
            error_count += count
            cb(self.key.with_tag("error_name", name), "count", float(count))
        cb(self.key, "errors", float(error_count))
        cb(self.key, "panics", float(panics))
        cb(self.key, "failures", float(error_count + panics))
        cb(self.key, "total", float(success_times.count + error_count + panics))

        success_times.stats(cb)
        failure_times.stats(cb)

    def success_times(self) -> DurationDist:
        """A copy of the distribution of successful run times."""
        with self._lock:
            return self._success_times.copy()

    def failure_times(self) -> DurationDist:
        """A copy of the distribution of failed run times (errors and panics)."""
        with self._lock:
            return self._failure_times.copy()

    @contextmanager
    def observe(self) -> Iterator[FuncStats]:
        """Time the enclosed block and record how it ended.

        Exceptions are recorded and re-raised.
        """
        self.start(None)
        begin = time.monotonic_ns()
        err: BaseException | None = None
        panicked = False
        try:
            yield self
        except Exception as exc:
            err = exc
            raise
        except BaseException:
            panicked = True
            raise
        finally:
            elapsed = timedelta(microseconds=(time.monotonic_ns() - begin) / 1000)
            self.end(err, panicked, elapsed)