"""A thread-safe set of the functions that have called another function."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import Any


class FuncSet:
    """Keeps the unique functions added to it, ``None`` included.

    ``None`` stands for "called from outside any monitored function".
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._members: dict[Any, None] = {}

    def add(self, func: Any) -> None:
        """Add ``func`` (or None) to the set."""
        with self._lock:
            self._members.setdefault(func, None)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over a snapshot of the unique members."""
        with self._lock:
            snapshot = list(self._members)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def __contains__(self, func: object) -> bool:
        with self._lock:
            return func in self._members