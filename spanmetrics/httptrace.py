"""Trace propagation through HTTP ``traceparent`` and ``tracestate`` headers."""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, Protocol

TRACE_SAMPLED = 1
TRACE_PARENT_HEADER = "traceparent"
TRACE_STATE_HEADER = "tracestate"

# Vendor-specific tracestate entry that turns sampling on at the remote end
# even when no parent trace is propagated.
ORPHAN_SAMPLING = "sampled=true"

_HEX = re.compile(r"[0-9a-fA-F]+")
_UINT64_LIMIT = 1 << 64
_INT64_SIGN = 1 << 63


def _hex_to_int64(text: str) -> int:
    """Read a signed 64-bit integer written as an unsigned hex number.

    Raises ValueError when the text is not hex or does not fit 64 bits.
    """
    if not _HEX.fullmatch(text):
        raise ValueError(f"invalid hex number: {text!r}")
    value = int(text, 16)
    if value >= _UINT64_LIMIT:
        raise ValueError(f"hex number out of range: {text!r}")
    return value - _UINT64_LIMIT if value >= _INT64_SIGN else value


def _header_get(header: Mapping[str, str], name: str) -> str:
    """Look a header up, ignoring the case of its name."""
    value = header.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in header.items():
        if key.lower() == lowered:
            return candidate
    return ""


@dataclass(frozen=True)
class TraceInfo:
    """Trace details carried by an incoming request. Every field is optional."""

    trace_id: int | None = None
    parent_id: int | None = None
    sampled: bool = False

    def set_header(self, header: MutableMapping[str, str]) -> None:
        """Write this trace information into ``header``."""
        sampled = TRACE_SAMPLED if self.sampled else 0
        if self.trace_id is not None and self.parent_id is not None:
            header[TRACE_PARENT_HEADER] = (
                f"00-{self.trace_id:016x}-{self.parent_id:08x}-{sampled:x}"
            )
        elif self.sampled:
            header[TRACE_STATE_HEADER] = ORPHAN_SAMPLING


def trace_info_from_header(header: Mapping[str, str]) -> TraceInfo:
    """Build a TraceInfo from request headers.

    A malformed ``traceparent`` yields an empty TraceInfo.
    """
    trace_parent = _header_get(header, TRACE_PARENT_HEADER)
    trace_state = _header_get(header, TRACE_STATE_HEADER)

    if trace_parent:
        parts = trace_parent.split("-")
        if len(parts) != 4:
            return TraceInfo()
        try:
            version = _hex_to_int64(parts[0])
            trace_id = _hex_to_int64(parts[1])
            parent_id = _hex_to_int64(parts[2])
            flags = _hex_to_int64(parts[3])
        except ValueError:
            return TraceInfo()
        if version != 0:
            return TraceInfo()
        return TraceInfo(
            trace_id=trace_id,
            parent_id=parent_id,
            sampled=(flags & 0xFF & TRACE_SAMPLED) == TRACE_SAMPLED,
        )

    if ORPHAN_SAMPLING in trace_state:
        return TraceInfo(sampled=True)
    return TraceInfo()


class ResponseWriter(Protocol):
    """What a response writer must offer to be observed."""

    def write_header(self, status_code: int) -> Any: ...

    def write(self, data: bytes) -> Any: ...

    def header(self) -> Any: ...


class ResponseObserver:
    """Wraps a response writer and remembers the status code it sent."""

    def __init__(self, writer: ResponseWriter) -> None:
        self._writer = writer
        self._status = 0

    def write_header(self, status_code: int) -> None:
        """Record ``status_code`` and pass it on."""
        self._status = status_code
        self._writer.write_header(status_code)

    def write(self, data: bytes) -> Any:
        """Pass ``data`` on; a write before any header implies status 200."""
        if self._status == 0:
            self._status = 200
        return self._writer.write(data)

    def header(self) -> Any:
        """The wrapped writer's headers."""
        return self._writer.header()

    def status_code(self) -> int:
        """The status code sent, 200 if none was set explicitly."""
        return self._status or 200