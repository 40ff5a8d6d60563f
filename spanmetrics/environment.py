"""Statistics about the running process and its operating-system environment."""

from __future__ import annotations

import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any, BinaryIO

from spanmetrics.dist import SeriesKey

try:
    import resource
except ImportError:  # not available on every platform
    resource = None  # type: ignore[assignment]

StatCallback = Callable[[SeriesKey, str, float], None]

_FD_DIR = "/proc/self/fd"
_EXE_PATH = "/proc/self/exe"
_STAT_PATH = "/proc/self/stat"
_STATM_PATH = "/proc/self/statm"
_CHUNK = 64 * 1024

_start_time = time.monotonic()


@dataclass(frozen=True)
class ProcSelfStat:
    """The leading fields of ``/proc/self/stat``."""

    pid: int
    comm: str
    state: str
    ppid: int
    pgrp: int
    session: int
    tty_nr: int
    tpgid: int
    flags: int
    minflt: int
    cminflt: int
    majflt: int
    cmajflt: int
    utime: int
    stime: int
    cutime: int
    cstime: int
    priority: int
    nice: int
    num_threads: int
    itrealvalue: int
    starttime: int
    vsize: int
    rss: int
    rsslim: int
    startcode: int
    endcode: int
    startstack: int
    kstkesp: int
    kstkeip: int
    signal: int
    blocked: int
    sigignore: int
    sigcatch: int
    wchan: int
    nswap: int
    cnswap: int
    exit_signal: int
    processor: int
    rt_priority: int
    policy: int
    delayacct_blkio_ticks: int
    guest_time: int
    cguest_time: int


@dataclass(frozen=True)
class ProcSelfStatm:
    """The fields of ``/proc/self/statm``, in pages."""

    size: int
    resident: int
    share: int
    text: int
    lib: int
    data: int
    dt: int


_STAT_INT_COUNT = len(fields(ProcSelfStat)) - 3
_STATM_COUNT = len(fields(ProcSelfStatm))


def _parse_stat(text: str) -> ProcSelfStat:
    """Parse the contents of a ``/proc/<pid>/stat`` file."""
    head, sep, tail = text.partition(" ")
    open_paren = text.find("(")
    close_paren = text.rfind(")")
    if not sep or open_paren < 0 or close_paren < open_paren:
        raise ValueError("malformed stat data")
    comm = text[open_paren:close_paren + 1]
    rest = text[close_paren + 1:].split()
    if len(rest) < 1 + _STAT_INT_COUNT:
        raise ValueError("too few fields in stat data")
    state = rest[0]
    if len(state) != 1:
        raise ValueError(f"bad process state: {state!r}")
    numbers = [int(word) for word in rest[1:1 + _STAT_INT_COUNT]]
    return ProcSelfStat(int(head), comm, state, *numbers)


def _parse_statm(text: str) -> ProcSelfStatm:
    """Parse the contents of a ``/proc/<pid>/statm`` file."""
    words = text.split()
    if len(words) < _STATM_COUNT:
        raise ValueError("too few fields in statm data")
    return ProcSelfStatm(*(int(word) for word in words[:_STATM_COUNT]))


def _report_numeric_fields(key: SeriesKey, record: Any, cb: StatCallback) -> None:
    for item in fields(record):
        value = getattr(record, item.name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            cb(key, item.name, float(value))


def fd_count() -> int:
    """The number of file descriptors this process has open.

    Raises OSError when the count cannot be read.
    """
    return len(list_fd_dir())


def list_fd_dir() -> list[str]:
    """Names of the entries in the process's file-descriptor directory."""
    import os

    return os.listdir(_FD_DIR)


def open_proc() -> BinaryIO:
    """Open the executable of the running process for reading."""
    return open(_EXE_PATH, "rb")


_crc_lock = threading.Lock()
_crc_result: tuple[int | None, OSError | None] | None = None


def _compute_process_crc() -> int:
    crc = 0
    with open_proc() as fh:
        while chunk := fh.read(_CHUNK):
            crc = zlib.crc32(chunk, crc)
    return crc


def process_crc() -> int:
    """CRC-32 of the running executable, computed once and cached.

    A failure is cached too and raised again on every call.
    """
    global _crc_result
    with _crc_lock:
        if _crc_result is None:
            try:
                _crc_result = (_compute_process_crc(), None)
            except OSError as exc:
                _crc_result = (None, exc)
        crc, err = _crc_result
    if err is not None:
        raise err
    assert crc is not None
    return crc


def read_proc_self_stat() -> ProcSelfStat:
    """Read and parse ``/proc/self/stat``."""
    with open(_STAT_PATH, encoding="utf-8", errors="replace") as fh:
        return _parse_stat(fh.read())


def read_proc_self_statm() -> ProcSelfStatm:
    """Read and parse ``/proc/self/statm``."""
    with open(_STATM_PATH, encoding="utf-8") as fh:
        return _parse_statm(fh.read())


def os_stats(cb: StatCallback) -> None:
    """Report the open file-descriptor count, when it can be read."""
    try:
        count = fd_count()
    except OSError:
        return
    cb(SeriesKey("fds"), "count", float(count))


def process_stats(cb: StatCallback) -> None:
    """Report a control value, the executable's CRC and the uptime."""
    key = SeriesKey("process")
    cb(key, "control", 1.0)
    try:
        crc = process_crc()
    except OSError:
        pass
    else:
        cb(key, "crc", float(crc))
    cb(key, "uptime", time.monotonic() - _start_time)


def proc_stats(cb: StatCallback) -> None:
    """Report the numeric fields of ``/proc/self/stat`` and ``statm``."""
    try:
        stat = read_proc_self_stat()
    except (OSError, ValueError):
        pass
    else:
        _report_numeric_fields(SeriesKey("proc_stat"), stat, cb)

    try:
        statm = read_proc_self_statm()
    except (OSError, ValueError):
        pass
    else:
        _report_numeric_fields(SeriesKey("proc_statm"), statm, cb)


def rusage_stats(cb: StatCallback) -> None:
    """Report the resource usage of this process, where available."""
    if resource is None:
        return
    try:
        usage = resource.getrusage(resource.RUSAGE_SELF)
    except (OSError, ValueError):
        return
    key = SeriesKey("rusage")
    for name in dir(usage):
        if name.startswith("ru_"):
            value = getattr(usage, name)
            if isinstance(value, (int, float)):
                cb(key, name, float(value))


STAT_SOURCES: tuple[Callable[[StatCallback], None], ...] = (
    os_stats,
    proc_stats,
    process_stats,
    rusage_stats,
)