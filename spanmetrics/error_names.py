"""Naming of errors for use as metric labels."""

from __future__ import annotations

import asyncio
import concurrent.futures
import ipaddress
import socket
import threading
from collections.abc import Callable

ErrorNameHandler = Callable[[BaseException], "str | None"]

_write_lock = threading.Lock()
_handlers: tuple[ErrorNameHandler, ...] = ()

_KNOWN_ERRORS: tuple[tuple[tuple[type[BaseException], ...], str], ...] = (
    ((asyncio.IncompleteReadError,), "Unexpected EOF Error"),
    ((EOFError,), "EOF"),
    ((BrokenPipeError,), "Closed Pipe Error"),
    ((asyncio.CancelledError, concurrent.futures.CancelledError), "Canceled"),
    (
        (TimeoutError, asyncio.TimeoutError, concurrent.futures.TimeoutError),
        "Timeout",
    ),
    ((socket.gaierror, socket.herror), "DNS Error"),
    ((ipaddress.NetmaskValueError,), "Invalid Addr Error"),
    ((ipaddress.AddressValueError,), "Addr Error"),
    ((ConnectionError,), "Net Op Error"),
)


def add_error_name_handler(handler: ErrorNameHandler) -> None:
    """Register a handler consulted when naming an error.

    Handlers are tried most recently added first; the first to return a
    name other than None wins.
    """
    global _handlers
    with _write_lock:
        _handlers = _handlers + (handler,)


def get_error_name(err: BaseException) -> str:
    """Return a metric-friendly name for ``err``.

    Registered handlers come first, then an error's own ``name()`` method,
    then names for common standard-library errors.
    """
    for handler in reversed(_handlers):
        name = handler(err)
        if name is not None:
            return name

    namer = getattr(err, "name", None)
    if callable(namer):
        name = namer()
        if name is not None:
            return name

    for types, name in _KNOWN_ERRORS:
        if isinstance(err, types):
            return name

    if isinstance(err, OSError):
        return "Errno" if err.errno is not None else "Syscall Error"
    return "System Error"