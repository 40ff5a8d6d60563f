"""Helpers that name the module and function a call came from."""

from __future__ import annotations

import inspect
from types import FrameType

UNKNOWN = "unknown"


def _outer_frame(steps: int) -> FrameType | None:
    """Return the frame ``steps`` levels above this helper, or None."""
    frame = inspect.currentframe()
    for _ in range(steps):
        if frame is None:
            return None
        frame = frame.f_back
    return frame


def caller_package(frames: int) -> str:
    """Name the module of the caller, ``frames`` levels further up the stack.

    With ``frames`` of 0 this is the module of whoever called this function.
    """
    frame = _outer_frame(frames + 2)
    if frame is None:
        return UNKNOWN
    try:
        module = inspect.getmodule(frame)
        if module is None:
            return UNKNOWN
        return module.__name__ or UNKNOWN
    finally:
        del frame


def caller_func(frames: int) -> str:
    """Name the function that called the caller, ``frames`` levels further up.

    With ``frames`` of 0 this names the caller of the function that called
    this one, which suits helpers that are themselves called from a wrapper.
    """
    frame = _outer_frame(frames + 3)
    if frame is None:
        return UNKNOWN
    try:
        code = frame.f_code
        name = code.co_qualname if hasattr(code, "co_qualname") else code.co_name
        return name or UNKNOWN
    finally:
        del frame


def extract_func_name(fully_qualified_name: str) -> str | None:
    """Strip the package path from a qualified function name.

    ``"main.DoThings.func1"`` gives ``"DoThings.func1"``. Returns None when
    the name ends in a slash or has nothing after the package dot.
    """
    last_slash = fully_qualified_name.rfind("/")
    if last_slash + 1 >= len(fully_qualified_name):
        return None
    qualified = fully_qualified_name[last_slash + 1:]
    dot = qualified.find(".")
    if dot < 0 or dot + 1 >= len(qualified):
        return None
    return qualified[dot + 1:]