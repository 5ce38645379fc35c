"""
Common utilities shared across devenv_probe modules.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator

IS_WINDOWS = sys.platform == "win32"
LOGGER_NAME = "devenv_probe"

RESET_ATTRIBUTES = "\033[0m"
XTERM_PUSH_TITLE = "\033[22;0t"
XTERM_POP_TITLE = "\033[23;0t"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a message only in verbose mode (or with DEVENV_PROBE_DEBUG=1).

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("DEVENV_PROBE_DEBUG", "0") == "1":
        logging.getLogger(LOGGER_NAME).debug(msg)


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, ignoring malformed values."""
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _get_windows_title() -> str:
    import ctypes

    buffer = ctypes.create_unicode_buffer(1024)
    ctypes.windll.kernel32.GetConsoleTitleW(buffer, len(buffer))
    return buffer.value


def _set_windows_title(title: str) -> None:
    import ctypes

    ctypes.windll.kernel32.SetConsoleTitleW(title)


@contextmanager
def console_title(title: str, stream=None) -> Iterator[None]:
    """
    Set the console title for the duration of a block.

    The previous title and terminal attributes are restored on every exit path,
    including exceptions. On Windows the console API is used; elsewhere the xterm
    title stack, and only when the stream is a terminal.

    Args:
        title: Title to show while the block runs
        stream: Terminal stream (defaults to sys.stdout)
    """
    stream = stream or sys.stdout
    interactive = hasattr(stream, "isatty") and stream.isatty()
    previous = None

    if IS_WINDOWS:
        try:
            previous = _get_windows_title()
            _set_windows_title(title)
        except OSError:
            previous = None
    elif interactive:
        stream.write(f"{XTERM_PUSH_TITLE}\033]0;{title}\007")
        stream.flush()

    try:
        yield
    finally:
        if IS_WINDOWS and previous is not None:
            _set_windows_title(previous)
        elif not IS_WINDOWS and interactive:
            stream.write(XTERM_POP_TITLE)
        if interactive:
            stream.write(RESET_ATTRIBUTES)
            stream.flush()
