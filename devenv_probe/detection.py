"""
Process execution and on-disk lookup used by the discovery strategies.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Iterable, Sequence

from .common import IS_WINDOWS, env_int

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = env_int("DEVENV_PROBE_TIMEOUT_SECONDS", 10)


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one external invocation.

    Attributes:
        returncode: Exit status, None when the process never ran to completion
        output: Combined stdout+stderr in emission order
        error: "not_found", "timeout", "permission_denied" or "os_error" when the
            process could not be run
    """
    returncode: int | None
    output: str = ""
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and bool(self.output.strip())


def run_capture(args: Sequence[str], timeout: float | None = None) -> CommandResult:
    """Run a command with stderr merged into stdout and a bounded timeout.

    Args:
        args: Command and arguments
        timeout: Timeout in seconds (default: TIMEOUT_SECONDS)

    Returns:
        CommandResult; never raises for a missing, hung or unrunnable command
    """
    try:
        proc = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,  # Several tools print their version on stderr
            stdin=subprocess.DEVNULL,  # Isolate stdin
            text=True,
            errors="replace",
            timeout=timeout or TIMEOUT_SECONDS,
            check=False,
            env={**os.environ, "TERM": "dumb"},  # Disable ANSI/color output from subprocesses
        )
    except FileNotFoundError:
        return CommandResult(None, error="not_found")
    except subprocess.TimeoutExpired as e:
        logger.debug(f"Timed out after {e.timeout}s: {' '.join(args)}")
        return CommandResult(None, error="timeout")
    except PermissionError:
        return CommandResult(None, error="permission_denied")
    except OSError as e:
        logger.debug(f"Could not run {args[0]}: {e}")
        return CommandResult(None, error="os_error")

    return CommandResult(proc.returncode, proc.stdout or "")


def find_executable(target: str) -> str | None:
    """Resolve a command name on PATH, or accept an existing file path as-is."""
    if os.path.dirname(target):
        return target if os.path.isfile(target) else None
    return shutil.which(target)


def expand_path(path: str) -> str:
    """Expand environment variables (%VAR% and $VAR) and ~ in a path."""
    return os.path.expanduser(os.path.expandvars(path))


def _matches(candidate: str, filename: str) -> bool:
    if IS_WINDOWS:
        return candidate.lower() == filename.lower()
    return candidate == filename


def find_newest_file(roots: Iterable[str], filename: str) -> str | None:
    """Search roots recursively for filename and return the newest match.

    Args:
        roots: Directories to search (already expanded)
        filename: Exact file name (case-insensitive on Windows)

    Returns:
        Path with the latest modification time; the first one enumerated wins ties.
        None when no root exists or nothing matches.
    """
    best_path: str | None = None
    best_mtime = 0.0

    for root in roots:
        if not os.path.isdir(root):
            logger.debug(f"Search root does not exist: {root}")
            continue

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in sorted(filenames):
                if not _matches(name, filename):
                    continue
                path = os.path.join(dirpath, name)
                try:
                    mtime = os.path.getmtime(path)
                except OSError:
                    continue
                if best_path is None or mtime > best_mtime:
                    best_path, best_mtime = path, mtime

    return best_path
