"""
Report rendering.

Entries are classified purely from their stored string form, so the renderer
works the same on live statuses and on the plain dict from ``ResultStore.as_dict``.
"""

import json
import os
import sys
from typing import Any, TextIO

from .results import MISSING_TEXT, WARNING_PREFIX, ResultStore, VersionStatus

USE_COLOR = os.environ.get("DEVENV_PROBE_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
BOLD = "\033[1m"
RESET = "\033[0m"

OK = "ok"
MISSING = "missing"
WARNING = "warning"

MARKERS = {OK: "[OK]", MISSING: "[X]", WARNING: "[!]"}
MARKER_COLORS = {OK: GREEN, MISSING: RED, WARNING: YELLOW}


def classify(value: Any) -> str:
    """Bucket a stored status: ok, missing or warning."""
    text = str(value)
    if text == MISSING_TEXT:
        return MISSING
    if text.startswith(WARNING_PREFIX):
        return WARNING
    return OK


def colorize(text: str, color: str, enabled: bool | None = None) -> str:
    """Apply color to text unless colors are disabled."""
    if enabled is None:
        enabled = USE_COLOR
    if not enabled or not text:
        return text
    return f"{color}{text}{RESET}"


def _warning_text(text: str) -> str:
    return text[len(WARNING_PREFIX):].lstrip(":").strip() or text


def format_status_line(name: str, status: Any, color: bool | None = None) -> str:
    """Render one entry with its bucket marker.

    ``[OK] name: version`` / ``[X] name not found...`` / ``[!] name (text)``
    """
    bucket = classify(status)
    marker = colorize(MARKERS[bucket], MARKER_COLORS[bucket], color)
    text = str(status)

    if bucket == MISSING:
        return f"{marker} {name} not found..."
    if bucket == WARNING:
        return f"{marker} {name} ({_warning_text(text)})"

    via = getattr(status, "via", "")
    suffix = f" [{via}]" if via else ""
    return f"{marker} {name}: {text}{suffix}"


def print_status_line(name: str, status: VersionStatus, stream: TextIO | None = None, color: bool | None = None) -> None:
    """Print a per-probe progress line as soon as a probe finishes."""
    print(format_status_line(name, status, color), file=stream or sys.stdout, flush=True)


def count_buckets(store: ResultStore) -> dict[str, int]:
    counts = {OK: 0, MISSING: 0, WARNING: 0}
    for _, status in store.items():
        counts[classify(status)] += 1
    return counts


def render_summary(store: ResultStore, color: bool | None = None) -> list[str]:
    """Summary section: every entry in name order, then the bucket counts."""
    lines = [colorize("Summary", BOLD, color)]
    lines.extend(format_status_line(name, status, color) for name, status in store.items())

    counts = count_buckets(store)
    lines.append(
        f"{len(store)} probes: {counts[OK]} found, "
        f"{counts[MISSING]} missing, {counts[WARNING]} warnings"
    )
    return lines


def print_summary(store: ResultStore, stream: TextIO | None = None, color: bool | None = None) -> None:
    stream = stream or sys.stdout
    print("", file=stream)
    for line in render_summary(store, color):
        print(line, file=stream)


def render_json(store: ResultStore, extra_meta: dict[str, Any] | None = None) -> str:
    """Machine-readable report, sorted by probe name."""
    probes = []
    for name, status in store.items():
        entry = {"name": name, "status": classify(status), "value": str(status)}
        via = getattr(status, "via", "")
        if via:
            entry["via"] = via
        probes.append(entry)

    meta: dict[str, Any] = {"count": len(store), **count_buckets(store)}
    if extra_meta:
        meta.update(extra_meta)

    return json.dumps({"__meta__": meta, "probes": probes}, indent=2, ensure_ascii=False)
