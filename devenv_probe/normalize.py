"""
Output normalization and version extraction.

Raw process output is reduced to one display string: the first line when it looks
like a version line, or a generic x.y.z token when the first line is a verbose dump.
An optional probe pattern then narrows that string to a precise token.
"""

from __future__ import annotations

import re

VERBOSE_THRESHOLD = 100
FOUND_FALLBACK = "Found"

GENERIC_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")
ANSI_ESCAPE_RE = re.compile(r'\x1b\[[0-9;]*[A-Za-z]|\x1b\][^\x07]*\x07')


def strip_ansi(text: str) -> str:
    """Remove ANSI color and OSC sequences."""
    return ANSI_ESCAPE_RE.sub('', text)


def first_line(raw: str) -> str:
    """First non-blank line of raw output, stripped of ANSI codes and whitespace."""
    for line in strip_ansi(raw).splitlines():
        if line.strip():
            return line.strip()
    return ""


def normalize_output(raw: str, threshold: int = VERBOSE_THRESHOLD) -> str:
    """Collapse raw combined output into a single candidate version string.

    Args:
        raw: Captured stdout+stderr text (never empty; empty output is a failure)
        threshold: Maximum length of a "clean" version line

    Returns:
        Candidate display string, "Found" when nothing usable remains
    """
    text = strip_ansi(raw)
    candidate = first_line(text)

    if len(candidate) > threshold:
        m = GENERIC_VERSION_RE.search(text)
        if m:
            candidate = m.group(0)

    return candidate or FOUND_FALLBACK


def extract_version(text: str, pattern: re.Pattern[str] | str | None = None, template: str = "") -> str:
    """Refine a normalized string with an optional capture-group pattern.

    With a template, every capture group is substituted positionally
    (``"pip {0}, Python {1}"``). Without one the first group is returned.
    A non-matching pattern is not an error: the input comes back unchanged.

    Args:
        text: Normalized display string
        pattern: Regex (compiled or source) with at least one capture group
        template: Optional format string over the captured groups

    Returns:
        Extracted token, or text when nothing was extracted
    """
    if not pattern or not text:
        return text

    if isinstance(pattern, str):
        pattern = re.compile(pattern)

    m = pattern.search(text)
    if not m:
        return text

    groups = m.groups()
    if not groups:
        return m.group(0) or text

    if template:
        try:
            extracted = template.format(*(g or "" for g in groups))
        except (IndexError, KeyError):
            extracted = groups[0] or ""
    else:
        extracted = groups[0] or ""

    return extracted.strip() or text
