"""
Version statuses and the result store.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Union

MISSING_TEXT = "Missing"
WARNING_PREFIX = "Warning"


@dataclass(frozen=True)
class Found:
    """Tool is present; text is the display version."""
    text: str
    via: str = ""  # Alternate invocation form that produced the text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Missing:
    """Tool could not be found or produced no usable output."""

    def __str__(self) -> str:
        return MISSING_TEXT


@dataclass(frozen=True)
class Warn:
    """Tool state needs attention (disabled feature, unanswerable query)."""
    text: str

    def __str__(self) -> str:
        return f"{WARNING_PREFIX}: {self.text}"


VersionStatus = Union[Found, Missing, Warn]


class ResultStore:
    """
    Mapping of probe name to its final status.

    Writes for an existing key overwrite it; entries are never removed. Reads
    always come back in lexicographic key order.
    """

    def __init__(self) -> None:
        self._entries: dict[str, VersionStatus] = {}
        self._lock = threading.Lock()

    def put(self, key: str, status: VersionStatus) -> None:
        with self._lock:
            self._entries[key] = status

    def get(self, key: str) -> VersionStatus | None:
        with self._lock:
            return self._entries.get(key)

    def items(self) -> list[tuple[str, VersionStatus]]:
        """Entries sorted by key."""
        with self._lock:
            return sorted(self._entries.items())

    def keys(self) -> list[str]:
        return [key for key, _ in self.items()]

    def as_dict(self) -> dict[str, str]:
        """String form of every entry, keyed and ordered by name."""
        return {key: str(status) for key, status in self.items()}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
