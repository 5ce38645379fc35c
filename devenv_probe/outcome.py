"""
Discovery outcomes returned by every strategy.

A strategy never raises for a missing or broken tool; it returns a Failure and the
engine decides what the probe's final status is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# Failure kinds
NOT_FOUND = "not_found"
EXECUTION_FAILURE = "execution_failure"
TIMEOUT = "timeout"
PERMISSION_DENIED = "permission_denied"
FEATURE_DISABLED = "feature_disabled"


@dataclass(frozen=True)
class Success:
    """
    Raw text produced by a successful discovery attempt.

    Attributes:
        raw_text: Captured output (or a ready display string when final is set)
        variant: Display name of the invocation form that succeeded (dual-mode)
        path: Resolved executable path, when known
        final: raw_text is already a display string and skips normalization
    """
    raw_text: str
    variant: str = ""
    path: str = ""
    final: bool = False

    ok = True


@dataclass(frozen=True)
class Failure:
    """Why a discovery attempt did not produce version text."""
    reason: str
    kind: str = EXECUTION_FAILURE

    ok = False


DiscoveryOutcome = Union[Success, Failure]
