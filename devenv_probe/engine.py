"""
Probe execution engine.

Runs each probe through its strategy chain, converts the outcome into a
VersionStatus and records it in a ResultStore. Per-probe problems never leave
run_probe; anything else that escapes is a FatalRunError.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Mapping

from .common import console_title
from .config import Config
from .normalize import VERBOSE_THRESHOLD, extract_version, first_line, normalize_output
from .outcome import FEATURE_DISABLED, PERMISSION_DENIED, Failure, Success
from .probes import Probe
from .results import Found, Missing, ResultStore, VersionStatus, Warn
from .strategies import DiscoveryStrategy, build_strategies

logger = logging.getLogger(__name__)

CONSOLE_TITLE = "devenv-probe"
CHECK_MANUALLY = "Check manually"
DISABLED = "Disabled"

ResultCallback = Callable[[str, VersionStatus], None]


class FatalRunError(Exception):
    """An unexpected error escaped probe-level handling (an engine defect)."""

    def __init__(self, probe_name: str, cause: BaseException):
        super().__init__(f"Probe '{probe_name}' failed unexpectedly: {cause}")
        self.probe_name = probe_name
        self.cause = cause


def status_from_success(probe: Probe, outcome: Success, threshold: int = VERBOSE_THRESHOLD) -> Found:
    """Normalize and extract the display version from a successful outcome.

    Multi-group patterns are tried on the raw first line before the verbose
    fallback, so a long line carrying two versions keeps both.
    """
    line = first_line(outcome.raw_text)
    if outcome.final:
        text = outcome.raw_text
    elif probe.pattern is not None and probe.pattern.groups > 1 and probe.pattern.search(line):
        text = extract_version(line, probe.pattern, probe.template)
    else:
        normalized = normalize_output(outcome.raw_text, threshold)
        text = extract_version(normalized, probe.pattern, probe.template)
    return Found(text, via=outcome.variant)


def status_from_failures(failures: Iterable[Failure]) -> VersionStatus:
    """Pick the status for a probe whose every strategy failed.

    Privilege problems and disabled features are warnings, everything else is Missing.
    """
    kinds = {failure.kind for failure in failures}
    if PERMISSION_DENIED in kinds:
        return Warn(CHECK_MANUALLY)
    if FEATURE_DISABLED in kinds:
        return Warn(DISABLED)
    return Missing()


def run_probe(
    probe: Probe,
    strategies: Mapping[str, DiscoveryStrategy],
    threshold: int = VERBOSE_THRESHOLD,
) -> VersionStatus:
    """Resolve one probe through its strategy chain; the first Success wins."""
    failures: list[Failure] = []

    for name in probe.strategies:
        outcome = strategies[name].resolve(probe)
        if outcome.ok:
            status = status_from_success(probe, outcome, threshold)
            logger.debug(f"{probe.name}: {name} strategy found {status}")
            return status
        logger.debug(f"{probe.name}: {name} strategy failed ({outcome.kind}: {outcome.reason})")
        failures.append(outcome)

    return status_from_failures(failures)


def _run_guarded(
    probe: Probe,
    strategies: Mapping[str, DiscoveryStrategy],
    threshold: int,
) -> VersionStatus:
    try:
        return run_probe(probe, strategies, threshold)
    except Exception as e:
        raise FatalRunError(probe.name, e) from e


def run_probes(
    probes: Iterable[Probe],
    store: ResultStore,
    strategies: Mapping[str, DiscoveryStrategy] | None = None,
    config: Config | None = None,
    on_result: ResultCallback | None = None,
) -> ResultStore:
    """Run every probe and record its status in store.

    Probes run sequentially in declaration order unless preferences.max_workers
    is greater than one.

    Raises:
        FatalRunError: When an unexpected error escapes a probe. Results recorded
            before it stay in store.
    """
    config = config or Config()
    prefs = config.preferences
    strategies = strategies or build_strategies(prefs.timeout_seconds, config.search_roots)
    probes = list(probes)

    def record(probe: Probe, status: VersionStatus) -> None:
        store.put(probe.name, status)
        if on_result:
            on_result(probe.name, status)

    if prefs.max_workers <= 1 or len(probes) <= 1:
        for probe in probes:
            record(probe, _run_guarded(probe, strategies, prefs.verbose_threshold))
        return store

    with ThreadPoolExecutor(max_workers=min(prefs.max_workers, len(probes))) as executor:
        future_to_probe = {
            executor.submit(_run_guarded, probe, strategies, prefs.verbose_threshold): probe
            for probe in probes
        }
        try:
            for future in as_completed(future_to_probe):
                record(future_to_probe[future], future.result())
        except FatalRunError:
            executor.shutdown(wait=False, cancel_futures=True)
            raise

    return store


def run_audit(
    probes: Iterable[Probe],
    config: Config | None = None,
    strategies: Mapping[str, DiscoveryStrategy] | None = None,
    on_result: ResultCallback | None = None,
) -> tuple[ResultStore, FatalRunError | None]:
    """Top-level run: set the console title, run all probes, always restore.

    Returns:
        The (possibly partial) store and the fatal error that stopped the run, if any
    """
    store = ResultStore()
    fatal: FatalRunError | None = None

    with console_title(CONSOLE_TITLE):
        try:
            run_probes(probes, store, strategies=strategies, config=config, on_result=on_result)
        except FatalRunError as e:
            logger.exception(f"Run aborted: {e}")
            fatal = e
        except Exception as e:
            logger.exception(f"Run aborted outside any probe: {e}")
            fatal = FatalRunError("<run>", e)

    return store, fatal
