"""
Discovery strategies.

Every strategy implements ``resolve(probe) -> DiscoveryOutcome`` and reports an
absent or broken tool as a Failure rather than raising. A probe's ``strategies``
chain names which ones apply and in what order.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional, Sequence

from . import detection, windows
from .detection import CommandResult, expand_path, find_executable, find_newest_file, run_capture
from .outcome import (
    EXECUTION_FAILURE,
    FEATURE_DISABLED,
    NOT_FOUND,
    PERMISSION_DENIED,
    TIMEOUT,
    DiscoveryOutcome,
    Failure,
    Success,
)
from .probes import InvocationForm, Probe

logger = logging.getLogger(__name__)

COMMAND_FAILED = "command failed or empty output"

RegistryReader = Callable[[str, str, str], Optional[str]]
VersionReader = Callable[[str], Optional[tuple[int, int, int]]]
FeatureQuery = Callable[[str, Optional[float]], Optional[str]]


def _marker_line(output: str, marker: str) -> str | None:
    for line in output.splitlines():
        if marker in line:
            return line.strip()
    return None


def execute(path: str, args: Sequence[str], probe: Probe, timeout: float | None = None) -> DiscoveryOutcome:
    """Run a resolved executable and turn the result into an outcome.

    Success needs exit status 0 and non-empty output, except for probes with a
    marker: a marker line anywhere in the output counts as success regardless of
    exit status, and becomes the text handed to normalization.
    """
    result: CommandResult = run_capture([path, *args], timeout=timeout)

    if result.error == "not_found":
        return Failure(f"{path}: not found", NOT_FOUND)
    if result.error == "timeout":
        return Failure(f"{path}: timed out", TIMEOUT)
    if result.error:
        return Failure(f"{path}: could not be started ({result.error})", EXECUTION_FAILURE)

    if probe.marker:
        line = _marker_line(result.output, probe.marker)
        if line:
            return Success(raw_text=line, path=path)

    if not result.succeeded:
        return Failure(COMMAND_FAILED, EXECUTION_FAILURE)

    return Success(raw_text=result.output, path=path)


class DiscoveryStrategy:
    """Base class: resolve a probe to raw version text or a Failure."""

    name = ""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout or detection.TIMEOUT_SECONDS

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        raise NotImplementedError


class DirectExecution(DiscoveryStrategy):
    """Invoke the target from PATH with its argument."""

    name = "path"

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        return self.invoke(probe.target, probe.args, probe)

    def invoke(self, target: str, args: Sequence[str], probe: Probe) -> DiscoveryOutcome:
        path = find_executable(target)
        if not path:
            return Failure(f"{target}: not on PATH", NOT_FOUND)
        return execute(path, args, probe, self.timeout)


class RegistryResolution(DiscoveryStrategy):
    """Find the install directory in the registry, then run the binary there."""

    name = "registry"

    def __init__(self, timeout: float | None = None, reader: RegistryReader | None = None):
        super().__init__(timeout)
        self.reader = reader or windows.read_registry_value

    def locate(self, probe: Probe) -> str | None:
        for location in probe.registry:
            directory = self.reader(location.hive, location.subkey, location.value)
            if not directory:
                continue
            # REG_EXPAND_SZ values come back unexpanded
            candidate = os.path.join(expand_path(directory.strip().strip('"')), probe.filename)
            if os.path.isfile(candidate):
                return candidate
            logger.debug(f"{probe.name}: {location.key} points to {directory}, but {candidate} is missing")
        return None

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        path = self.locate(probe)
        if not path:
            return Failure("no registry location yielded an install directory", NOT_FOUND)
        return execute(path, probe.args, probe, self.timeout)


class FilesystemSearch(DiscoveryStrategy):
    """Search known installation roots for the executable; newest match wins."""

    name = "search"

    def __init__(self, timeout: float | None = None, extra_roots: Sequence[str] = ()):
        super().__init__(timeout)
        self.extra_roots = tuple(extra_roots)

    def locate(self, probe: Probe) -> str | None:
        roots = [expand_path(root) for root in (*probe.search_roots, *self.extra_roots)]
        return find_newest_file(roots, probe.filename)

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        path = self.locate(probe)
        if not path:
            return Failure(f"{probe.filename}: not found under search roots", NOT_FOUND)
        return execute(path, probe.args, probe, self.timeout)


class MetadataRead(DiscoveryStrategy):
    """Read the version resource of a binary that must not be launched."""

    name = "metadata"

    def __init__(
        self,
        timeout: float | None = None,
        registry: RegistryResolution | None = None,
        search: FilesystemSearch | None = None,
        reader: VersionReader | None = None,
    ):
        super().__init__(timeout)
        self.registry = registry or RegistryResolution(timeout)
        self.search = search or FilesystemSearch(timeout)
        self.reader = reader or windows.read_file_version

    def locate(self, probe: Probe) -> str | None:
        for path in probe.paths:
            expanded = expand_path(path)
            if os.path.isfile(expanded):
                return expanded
        if probe.registry:
            path = self.registry.locate(probe)
            if path:
                return path
        if probe.search_roots:
            path = self.search.locate(probe)
            if path:
                return path
        if probe.target:
            return find_executable(probe.target)
        return None

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        path = self.locate(probe)
        if not path:
            return Failure(f"{probe.filename}: not found", NOT_FOUND)

        try:
            version = self.reader(path)
        except OSError as e:
            return Failure(f"{path}: version resource unreadable ({e})", EXECUTION_FAILURE)
        if not version:
            return Failure(f"{path}: no version resource", EXECUTION_FAILURE)

        major, minor, build = version
        return Success(raw_text=f"{major}.{minor} (Build {build})", path=path, final=True)


class DualMode(DiscoveryStrategy):
    """Try the modern invocation, then the legacy one under its own display name."""

    name = "dual"

    def __init__(self, timeout: float | None = None, direct: DirectExecution | None = None):
        super().__init__(timeout)
        self.direct = direct or DirectExecution(timeout)

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        primary = self.direct.invoke(probe.target, probe.args, probe)
        if primary.ok:
            return primary

        fallback: InvocationForm = probe.fallback
        logger.debug(f"{probe.name}: {primary.reason}; trying {fallback.name}")
        legacy = self.direct.invoke(fallback.target, fallback.args, probe)
        if not legacy.ok:
            return legacy
        return Success(raw_text=legacy.raw_text, variant=fallback.name, path=legacy.path)


class FeatureQueryStrategy(DiscoveryStrategy):
    """Resolve an OS optional feature by its enablement state."""

    name = "feature"

    def __init__(self, timeout: float | None = None, query: FeatureQuery | None = None):
        super().__init__(timeout)
        self.query = query or windows.query_optional_feature

    def resolve(self, probe: Probe) -> DiscoveryOutcome:
        state = self.query(probe.feature, self.timeout)
        if state is None:
            return Failure(f"{probe.feature}: state query could not be answered", PERMISSION_DENIED)
        if state == windows.FEATURE_ENABLED:
            return Success(raw_text=windows.FEATURE_ENABLED, final=True)
        return Failure(f"{probe.feature}: {state}", FEATURE_DISABLED)


def build_strategies(timeout: float | None = None, search_roots: Sequence[str] = ()) -> dict[str, DiscoveryStrategy]:
    """Create one instance of every strategy, keyed by the name probes refer to."""
    direct = DirectExecution(timeout)
    registry = RegistryResolution(timeout)
    search = FilesystemSearch(timeout, extra_roots=search_roots)
    return {
        "path": direct,
        "registry": registry,
        "search": search,
        "metadata": MetadataRead(timeout, registry=registry, search=search),
        "dual": DualMode(timeout, direct=direct),
        "feature": FeatureQueryStrategy(timeout),
    }
