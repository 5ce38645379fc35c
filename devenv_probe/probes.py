"""
Probe definitions and catalog loading.

Each probe is declared by one JSON document in a catalog directory. The catalog is
the only place tools are listed; the engine has no tool-specific code paths.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_ARGS = ("--version",)
DEFAULT_CATALOG_DIR = Path(__file__).parent / "catalog"

STRATEGY_NAMES = ("path", "registry", "search", "metadata", "dual", "feature")


@dataclass(frozen=True)
class RegistryLocation:
    """Registry key (with hive prefix) and the value holding an install directory."""
    key: str
    value: str = "InstallLocation"

    @property
    def hive(self) -> str:
        return self.key.split("\\", 1)[0].upper()

    @property
    def subkey(self) -> str:
        parts = self.key.split("\\", 1)
        return parts[1] if len(parts) == 2 else ""

    @staticmethod
    def from_dict(data: dict[str, Any] | str) -> RegistryLocation:
        if isinstance(data, str):
            return RegistryLocation(key=data)
        return RegistryLocation(key=data["key"], value=data.get("value", "InstallLocation"))


@dataclass(frozen=True)
class InvocationForm:
    """Alternate way of invoking a tool, shown under its own display name."""
    name: str
    target: str
    args: tuple[str, ...] = DEFAULT_ARGS

    @staticmethod
    def from_dict(data: dict[str, Any]) -> InvocationForm:
        return InvocationForm(
            name=data["name"],
            target=data["target"],
            args=_parse_args(data.get("args", data.get("arg"))),
        )


@dataclass(frozen=True)
class Probe:
    """
    A declared check for one external tool or OS feature.

    Attributes:
        name: Display name, unique within a run
        target: Executable name or path to invoke
        args: Invocation arguments (default: --version)
        pattern: Optional regex with capture group(s) applied after normalization
        template: Format string over all capture groups (two-version tools)
        strategies: Ordered discovery strategy chain
        executable: File name looked up by registry/search/metadata strategies
        registry: Ordered registry locations holding an install directory
        search_roots: Directories searched recursively for the executable
        paths: Explicit candidate paths for metadata reads
        fallback: Legacy invocation form for dual-mode probes
        marker: Product-name marker; its presence counts as success despite exit code
        feature: OS optional-feature name for feature probes
    """
    name: str
    target: str = ""
    args: tuple[str, ...] = DEFAULT_ARGS
    pattern: re.Pattern[str] | None = None
    template: str = ""
    strategies: tuple[str, ...] = ("path",)
    executable: str = ""
    registry: tuple[RegistryLocation, ...] = ()
    search_roots: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    fallback: InvocationForm | None = None
    marker: str = ""
    feature: str = ""
    source: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Probe name must not be empty")

        unknown = [s for s in self.strategies if s not in STRATEGY_NAMES]
        if unknown or not self.strategies:
            raise ValueError(
                f"Probe '{self.name}': invalid strategies {list(self.strategies)}. "
                f"Must be a non-empty list of: {', '.join(STRATEGY_NAMES)}"
            )

        if "feature" in self.strategies and not self.feature:
            raise ValueError(f"Probe '{self.name}': feature strategy requires 'feature'")
        if "dual" in self.strategies and self.fallback is None:
            raise ValueError(f"Probe '{self.name}': dual strategy requires 'fallback'")
        if "registry" in self.strategies and not self.registry:
            raise ValueError(f"Probe '{self.name}': registry strategy requires 'registry'")
        if "search" in self.strategies and not self.search_roots:
            raise ValueError(f"Probe '{self.name}': search strategy requires 'search_roots'")
        if not self.target and set(self.strategies) - {"feature", "metadata"}:
            raise ValueError(f"Probe '{self.name}': 'target' is required")

        if self.template and self.pattern is not None and self.pattern.groups < 2:
            raise ValueError(f"Probe '{self.name}': template needs a pattern with two or more groups")

    @property
    def filename(self) -> str:
        """File name used when the tool is located on disk rather than on PATH."""
        return self.executable or Path(self.target).name

    @classmethod
    def declare(
        cls,
        target: str,
        name: str,
        arg: str = "--version",
        pattern: str | None = None,
        **options: Any,
    ) -> Probe:
        """Declare a probe from the (target, name, arg, pattern) surface."""
        if "registry" in options:
            options["registry"] = tuple(
                r if isinstance(r, RegistryLocation) else RegistryLocation.from_dict(r)
                for r in options["registry"]
            )
        for key in ("strategies", "search_roots", "paths"):
            if key in options:
                options[key] = tuple(options[key])
        return cls(
            name=name,
            target=target,
            args=_parse_args(arg),
            pattern=_compile(name, pattern),
            **options,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "") -> Probe:
        """Create a probe from a catalog document.

        Raises:
            ValueError: Missing fields, bad strategy chain, or invalid pattern
        """
        try:
            name = data["name"]
        except KeyError:
            raise ValueError("Catalog entry has no 'name'") from None

        fallback_data = data.get("fallback")
        strategies = data.get("strategies", ["path"])
        if isinstance(strategies, str):
            strategies = [strategies]

        try:
            return cls(
                name=name,
                target=data.get("target", ""),
                args=_parse_args(data.get("args", data.get("arg"))),
                pattern=_compile(name, data.get("pattern")),
                template=data.get("template", ""),
                strategies=tuple(strategies),
                executable=data.get("executable", ""),
                registry=tuple(RegistryLocation.from_dict(r) for r in data.get("registry", [])),
                search_roots=tuple(data.get("search_roots", [])),
                paths=tuple(data.get("paths", [])),
                fallback=InvocationForm.from_dict(fallback_data) if fallback_data else None,
                marker=data.get("marker", ""),
                feature=data.get("feature", ""),
                source=source,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Probe '{name}': malformed entry ({e})") from e


def _parse_args(value: Any) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_ARGS
    if isinstance(value, str):
        return tuple(value.split())
    return tuple(str(v) for v in value)


def _compile(name: str, pattern: str | None) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Probe '{name}': invalid pattern {pattern!r}: {e}") from e
    if compiled.groups < 1:
        raise ValueError(f"Probe '{name}': pattern {pattern!r} has no capture group")
    return compiled


class ProbeCatalog:
    """Loads probe declarations from catalog/*.json in file-name order."""

    def __init__(self, catalog_dir: str | Path | None = None):
        """
        Args:
            catalog_dir: Catalog directory (defaults to the bundled catalog)
        """
        self.catalog_dir = Path(catalog_dir) if catalog_dir else DEFAULT_CATALOG_DIR
        self._probes: dict[str, Probe] = {}
        self._load_catalog()

    def _load_catalog(self) -> None:
        if not self.catalog_dir.is_dir():
            logger.warning(f"Catalog directory not found: {self.catalog_dir}")
            return

        for json_file in sorted(self.catalog_dir.glob("*.json")):
            try:
                with open(json_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                probe = Probe.from_dict(data, source=str(json_file))
            except (OSError, json.JSONDecodeError, ValueError) as e:
                logger.error(f"Failed to load {json_file}: {e}")
                continue

            if probe.name in self._probes:
                logger.warning(
                    f"Duplicate probe name '{probe.name}' in {json_file.name}; "
                    f"replacing {Path(self._probes[probe.name].source).name}"
                )
                # Re-insert so the later declaration also takes the later position
                del self._probes[probe.name]
            self._probes[probe.name] = probe
            logger.debug(f"Loaded probe: {probe.name}")

        logger.debug(f"Loaded {len(self._probes)} probes from {self.catalog_dir}")

    def get(self, name: str) -> Probe | None:
        return self._probes.get(name)

    def all_probes(self) -> list[Probe]:
        """All probes in declaration order."""
        return list(self._probes.values())

    def filter(self, names: list[str]) -> list[Probe]:
        """Probes whose name matches one of names (case-insensitive), in declaration order."""
        wanted = {n.lower() for n in names}
        return [p for p in self._probes.values() if p.name.lower() in wanted]

    def __len__(self) -> int:
        return len(self._probes)
