"""
Configuration file parsing and management.

YAML files are parsed with PyYAML, ``.json`` files with json. Configurations from
multiple sources are merged (custom → project → user → defaults).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import env_int, vlog
from .normalize import VERBOSE_THRESHOLD


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".devenv-probe.yml",                                       # Project root (highest priority)
    ".devenv-probe.yaml",
    os.path.expanduser("~/.config/devenv-probe/config.yml"),   # User global
    os.path.expanduser("~/.config/devenv-probe/config.yaml"),
]

DEFAULT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class Preferences:
    """
    Run-time preferences.

    Attributes:
        timeout_seconds: Bound on every external invocation
        verbose_threshold: Longest first line still treated as a clean version line
        max_workers: Probes run concurrently (1 = sequential, declaration order)
        color: Colorize the console report
    """
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    verbose_threshold: int = VERBOSE_THRESHOLD
    max_workers: int = 1
    color: bool = True

    def __post_init__(self):
        if self.timeout_seconds < 1 or self.timeout_seconds > 60:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 60"
            )

        if self.verbose_threshold < 10:
            raise ValueError(
                f"Invalid verbose_threshold: {self.verbose_threshold}. "
                "Must be at least 10"
            )

        if self.max_workers < 1 or self.max_workers > 32:
            raise ValueError(
                f"Invalid max_workers: {self.max_workers}. "
                "Must be between 1 and 32"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary."""
        return Preferences(
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            verbose_threshold=data.get("verbose_threshold", VERBOSE_THRESHOLD),
            max_workers=data.get("max_workers", 1),
            color=data.get("color", True),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for a probe run.

    Attributes:
        version: Config schema version
        preferences: Run-time preferences
        catalog_dir: Probe catalog directory ("" = bundled catalog)
        search_roots: Extra roots appended to every filesystem search
        skip: Probe names excluded from the run
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    preferences: Preferences = field(default_factory=Preferences)
    catalog_dir: str = ""
    search_roots: tuple[str, ...] = ()
    skip: tuple[str, ...] = ()
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        return Config(
            version=data.get("version", 1),
            preferences=Preferences.from_dict(data.get("preferences", {}) or {}),
            catalog_dir=data.get("catalog_dir", "") or "",
            search_roots=tuple(data.get("search_roots", []) or []),
            skip=tuple(data.get("skip", []) or []),
            source=source,
        )

    def is_skipped(self, probe_name: str) -> bool:
        return probe_name.lower() in {s.lower() for s in self.skip}

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        defaults = Preferences()
        merged_preferences = Preferences(
            timeout_seconds=self.preferences.timeout_seconds if self.preferences.timeout_seconds != defaults.timeout_seconds else other.preferences.timeout_seconds,
            verbose_threshold=self.preferences.verbose_threshold if self.preferences.verbose_threshold != defaults.verbose_threshold else other.preferences.verbose_threshold,
            max_workers=self.preferences.max_workers if self.preferences.max_workers != defaults.max_workers else other.preferences.max_workers,
            color=self.preferences.color and other.preferences.color,
        )

        # Roots and skips accumulate; order follows priority
        merged_roots = self.search_roots + tuple(r for r in other.search_roots if r not in self.search_roots)
        merged_skip = self.skip + tuple(s for s in other.skip if s not in self.skip)

        return Config(
            version=self.version,
            preferences=merged_preferences,
            catalog_dir=self.catalog_dir or other.catalog_dir,
            search_roots=merged_roots,
            skip=merged_skip,
            source=self.source or other.source,
        )

    def with_overrides(self, timeout_seconds: int | None = None, catalog_dir: str | None = None) -> Config:
        """Apply command-line and environment overrides on top of file configuration."""
        timeout = timeout_seconds or env_int("DEVENV_PROBE_TIMEOUT_SECONDS", 0) or self.preferences.timeout_seconds
        color = self.preferences.color and os.environ.get("DEVENV_PROBE_COLOR", "1") == "1"
        return Config(
            version=self.version,
            preferences=Preferences(
                timeout_seconds=timeout,
                verbose_threshold=self.preferences.verbose_threshold,
                max_workers=self.preferences.max_workers,
                color=color,
            ),
            catalog_dir=catalog_dir or self.catalog_dir,
            search_roots=self.search_roots,
            skip=self.skip,
            source=self.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to a .yml/.yaml or .json configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None

    vlog(f"Loaded config successfully: {file_path}", verbose)
    return config


def load_config(custom_path: str | None = None, verbose: bool = False) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .devenv-probe.yml
    3. User ~/.config/devenv-probe/config.yml
    4. Default configuration

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return a list of warnings.

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    lowered = [s.lower() for s in config.skip]
    if len(lowered) != len(set(lowered)):
        warnings.append("Duplicate probe names in skip list")

    for root in config.search_roots:
        expanded = os.path.expanduser(os.path.expandvars(root))
        if not os.path.isdir(expanded):
            warnings.append(f"Search root does not exist: {root}")

    if config.catalog_dir and not os.path.isdir(config.catalog_dir):
        warnings.append(f"Catalog directory does not exist: {config.catalog_dir}")

    return warnings
