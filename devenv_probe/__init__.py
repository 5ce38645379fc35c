"""
devenv-probe - Tool presence and version discovery.

Core Modules:
- Probes: catalog-declared checks, one per external tool or OS feature
- Strategies: PATH execution, registry lookup, filesystem search, metadata read,
  dual-mode invocation, optional-feature query
- Normalization: verbose-output cleanup and pattern extraction
- Results: result store, engine and report rendering
"""

__version__ = "1.0.0"

VERSION = __version__

from .outcome import Success, Failure, DiscoveryOutcome
from .results import Found, Missing, Warn, VersionStatus, ResultStore
from .normalize import normalize_output, extract_version, VERBOSE_THRESHOLD
from .probes import Probe, ProbeCatalog, RegistryLocation, InvocationForm
from .strategies import (
    DiscoveryStrategy,
    DirectExecution,
    RegistryResolution,
    FilesystemSearch,
    MetadataRead,
    DualMode,
    FeatureQueryStrategy,
    build_strategies,
)
from .engine import FatalRunError, run_probe, run_probes, run_audit
from .render import classify, format_status_line, render_summary, render_json
from .config import Config, Preferences, load_config, load_config_file, validate_config
from .logging_config import setup_logging

__all__ = [
    "__version__",
    "VERSION",
    # Outcomes and statuses
    "Success",
    "Failure",
    "DiscoveryOutcome",
    "Found",
    "Missing",
    "Warn",
    "VersionStatus",
    "ResultStore",
    # Normalization
    "normalize_output",
    "extract_version",
    "VERBOSE_THRESHOLD",
    # Probes
    "Probe",
    "ProbeCatalog",
    "RegistryLocation",
    "InvocationForm",
    # Strategies
    "DiscoveryStrategy",
    "DirectExecution",
    "RegistryResolution",
    "FilesystemSearch",
    "MetadataRead",
    "DualMode",
    "FeatureQueryStrategy",
    "build_strategies",
    # Engine and rendering
    "FatalRunError",
    "run_probe",
    "run_probes",
    "run_audit",
    "classify",
    "format_status_line",
    "render_summary",
    "render_json",
    # Configuration and logging
    "Config",
    "Preferences",
    "load_config",
    "load_config_file",
    "validate_config",
    "setup_logging",
]
