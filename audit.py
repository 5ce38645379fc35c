#!/usr/bin/env python3
"""
devenv-probe - Developer tool presence and version discovery.

Runs every probe in the catalog (PATH, registry, filesystem search, file
metadata, dual-mode invocation, optional-feature state) and prints a report.
Strictly read-only: nothing is installed or changed.

Usage:
    audit.py                 # Probe every tool in the catalog
    audit.py git node        # Probe selected tools only
    audit.py --json          # Machine-readable report on stdout
    audit.py --list          # Show declared probes
"""

import argparse
import sys

from devenv_probe.config import load_config, validate_config
from devenv_probe.engine import run_audit
from devenv_probe.logging_config import setup_logging
from devenv_probe.probes import ProbeCatalog
from devenv_probe.render import print_status_line, print_summary, render_json


def cmd_list(probes) -> int:
    """Print declared probes with their strategy chains."""
    for probe in probes:
        print(f"{probe.name}|{' > '.join(probe.strategies)}|{probe.target or probe.feature}")
    return 0


def cmd_probe(args: argparse.Namespace, config, probes, logger) -> int:
    """Run the probes and print the report. Partial results survive a fatal error."""
    color = config.preferences.color and sys.stdout.isatty()

    on_result = None
    if not args.json:
        print(f"# Probing {len(probes)} tools...", file=sys.stderr)
        on_result = lambda name, status: print_status_line(name, status, color=color)  # noqa: E731

    store, fatal = run_audit(probes, config=config, on_result=on_result)

    if args.json:
        print(render_json(store, {"partial": fatal is not None}))
    else:
        print_summary(store, color=color)

    if fatal is not None:
        logger.error(f"Report is partial: {len(store)} of {len(probes)} probes completed")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="devenv-probe - Tool presence and version discovery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Configuration file (YAML or JSON)")
    parser.add_argument("--catalog", help="Probe catalog directory")
    parser.add_argument("--timeout", type=int, help="Timeout per external invocation in seconds")
    parser.add_argument("--json", action="store_true", help="Print a JSON report instead of text")
    parser.add_argument("--list", action="store_true", help="List declared probes and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--log-file", help="Also write the full debug log to this file")
    parser.add_argument("tools", nargs="*", help="Specific probes to run (case-insensitive names)")

    args = parser.parse_args(argv)

    logger = setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        config = load_config(args.config, verbose=args.verbose)
        config = config.with_overrides(timeout_seconds=args.timeout, catalog_dir=args.catalog)
    except ValueError as e:
        logger.error(str(e))
        return 2

    for warning in validate_config(config):
        logger.warning(warning)

    catalog = ProbeCatalog(config.catalog_dir or None)
    probes = catalog.filter(args.tools) if args.tools else catalog.all_probes()
    probes = [p for p in probes if not config.is_skipped(p.name)]

    if args.tools and not probes:
        logger.error(f"No probes match: {', '.join(args.tools)}")
        return 2

    if args.list:
        return cmd_list(probes)

    return cmd_probe(args, config, probes, logger)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
