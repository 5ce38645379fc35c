"""
Logging setup for devenv-probe runs.

Console output goes to stderr so the report on stdout (text or JSON) stays clean.
Module loggers are children of ``devenv_probe`` and need no setup of their own.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .common import LOGGER_NAME
from .render import RED, RESET, YELLOW


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the package logger for a probe run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving every record, including strategy failures
        verbose: Log strategy fall-through at DEBUG on the console
        quiet: No console output (file only)
        propagate: Allow log propagation (useful for testing)
    """
    if verbose:
        effective_level = logging.DEBUG
    elif quiet:
        effective_level = logging.WARNING
    else:
        effective_level = getattr(logging, level.upper())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else effective_level)
    logger.handlers.clear()

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(effective_level)
        console_handler.setFormatter(LevelFormatter(use_colors=sys.stderr.isatty()))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger


class LevelFormatter(logging.Formatter):
    """Prefixes warnings and errors with their level; info and debug lines stay plain."""

    LEVEL_COLORS = {
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def __init__(self, use_colors: bool = True):
        super().__init__("%(message)s")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno < logging.WARNING:
            return message
        prefix = record.levelname
        if self.use_colors:
            prefix = f"{self.LEVEL_COLORS.get(record.levelno, '')}{prefix}{RESET}"
        return f"{prefix}: {message}"
