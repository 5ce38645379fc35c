"""
Tests for logging configuration (devenv_probe/logging_config.py).
"""

import logging
import tempfile
from pathlib import Path

from devenv_probe.common import vlog
from devenv_probe.logging_config import LevelFormatter, setup_logging


class TestSetupLogging:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self):
        logger = setup_logging()
        assert logger.name == "devenv_probe"
        assert logger.level == logging.INFO

    def test_setup_logging_verbose(self):
        assert setup_logging(verbose=True).level == logging.DEBUG

    def test_setup_logging_quiet(self):
        """Test quiet mode has no console handler."""
        logger = setup_logging(quiet=True)
        assert logger.level == logging.WARNING
        console_handlers = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert console_handlers == []

    def test_setup_logging_with_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "logs" / "probe.log"
            logger = setup_logging(log_file=str(log_file))
            logger.info("Probe run started")
            for handler in logger.handlers:
                handler.flush()
            assert "Probe run started" in log_file.read_text(encoding="utf-8")
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()

    def test_module_loggers_are_children(self):
        """Test module loggers inherit the package configuration."""
        setup_logging(verbose=True)
        child = logging.getLogger("devenv_probe.strategies")
        assert child.getEffectiveLevel() == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1


class TestVerboseLog:
    """Test verbose-only tracing through the package logger."""

    def test_vlog_reaches_package_logger(self, caplog):
        setup_logging(verbose=True, propagate=True)
        with caplog.at_level(logging.DEBUG, logger="devenv_probe"):
            vlog("Loading config from: probe.yml", verbose=True)
        assert "Loading config from: probe.yml" in caplog.text

    def test_vlog_silent_without_verbose(self, caplog, monkeypatch):
        monkeypatch.delenv("DEVENV_PROBE_DEBUG", raising=False)
        setup_logging(verbose=True, propagate=True)
        with caplog.at_level(logging.DEBUG, logger="devenv_probe"):
            vlog("hidden", verbose=False)
        assert "hidden" not in caplog.text


class TestLevelFormatter:
    """Test console level formatting."""

    def make_record(self, level=logging.ERROR, msg="probe failed"):
        return logging.LogRecord("devenv_probe", level, __file__, 1, msg, None, None)

    def test_error_with_colors(self):
        output = LevelFormatter(use_colors=True).format(self.make_record())
        assert output == "\033[31mERROR\033[0m: probe failed"

    def test_warning_without_colors(self):
        record = self.make_record(logging.WARNING, "Duplicate probe name 'Git'")
        assert LevelFormatter(use_colors=False).format(record) == "WARNING: Duplicate probe name 'Git'"

    def test_info_is_plain(self):
        record = self.make_record(logging.INFO, "Loaded 31 probes")
        assert LevelFormatter(use_colors=True).format(record) == "Loaded 31 probes"
