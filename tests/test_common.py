"""
Tests for shared helpers (devenv_probe/common.py).
"""

import io
import os
from unittest.mock import patch

import pytest

from devenv_probe import common
from devenv_probe.common import console_title, env_int


class FakeTerminal(io.StringIO):
    def isatty(self):
        return True


class TestEnvInt:
    """Tests for env_int."""

    @patch.dict(os.environ, {"PROBE_X": "12"})
    def test_value(self):
        assert env_int("PROBE_X", 3) == 12

    @patch.dict(os.environ, {"PROBE_X": "soon"})
    def test_malformed(self):
        assert env_int("PROBE_X", 3) == 3

    @patch.dict(os.environ, {}, clear=True)
    def test_unset(self):
        assert env_int("PROBE_X", 3) == 3


@patch.object(common, "IS_WINDOWS", False)
class TestConsoleTitleTerminal:
    """Tests for console_title on xterm-style terminals."""

    def test_title_pushed_and_popped(self):
        stream = FakeTerminal()
        with console_title("devenv-probe", stream=stream):
            assert stream.getvalue() == "\033[22;0t\033]0;devenv-probe\007"
        assert stream.getvalue().endswith("\033[23;0t\033[0m")

    def test_restored_on_error(self):
        stream = FakeTerminal()
        with pytest.raises(RuntimeError):
            with console_title("devenv-probe", stream=stream):
                raise RuntimeError("boom")
        assert stream.getvalue().endswith("\033[23;0t\033[0m")

    def test_non_terminal_untouched(self):
        stream = io.StringIO()
        with console_title("devenv-probe", stream=stream):
            pass
        assert stream.getvalue() == ""


@patch.object(common, "IS_WINDOWS", True)
class TestConsoleTitleWindows:
    """Tests for console_title with the Win32 console API."""

    @patch.object(common, "_set_windows_title")
    @patch.object(common, "_get_windows_title", return_value="cmd.exe")
    def test_previous_title_restored(self, mock_get, mock_set):
        with pytest.raises(ValueError):
            with console_title("devenv-probe", stream=io.StringIO()):
                raise ValueError("boom")
        assert [c.args[0] for c in mock_set.call_args_list] == ["devenv-probe", "cmd.exe"]

    @patch.object(common, "_set_windows_title")
    @patch.object(common, "_get_windows_title", side_effect=OSError("no console"))
    def test_no_console(self, mock_get, mock_set):
        with console_title("devenv-probe", stream=io.StringIO()):
            pass
        mock_set.assert_not_called()
