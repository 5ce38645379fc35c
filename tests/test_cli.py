"""
Tests for the command-line entry point (audit.py).
"""

import json
from unittest.mock import patch

import pytest

import audit
from devenv_probe.engine import FatalRunError
from devenv_probe.results import Found, Missing, ResultStore, Warn


def write_catalog(directory):
    entries = [
        {"name": "Git", "target": "git"},
        {"name": "Java", "target": "java", "arg": "-version"},
        {"name": "WSL", "strategies": ["feature"], "feature": "Microsoft-Windows-Subsystem-Linux"},
    ]
    for i, entry in enumerate(entries):
        (directory / f"{i:02d}.json").write_text(json.dumps(entry), encoding="utf-8")
    return str(directory)


def fake_run(probes, config=None, on_result=None):
    statuses = {"Git": Found("2.43.0"), "Java": Missing(), "WSL": Warn("Check manually")}
    store = ResultStore()
    for probe in probes:
        store.put(probe.name, statuses[probe.name])
        if on_result:
            on_result(probe.name, statuses[probe.name])
    return store, None


@pytest.fixture(autouse=True)
def no_config_files():
    with patch("devenv_probe.config.CONFIG_LOCATIONS", []):
        yield


class TestMain:
    """Tests for audit.main."""

    @patch("audit.run_audit", side_effect=fake_run)
    def test_text_report(self, mock_run, tmp_path, capsys):
        code = audit.main(["--catalog", write_catalog(tmp_path), "--quiet"])
        out = capsys.readouterr().out

        assert code == 0
        assert "[OK] Git: 2.43.0" in out
        assert "[X] Java not found..." in out
        assert "[!] WSL (Check manually)" in out
        assert "3 probes: 1 found, 1 missing, 1 warnings" in out

    @patch("audit.run_audit", side_effect=fake_run)
    def test_json_report(self, mock_run, tmp_path, capsys):
        code = audit.main(["--catalog", write_catalog(tmp_path), "--json", "--quiet"])
        doc = json.loads(capsys.readouterr().out)

        assert code == 0
        assert doc["__meta__"]["partial"] is False
        assert [p["name"] for p in doc["probes"]] == ["Git", "Java", "WSL"]

    @patch("audit.run_audit", side_effect=fake_run)
    def test_tool_filter(self, mock_run, tmp_path):
        audit.main(["--catalog", write_catalog(tmp_path), "--quiet", "git"])
        probes = mock_run.call_args[0][0]
        assert [p.name for p in probes] == ["Git"]

    def test_unknown_tool(self, tmp_path):
        assert audit.main(["--catalog", write_catalog(tmp_path), "--quiet", "nope"]) == 2

    def test_list(self, tmp_path, capsys):
        code = audit.main(["--catalog", write_catalog(tmp_path), "--list", "--quiet"])
        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert lines == ["Git|path|git", "Java|path|java", "WSL|feature|Microsoft-Windows-Subsystem-Linux"]

    @patch("audit.run_audit", side_effect=fake_run)
    def test_skip_from_config(self, mock_run, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("skip: [WSL]\n", encoding="utf-8")
        catalog = tmp_path / "catalog"
        catalog.mkdir()
        audit.main(["--config", str(config), "--catalog", write_catalog(catalog), "--quiet"])
        assert [p.name for p in mock_run.call_args[0][0]] == ["Git", "Java"]

    @patch("audit.run_audit", side_effect=fake_run)
    def test_timeout_override(self, mock_run, tmp_path):
        audit.main(["--catalog", write_catalog(tmp_path), "--timeout", "4", "--quiet"])
        assert mock_run.call_args[1]["config"].preferences.timeout_seconds == 4

    def test_bad_config(self, tmp_path):
        assert audit.main(["--config", str(tmp_path / "missing.yml"), "--quiet"]) == 2

    def test_fatal_error_still_reports(self, tmp_path, capsys):
        store = ResultStore()
        store.put("Git", Found("2.43.0"))
        fatal = FatalRunError("Java", RuntimeError("boom"))

        with patch("audit.run_audit", return_value=(store, fatal)):
            code = audit.main(["--catalog", write_catalog(tmp_path), "--quiet"])

        assert code == 1
        assert "[OK] Git: 2.43.0" in capsys.readouterr().out

    @patch("devenv_probe.detection.shutil.which", return_value=None)
    def test_end_to_end_nothing_installed(self, mock_which, tmp_path, capsys):
        """Test a real run with no tools installed reports every probe and exits 0."""
        with patch("devenv_probe.strategies.windows.query_optional_feature", return_value=None):
            code = audit.main(["--catalog", write_catalog(tmp_path), "--json", "--quiet"])
        doc = json.loads(capsys.readouterr().out)

        assert code == 0
        assert {p["name"]: p["value"] for p in doc["probes"]} == {
            "Git": "Missing",
            "Java": "Missing",
            "WSL": "Warning: Check manually",
        }
