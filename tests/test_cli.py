"""Tests for the tapconf CLI."""

import json
import re

import pytest
from typer.testing import CliRunner

from tapconf import __version__
from tapconf.cli import EXIT_FAILURE, app

# ANSI escape sequence pattern for stripping colors from output
ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

pytestmark = pytest.mark.usefixtures("restore_logging")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_ESCAPE_PATTERN.sub("", text)


class TestCliVersion:
    """Tests for the version flag."""

    def test_version_flag(self) -> None:
        """Ensure --version prints the package version."""
        runner = CliRunner()
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.stdout.strip() == __version__


class TestCliHelp:
    def test_help_lists_commands(self) -> None:
        runner = CliRunner()
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert "run" in output
        assert "expect" in output


class TestCliRun:
    """Tests for the run command."""

    def test_run_passes(self) -> None:
        """A small run reports PASSED with the closed-form counters."""
        runner = CliRunner()
        result = runner.invoke(
            app, ["run", "-n", "2", "-m", "20", "--settle", "0.5", "--log-level", "ERROR"]
        )

        assert result.exit_code == 0, result.output
        assert "PASSED run_" in result.stdout
        assert "msg_count=21" in result.stdout
        assert "copy_count=22" in result.stdout

    def test_run_json_report(self) -> None:
        """--json prints the full report."""
        runner = CliRunner()
        result = runner.invoke(
            app,
            ["run", "-n", "3", "-m", "10", "--observers", "1", "--json", "--log-level", "ERROR"],
        )

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["passed"] is True
        assert report["msg_count"] == 11
        assert report["copy_count"] == 12
        assert report["listing_checks"] == 3
        assert report["phase"] == "terminal"
        assert report["observer_copy_counts"] == {"copyunistr0": 12}

    def test_settings_from_environment(self) -> None:
        """TAPCONF_* variables fill in options not given on the command line."""
        runner = CliRunner()
        result = runner.invoke(
            app,
            ["run", "--json", "--log-level", "ERROR"],
            env={"TAPCONF_MAX_MSG_COUNT": "6", "TAPCONF_N_ADDRS": "4"},
        )

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["n_addrs"] == 4
        assert report["msg_count"] == 7

    def test_invalid_fan_out_fails(self) -> None:
        """A non-positive N is a configuration error and exits 1."""
        runner = CliRunner()
        result = runner.invoke(app, ["run", "--n-addrs", "0", "--log-level", "ERROR"])

        assert result.exit_code == EXIT_FAILURE
        assert "FAILED" in result.output
        assert "n_addrs" in result.output

    def test_bad_log_format(self) -> None:
        runner = CliRunner()
        result = runner.invoke(app, ["run", "--log-format", "xml"])

        assert result.exit_code != 0

    def test_negative_observers(self) -> None:
        runner = CliRunner()
        result = runner.invoke(app, ["run", "--observers", "-1"])

        assert result.exit_code != 0


class TestCliExpect:
    def test_expect_reference_scenario(self) -> None:
        runner = CliRunner()
        result = runner.invoke(app, ["expect"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "n_addrs": 2,
            "max_msg_count": 200,
            "msg_count": 201,
            "copy_count": 202,
        }

    def test_expect_rejects_zero_fan_out(self) -> None:
        runner = CliRunner()
        result = runner.invoke(app, ["expect", "-n", "0"])

        assert result.exit_code != 0
