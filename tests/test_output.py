"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_record and print_table in JSON and plain modes
- Logger configuration
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from gemkey import output as output_module
from gemkey.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("gemkey.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("gemkey.output._is_tty", lambda: True)


@pytest.fixture()
def restore_logger():
    """Restore the ``gemkey`` logger after a test reconfigures it."""
    logger = logging.getLogger("gemkey")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        assert mgr.format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_disables_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_data("https://rubygems.org")
        captured = capfd.readouterr()
        assert captured.out == "https://rubygems.org\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("something happened")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "something happened" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.error("Access Denied.")
        assert capfd.readouterr().err == "Error: Access Denied.\n"

    def test_error_with_markup_characters_in_rich_mode(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.error("key [ci] missing")
        assert "key [ci] missing" in capfd.readouterr().err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_suggest(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("info")
        mgr.success("done")
        mgr.suggest("next")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("bad")
        mgr.print_data("data")
        captured = capfd.readouterr()
        assert "bad" in captured.err
        assert "data" in captured.out

    def test_debug_hidden_by_default(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("visible")
        assert "[debug] visible" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Records and tables
# ------------------------------------------------------------------ #


class TestRecordsAndTables:
    def test_record_as_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_record({"name": "ci", "key": "a5fd..."})
        assert json.loads(capfd.readouterr().out) == {"name": "ci", "key": "a5fd..."}

    def test_record_as_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_record({"name": "ci", "key": "a5fd..."})
        assert capfd.readouterr().out == "name\tci\nkey\ta5fd...\n"

    def test_table_as_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Identifier", "Key"], [["ci", "a5fd..."]])
        assert json.loads(capfd.readouterr().out) == [{"Identifier": "ci", "Key": "a5fd..."}]

    def test_table_as_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["Identifier", "Key"], [["ci", "a5fd..."]])
        assert capfd.readouterr().out == "Identifier\tKey\nci\ta5fd...\n"


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_warning_level_by_default(self, non_tty, restore_logger):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).configure_logging()
        assert restore_logger.level == logging.WARNING
        assert len(restore_logger.handlers) == 1
        assert restore_logger.propagate is False

    def test_debug_level_with_verbose(self, non_tty, restore_logger):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).configure_logging()
        assert restore_logger.level == logging.DEBUG

    def test_reconfigure_replaces_handler(self, non_tty, restore_logger):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.configure_logging()
        mgr.configure_logging()
        assert len(restore_logger.handlers) == 1


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data")
        output_module.info("info")
        captured = capfd.readouterr()
        assert captured.out == "data\n"
        assert captured.err == "info\n"
