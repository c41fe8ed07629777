"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes, including the logging level they imply
- format_response and print_table in JSON and plain modes
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from tokenbroker.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("tokenbroker.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("tokenbroker.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_plain_when_no_color(self, tty):
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_color_enabled(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert not _should_disable_color()


class TestStreams:
    def test_json_payload_on_stdout(self, capsys):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.format_response({"access-token": "abc", "expires_in": None})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"access-token": "abc", "expires_in": None}
        assert captured.err == ""

    def test_plain_payload(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response({"error": "Token request failed", "detail": {"a": 1}, "status": None})
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["error\tToken request failed", 'detail\t{"a": 1}', "status\t"]

    def test_diagnostics_on_stderr(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("hello")
        mgr.error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == ["hello", "Error: broken"]

    def test_quiet_suppresses_info_not_error(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.suggest("hidden too")
        mgr.error("shown")
        assert capsys.readouterr().err == "Error: shown\n"

    def test_table_json(self, capsys):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["name"], [["basic"], ["body"]])
        assert json.loads(capsys.readouterr().out) == [{"name": "basic"}, {"name": "body"}]


class TestLogging:
    @pytest.mark.parametrize(
        "quiet,verbose,level",
        [
            (False, False, logging.INFO),
            (True, False, logging.WARNING),
            (False, True, logging.DEBUG),
        ],
    )
    def test_log_level(self, quiet, verbose, level):
        mgr = OutputManager(format=OutputFormat.PLAIN, quiet=quiet, verbose=verbose)
        assert mgr.log_level() == level

    def test_configure_logging_replaces_handlers(self):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.configure_logging()
        mgr.configure_logging()
        logger = logging.getLogger("tokenbroker")
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_get(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
