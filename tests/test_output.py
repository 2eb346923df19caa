"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response in JSON, plain and Rich formats
- Spinner lifecycle
- report_error rendering of CommanderError
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from lord_commander import output as output_module
from lord_commander.exceptions import CommanderError, FileSystemError
from lord_commander.output import (
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
    monkeypatch.setattr("lord_commander.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("lord_commander.output._is_tty", lambda: True)


def _plain(**kwargs) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True, **kwargs)


# ------------------------------------------------------------------ #
# Format resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        _plain().print_data("complete -F _f mycli")
        captured = capfd.readouterr()
        assert captured.out == "complete -F _f mycli\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["success", "warning", "error", "suggest", "progress"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(_plain(), method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_prefixes_without_color(self, capfd, non_tty):
        mgr = _plain(verbose=True)
        mgr.warning("w")
        mgr.error("e")
        mgr.suggest("s")
        mgr.debug("d")
        err = capfd.readouterr().err.splitlines()
        assert err == ["Warning: w", "Error: e", "→ s", "[debug] d"]


class TestQuietAndVerbose:
    @pytest.mark.parametrize("method", ["success", "suggest", "progress"])
    def test_quiet_suppresses(self, capfd, non_tty, method):
        getattr(_plain(quiet=True), method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps_problems(self, capfd, non_tty, method):
        getattr(_plain(quiet=True), method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_quiet_keeps_data(self, capfd, non_tty):
        _plain(quiet=True).print_data("data")
        assert capfd.readouterr().out == "data\n"

    def test_debug_needs_verbose(self, capfd, non_tty):
        _plain().debug("hidden")
        assert capfd.readouterr().err == ""
        _plain(verbose=True).debug("shown")
        assert "shown" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# format_response
# ------------------------------------------------------------------ #


STATUS = {"cli": "mycli", "shell": "bash", "installed": True, "path": None}


class TestFormatResponse:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(STATUS)
        assert json.loads(capfd.readouterr().out) == STATUS

    def test_json_string_passes_through(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response("raw")
        assert capfd.readouterr().out == "raw\n"

    def test_plain_dict_is_tab_separated(self, capfd, non_tty):
        _plain().format_response(STATUS)
        lines = capfd.readouterr().out.splitlines()
        assert lines == ["cli\tmycli", "shell\tbash", "installed\tTrue", "path\t"]

    def test_plain_list(self, capfd, non_tty):
        _plain().format_response(["bash", "zsh"])
        assert capfd.readouterr().out.splitlines() == ["bash", "zsh"]

    def test_rich_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response(STATUS)
        out = capfd.readouterr().out
        assert "mycli" in out
        assert "installed" in out

    def test_rich_string(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response("[not markup]")
        assert "[not markup]" in capfd.readouterr().out


# ------------------------------------------------------------------ #
# Spinner
# ------------------------------------------------------------------ #


class TestSpinner:
    def test_plain_lifecycle(self, capfd, non_tty):
        mgr = _plain()
        sp = mgr.spinner("Installing...").start()
        sp.success("Installed")
        err = capfd.readouterr().err.splitlines()
        assert err == ["Installing...", "Installed"]

    def test_context_manager_fails_on_exception(self, capfd, non_tty):
        mgr = _plain()
        with pytest.raises(RuntimeError):
            with mgr.spinner("Working..."):
                raise RuntimeError("boom")
        assert "Error: boom" in capfd.readouterr().err

    def test_context_manager_after_success(self, capfd, non_tty):
        mgr = _plain()
        with mgr.spinner("Working...") as sp:
            sp.success("Done")
        assert capfd.readouterr().err.splitlines() == ["Working...", "Done"]

    def test_quiet_spinner_is_silent(self, capfd, non_tty):
        with _plain(quiet=True).spinner("Working...") as sp:
            sp.success("Done")
        assert capfd.readouterr().err == ""

    def test_animates_only_on_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.PLAIN).animates is False


# ------------------------------------------------------------------ #
# Errors
# ------------------------------------------------------------------ #


class TestReportError:
    def test_message_and_suggestion(self, capfd, non_tty):
        _plain().report_error(FileSystemError("Cannot write /etc/x: Permission denied"))
        err = capfd.readouterr().err.splitlines()
        assert err[0] == "Error: Cannot write /etc/x: Permission denied"
        assert err[1].startswith("→ Check the file permissions")

    def test_no_suggestion(self, capfd, non_tty):
        _plain().report_error(CommanderError("plain failure"))
        assert capfd.readouterr().err == "Error: plain failure\n"

    def test_traceback_only_when_verbose(self, capfd, non_tty):
        try:
            raise CommanderError("with trace")
        except CommanderError as exc:
            _plain(verbose=True).report_error(exc)
        assert "Traceback" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self, non_tty):
        reset_output()
        first = get_output()
        assert get_output() is first

    def test_set_and_module_helpers(self, capfd, non_tty):
        set_output(_plain())
        output_module.print_data("via global")
        output_module.success("done")
        captured = capfd.readouterr()
        assert captured.out == "via global\n"
        assert captured.err == "done\n"
