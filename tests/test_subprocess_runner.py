#!/usr/bin/env python3
"""Tests for SubprocessRunner across both completion shapes."""

import locale
from unittest.mock import MagicMock

import pytest

from sysshim.backends.completion import SentinelCapture, TriValueStrategy
from sysshim.backends.subprocess_runner import SubprocessRunner
from sysshim.config import SysshimSettings
from sysshim.interfaces.process import (
    CANNOT_OPEN_PROCESS,
    CompletionStrategy,
    ExecResult,
    ProcessCompletion,
)

pytestmark = pytest.mark.posix


class TestExecResult:
    """Test the normalized result type."""

    def test_unpacks_as_triple(self):
        ok, code, output = ExecResult(success=False, code=3, output="x")
        assert (ok, code, output) == (False, 3, "x")

    def test_is_immutable(self):
        result = ExecResult(success=True, code=0)
        with pytest.raises(AttributeError):
            result.code = 1

    def test_cannot_open(self):
        result = ExecResult.cannot_open()
        assert result.success is False
        assert result.code == 1
        assert result.output == CANNOT_OPEN_PROCESS
        assert result.launch_failed is True

    def test_cannot_open_without_capture(self):
        assert ExecResult.cannot_open(captured=False).output is None


class TestExecute:
    """execute() against a real shell."""

    def test_exit_zero(self, shell_runner):
        result = shell_runner.execute("true")
        assert result.success is True
        assert result.code == 0
        assert result.output is None

    @pytest.mark.parametrize("code", [1, 2, 42, 255])
    def test_exit_nonzero(self, shell_runner, code):
        result = shell_runner.execute(f"exit {code}")
        assert result.success is False
        assert result.code == code

    def test_command_not_found_is_consistent(self, shell_runner):
        first = shell_runner.execute("sysshim-no-such-command-xyz >/dev/null 2>&1")
        second = shell_runner.execute("another-missing-command-abc >/dev/null 2>&1")
        assert first.success is False
        assert first.code != 0
        assert first.code == second.code

    def test_empty_command_is_passed_through(self, shell_runner):
        result = shell_runner.execute("")
        assert result.success is True
        assert result.code == 0


class TestRunCaptured:
    """run_captured() against a real shell."""

    def test_two_lines_without_trailing_newline(self, shell_runner):
        result = shell_runner.run_captured("printf 'line1\\nline2'")
        assert result.success is True
        assert result.code == 0
        assert result.output == "line1\nline2"

    def test_trailing_newline_is_preserved(self, shell_runner):
        result = shell_runner.run_captured("echo line1; echo line2")
        assert result.output == "line1\nline2\n"
        assert "__EXITCODE" not in result.output

    @pytest.mark.parametrize("code", [1, 3, 127, 200])
    def test_exit_code_recovered(self, shell_runner, code):
        result = shell_runner.run_captured(f"sh -c 'echo partial; exit {code}'")
        assert result.success is False
        assert result.code == code
        assert result.output == "partial\n"

    def test_stderr_is_merged(self, shell_runner):
        result = shell_runner.run_captured("sh -c 'echo out; echo err >&2'")
        assert result.success is True
        assert result.output == "out\nerr\n"

    def test_missing_command_reports_error_text(self, shell_runner):
        result = shell_runner.run_captured("sysshim-no-such-command-xyz")
        assert result.success is False
        assert result.code != 0
        assert "sysshim-no-such-command-xyz" in result.output

    def test_empty_output(self, shell_runner):
        result = shell_runner.run_captured("true")
        assert result.success is True
        assert result.output == ""

    def test_output_that_looks_like_sentinel(self, shell_runner):
        result = shell_runner.run_captured("echo __EXITCODE:9; true")
        assert result.code == 0
        assert result.output == "__EXITCODE:9\n"

    def test_undecodable_bytes_are_replaced(self, shell_runner):
        result = shell_runner.run_captured("printf 'a\\377b'")
        assert result.success is True
        assert result.code == 0
        expected = b"a\377b".decode(locale.getpreferredencoding(False), errors="replace")
        assert result.output == expected


class TestUnconfiguredLogging:
    """The library prints nothing until the application configures logging."""

    def test_runner_keeps_stdout_clean(self, shell_runner, capsys):
        capsys.readouterr()
        runner = SubprocessRunner(settings=shell_runner.settings)

        runner.execute("true")
        result = runner.run_captured("true")

        assert result.success is True
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestLaunchFailure:
    """Runner behaviour when the process cannot be started."""

    def _failing_strategy(self):
        strategy = MagicMock(spec=CompletionStrategy)
        strategy.name = "broken"
        strategy.run.side_effect = OSError("fork failed")
        strategy.capture.side_effect = OSError("fork failed")
        return strategy

    def test_run_captured_cannot_open(self):
        runner = SubprocessRunner(settings=SysshimSettings(), strategy=self._failing_strategy())
        result = runner.run_captured("echo hi")
        assert result == ExecResult(
            success=False, code=1, output="Cannot open process", launch_failed=True
        )

    def test_execute_cannot_open(self):
        runner = SubprocessRunner(settings=SysshimSettings(), strategy=self._failing_strategy())
        result = runner.execute("echo hi")
        assert result.success is False
        assert result.code == 1
        assert result.launch_failed is True

    def test_missing_shell_binary(self, temp_dir):
        strategy = TriValueStrategy(shell=str(temp_dir / "missing-sh"))
        runner = SubprocessRunner(settings=SysshimSettings(), strategy=strategy)
        assert runner.run_captured("true").launch_failed is True
        assert runner.execute("true").launch_failed is True


class TestRunnerWiring:
    """Runner construction and strategy plumbing."""

    def test_strategy_selected_once_from_settings(self):
        runner = SubprocessRunner(settings=SysshimSettings(completion_mode="encoded"))
        assert isinstance(runner.strategy, SentinelCapture)

    def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("SYSSHIM_COMPLETION_MODE", "tri-value")
        runner = SubprocessRunner()
        assert isinstance(runner.strategy, TriValueStrategy)

    def test_redirect_is_appended(self):
        strategy = MagicMock(spec=CompletionStrategy)
        strategy.capture.return_value = ("", ProcessCompletion(completed=True, code=0))
        runner = SubprocessRunner(settings=SysshimSettings(), strategy=strategy)

        runner.run_captured("ls /tmp")

        strategy.capture.assert_called_once_with("ls /tmp 2>&1")

    def test_strategy_without_exit_code_fails_safe(self):
        strategy = MagicMock(spec=CompletionStrategy)
        strategy.name = "opaque"
        strategy.capture.return_value = ("data", None)
        runner = SubprocessRunner(settings=SysshimSettings(), strategy=strategy)

        result = runner.run_captured("cat x")

        assert result == ExecResult(success=False, code=1, output="data")
