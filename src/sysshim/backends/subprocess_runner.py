"""Shell command runner normalizing both completion shapes."""

from typing import Optional

from ..config import SysshimSettings
from ..interfaces.process import (
    LAUNCH_FAILURE_CODE,
    CompletionStrategy,
    ExecResult,
    ProcessCompletion,
    ProcessRunner,
)
from ..logging import get_logger
from .completion import select_strategy

log = get_logger(__name__)


class SubprocessRunner(ProcessRunner):
    """Run shell commands through the completion strategy chosen at startup.

    Usage:
        runner = SubprocessRunner()
        ok, code, output = runner.run_captured("uname -a")
    """

    def __init__(
        self,
        settings: Optional[SysshimSettings] = None,
        strategy: Optional[CompletionStrategy] = None,
    ):
        self.settings = settings or SysshimSettings.from_env()
        self.strategy = strategy or select_strategy(self.settings)

    def execute(self, command: str) -> ExecResult:
        """Run a shell command without capturing its output."""
        try:
            completion = self.strategy.run(command)
        except OSError as exc:
            log.warning("command_launch_failed", command=command[:80], error=str(exc))
            return ExecResult.cannot_open(captured=False)

        log.debug("command_executed", command=command[:80], code=completion.code)
        return ExecResult.from_completion(completion)

    def run_captured(self, command: str) -> ExecResult:
        """Run a shell command, returning merged stdout/stderr with the result."""
        full_command = f"{command} 2>&1"
        try:
            output, completion = self.strategy.capture(full_command)
        except OSError as exc:
            log.warning("command_launch_failed", command=command[:80], error=str(exc))
            return ExecResult.cannot_open()

        if completion is None:
            log.debug("exit_code_unavailable", strategy=self.strategy.name)
            completion = ProcessCompletion(completed=False, code=LAUNCH_FAILURE_CODE)

        log.debug(
            "command_captured",
            command=command[:80],
            code=completion.code,
            output_chars=len(output),
        )
        return ExecResult.from_completion(completion, output=output)
