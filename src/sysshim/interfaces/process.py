"""Abstract interface for process execution."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

CANNOT_OPEN_PROCESS = "Cannot open process"
LAUNCH_FAILURE_CODE = 1


@dataclass(frozen=True)
class ExecResult:
    """Normalized result of a single command run."""

    success: bool
    code: int
    output: Optional[str] = None
    launch_failed: bool = False

    @classmethod
    def from_completion(
        cls, completion: "ProcessCompletion", output: Optional[str] = None
    ) -> "ExecResult":
        return cls(success=completion.success, code=completion.code, output=output)

    @classmethod
    def cannot_open(cls, captured: bool = True) -> "ExecResult":
        """Result for a process that could not be started at all."""
        return cls(
            success=False,
            code=LAUNCH_FAILURE_CODE,
            output=CANNOT_OPEN_PROCESS if captured else None,
            launch_failed=True,
        )

    def __iter__(self):
        # Allows ``ok, code, output = runner.run_captured(...)``
        return iter((self.success, self.code, self.output))


@dataclass(frozen=True)
class ProcessCompletion:
    """How a process ended: whether it completed normally, and its code."""

    completed: bool
    code: int

    @property
    def success(self) -> bool:
        return self.completed and self.code == 0


class CompletionStrategy(ABC):
    """Host process primitive plus the decoder for its completion report.

    ``reports_exit_code`` is False for primitives whose captured-output path
    cannot report an exit code; :meth:`capture` then returns ``None`` and
    ``select_strategy`` wraps the strategy in ``SentinelCapture``.
    """

    name: str = "unknown"
    reports_exit_code: bool = True

    @abstractmethod
    def run(self, command: str) -> ProcessCompletion:
        """Run a command to completion without capturing output."""
        pass

    @abstractmethod
    def capture(self, command: str) -> Tuple[str, Optional[ProcessCompletion]]:
        """Run a command, reading its stdout to EOF.

        Raises OSError when the process cannot be opened.
        """
        pass


class ProcessRunner(ABC):
    """Abstract interface for process execution."""

    @abstractmethod
    def execute(self, command: str) -> ExecResult:
        """Run a shell command, returning ``(success, code)`` without output."""
        pass

    @abstractmethod
    def run_captured(self, command: str) -> ExecResult:
        """Run a shell command with stdout and stderr merged and captured."""
        pass
