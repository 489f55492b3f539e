"""
Completion strategies for the two shapes of host process primitive.

``EncodedStatusStrategy`` wraps ``os.system``/``os.popen``: the former returns a
raw POSIX wait status, the latter cannot report an exit code for captured
output at all, so it is always paired with :class:`SentinelCapture`.

``TriValueStrategy`` wraps ``subprocess`` and reports
``(completed, kind, code)`` directly.
"""

import io
import os
import re
import subprocess
from typing import Optional, Tuple

from ..config import SysshimSettings
from ..interfaces.process import LAUNCH_FAILURE_CODE, CompletionStrategy, ProcessCompletion
from ..logging import get_logger

log = get_logger(__name__)

DEFAULT_SENTINEL_PREFIX = "__EXITCODE:"


# ── decoders ─────────────────────────────────────────────────────────────────

def decode_encoded_status(raw: int) -> ProcessCompletion:
    """Decode a raw POSIX wait status word.

    >>> decode_encoded_status(768)
    ProcessCompletion(completed=True, code=3)
    """
    signal_number = raw & 0x7F
    if signal_number:
        return ProcessCompletion(completed=False, code=signal_number)
    return ProcessCompletion(completed=True, code=raw // 256)


def decode_tri_value(
    completed: Optional[bool], kind: Optional[str], code: Optional[int]
) -> ProcessCompletion:
    """Decode a ``(completed, kind, code)`` report. ``kind`` is ignored."""
    if not completed:
        return ProcessCompletion(completed=False, code=code or LAUNCH_FAILURE_CODE)
    if code is None:
        return ProcessCompletion(completed=True, code=LAUNCH_FAILURE_CODE)
    return ProcessCompletion(completed=True, code=code)


def returncode_to_tri_value(returncode: int) -> Tuple[bool, str, int]:
    """Split a ``subprocess`` returncode; negative values mean a signal."""
    if returncode < 0:
        return False, "signal", -returncode
    return True, "exit", returncode


# ── strategies ───────────────────────────────────────────────────────────────

class EncodedStatusStrategy(CompletionStrategy):
    """``os.system`` / ``os.popen`` primitives."""

    name = "encoded"
    reports_exit_code = False

    def run(self, command: str) -> ProcessCompletion:
        raw = os.system(command)
        if raw < 0:
            raise OSError(f"system() could not start a shell for: {command[:80]}")
        return decode_encoded_status(raw)

    def capture(self, command: str) -> Tuple[str, Optional[ProcessCompletion]]:
        with os.popen(command, "r") as pipe:
            # Same decoding as TriValueStrategy: locale codec, undecodable
            # bytes replaced, universal newlines.
            output = io.TextIOWrapper(pipe.buffer, errors="replace").read()
        return output, None


class TriValueStrategy(CompletionStrategy):
    """``subprocess`` primitives with a directly reported returncode."""

    name = "tri-value"
    reports_exit_code = True

    def __init__(self, shell: str = "/bin/sh"):
        self.shell = shell

    def run(self, command: str) -> ProcessCompletion:
        completed = subprocess.run(command, shell=True, executable=self.shell)
        return decode_tri_value(*returncode_to_tri_value(completed.returncode))

    def capture(self, command: str) -> Tuple[str, Optional[ProcessCompletion]]:
        with subprocess.Popen(
            command,
            shell=True,
            executable=self.shell,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        ) as proc:
            output = proc.stdout.read()
            returncode = proc.wait()
        return output, decode_tri_value(*returncode_to_tri_value(returncode))


class SentinelCapture(CompletionStrategy):
    """Recover exit codes for captured output from a trailing sentinel line.

    Wraps a strategy whose capture path cannot report an exit code. Plain
    :meth:`run` is delegated untouched.
    """

    reports_exit_code = True

    def __init__(self, inner: CompletionStrategy, prefix: str = DEFAULT_SENTINEL_PREFIX):
        self.inner = inner
        self.prefix = prefix
        self._pattern = re.compile(r"\n?" + re.escape(prefix) + r"(\d+)\s*\Z")

    @property
    def name(self) -> str:
        return f"{self.inner.name}+sentinel"

    def wrap(self, command: str) -> str:
        # The sentinel always starts on a fresh line and the newline before it
        # is stripped again in recover().
        return f"{command}; printf '\\n{self.prefix}%s\\n' \"$?\""

    def recover(self, output: str) -> Tuple[ProcessCompletion, str]:
        match = self._pattern.search(output)
        if match is None:
            log.debug("exit_code_sentinel_missing", tail=output[-80:])
            return ProcessCompletion(completed=False, code=LAUNCH_FAILURE_CODE), output
        return ProcessCompletion(completed=True, code=int(match.group(1))), output[: match.start()]

    def run(self, command: str) -> ProcessCompletion:
        return self.inner.run(command)

    def capture(self, command: str) -> Tuple[str, Optional[ProcessCompletion]]:
        output, _ = self.inner.capture(self.wrap(command))
        completion, output = self.recover(output)
        return output, completion


# ── selection ────────────────────────────────────────────────────────────────

def with_exit_codes(
    strategy: CompletionStrategy, prefix: str = DEFAULT_SENTINEL_PREFIX
) -> CompletionStrategy:
    """Wrap *strategy* in :class:`SentinelCapture` unless it reports exit codes."""
    if strategy.reports_exit_code:
        return strategy
    return SentinelCapture(strategy, prefix)


def detect_completion_mode(shell: str) -> str:
    """Capability probe: tri-value when *shell* can be spawned directly."""
    if os.path.isfile(shell) and os.access(shell, os.X_OK):
        return "tri-value"
    return "encoded"


def select_strategy(settings: Optional[SysshimSettings] = None) -> CompletionStrategy:
    """Pick the completion strategy once, from settings or a capability probe."""
    settings = settings or SysshimSettings()
    mode = settings.completion_mode
    if mode == "auto":
        mode = detect_completion_mode(settings.shell)

    if mode == "tri-value":
        strategy: CompletionStrategy = TriValueStrategy(settings.shell)
    else:
        strategy = EncodedStatusStrategy()
    strategy = with_exit_codes(strategy, settings.sentinel_prefix)

    log.debug(
        "completion_strategy_selected",
        configured=settings.completion_mode,
        strategy=strategy.name,
    )
    return strategy
