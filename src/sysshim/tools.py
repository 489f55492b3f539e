"""
Helpers built on external tools: md5sum, which, hostname, ping.

Also holds the process-exit wrapper and the guarded entry point that
embedding scripts use for their ``main``.
"""

import re
import sys
from typing import Any, Callable, NoReturn, Optional

from rich.console import Console

from .di import get_runner
from .errors import HostnameError
from .fs import file_exists
from .interfaces.process import ProcessRunner
from .logging import get_logger
from .quoting import quote

log = get_logger(__name__)

_MD5_RE = re.compile(r"^([0-9a-fA-F]+)")

err_console = Console(stderr=True)


def calculate_md5(file_path: str, runner: Optional[ProcessRunner] = None) -> Optional[str]:
    """Lowercase MD5 digest of *file_path* via ``md5sum``, or None on error."""
    if not isinstance(file_path, str) or file_path == "":
        return None

    runner = runner or get_runner()
    result = runner.run_captured(f"md5sum {quote(file_path)}")
    if not result.success:
        log.debug("md5sum_failed", path=file_path, code=result.code)
        return None

    match = _MD5_RE.match(result.output or "")
    if not match or len(match.group(1)) != 32:
        log.debug("md5sum_unparseable", path=file_path, output=(result.output or "")[:80])
        return None
    return match.group(1).lower()


def which(cmd: str, runner: Optional[ProcessRunner] = None) -> Optional[str]:
    """Absolute path of *cmd* on ``PATH``, confirmed to be a regular file."""
    if not isinstance(cmd, str) or cmd == "":
        return None

    runner = runner or get_runner()
    result = runner.run_captured(f"which {quote(cmd)}")
    if not result.success:
        return None

    path = (result.output or "").rstrip()
    if path and file_exists(path):
        return path
    return None


def get_hostname(runner: Optional[ProcessRunner] = None) -> str:
    """Host name as printed by ``hostname``, without newlines."""
    runner = runner or get_runner()
    result = runner.run_captured("hostname")
    if not result.success:
        raise HostnameError(f"Failed to obtain host name: {result.output}")
    return (result.output or "").replace("\n", "")


def exit_process(code: Any = None) -> NoReturn:
    """Exit with *code*: True -> 0, False -> 1, numbers as-is, anything else 0."""
    if isinstance(code, bool):
        status = 0 if code else 1
    else:
        try:
            status = int(code)
        except (TypeError, ValueError):
            status = 0
    sys.exit(status)


def ssh_check_connection(host: str, runner: Optional[ProcessRunner] = None) -> None:
    """Ping *host* twice and exit the process with status 1 if it is unreachable."""
    runner = runner or get_runner()
    result = runner.execute(f"ping -i 0.3 -c 2 {quote(host)} > /dev/null 2>&1")
    if not result.success:
        log.warning("ssh_connection_check_failed", host=host, code=result.code)
        err_console.print(
            f"[yellow]WARNING - SSH CONNECTION NOT WORKING! CHECK SSH! "
            f"Exit code: {result.code}[/yellow]"
        )
        exit_process(1)


def run_guarded(main: Callable[[], Any]) -> None:
    """Run *main*, ignoring Ctrl+C and reporting any other error.

    ``KeyboardInterrupt`` is absorbed silently. Other exceptions are printed
    and logged, and this function returns normally. ``SystemExit`` is not
    caught.
    """
    try:
        main()
    except KeyboardInterrupt:
        log.debug("main_interrupted")
    except Exception as exc:
        log.error("main_failed", error=str(exc), error_type=type(exc).__name__)
        err_console.print(f"An error occurred: {exc}", markup=False, highlight=False)
