"""Process runner backends for sysshim."""

from .completion import (
    EncodedStatusStrategy,
    SentinelCapture,
    TriValueStrategy,
    select_strategy,
    with_exit_codes,
)
from .subprocess_runner import SubprocessRunner

__all__ = [
    "EncodedStatusStrategy",
    "SentinelCapture",
    "TriValueStrategy",
    "select_strategy",
    "with_exit_codes",
    "SubprocessRunner",
]
