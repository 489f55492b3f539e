"""Interfaces for sysshim process execution."""

from .process import (
    CompletionStrategy,
    ExecResult,
    ProcessCompletion,
    ProcessRunner,
)

__all__ = [
    "CompletionStrategy",
    "ExecResult",
    "ProcessCompletion",
    "ProcessRunner",
]
