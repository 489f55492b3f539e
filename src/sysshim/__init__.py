"""
sysshim - one stable contract for running shell commands and probing files.

Normalizes the exit status of a shell command to ``(success, code, output)``
whichever completion-reporting shape the host primitive uses.
"""

__version__ = "0.1.0"

from sysshim.backends.subprocess_runner import SubprocessRunner
from sysshim.errors import FileCopyError, HostnameError, InvalidArgumentError, SysshimError
from sysshim.fs import (
    CopyResult,
    copy_file,
    directory_exists,
    file_exists,
    find,
    is_symlink,
    list_files,
    symbolic_permissions_to_mode,
)
from sysshim.interfaces.process import ExecResult, ProcessRunner
from sysshim.quoting import quote
from sysshim.tools import calculate_md5, get_hostname, run_guarded, which

__all__ = [
    "CopyResult",
    "ExecResult",
    "FileCopyError",
    "HostnameError",
    "InvalidArgumentError",
    "ProcessRunner",
    "SubprocessRunner",
    "SysshimError",
    "calculate_md5",
    "copy_file",
    "directory_exists",
    "file_exists",
    "find",
    "get_hostname",
    "is_symlink",
    "list_files",
    "quote",
    "run_guarded",
    "symbolic_permissions_to_mode",
    "which",
    "__version__",
]
