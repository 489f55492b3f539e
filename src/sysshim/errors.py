"""
sysshim error types.

Expected absences (missing file, command not on PATH) are reported through
return values; these exceptions are for caller bugs and broken copies.
"""

__all__ = ["SysshimError", "InvalidArgumentError", "FileCopyError", "HostnameError"]


class SysshimError(Exception):
    """Base exception for all sysshim errors."""
    pass


class InvalidArgumentError(SysshimError, ValueError):
    """Raised when a caller passes an empty or non-string path."""
    pass


class FileCopyError(SysshimError, OSError):
    """Raised when a copy cannot read its source or write its destination."""
    pass


class HostnameError(SysshimError):
    """Raised when the ``hostname`` command fails."""
    pass
