"""
Filesystem probes and file operations.

Read-only probes report absence through their return value. ``is_symlink``
and ``copy_file`` validate their arguments eagerly and raise.
"""

import fnmatch
import os
import re
import stat
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import SysshimSettings
from .di import get_container, get_runner
from .errors import FileCopyError, InvalidArgumentError
from .interfaces.process import ProcessRunner
from .logging import get_logger, log_operation
from .quoting import quote

log = get_logger(__name__)


@dataclass(frozen=True)
class CopyResult:
    """Outcome of :func:`copy_file`."""

    success: bool
    permissions_propagated: bool

    def __bool__(self) -> bool:
        return self.success


# ── probes ───────────────────────────────────────────────────────────────────

def file_exists(path: str) -> bool:
    """True if *path* exists and is a regular file."""
    return os.path.isfile(path)


def directory_exists(path: str) -> bool:
    """True if *path* exists and is a directory."""
    return os.path.isdir(path)


def _require_path(value, what: str) -> str:
    if not isinstance(value, str) or value == "":
        raise InvalidArgumentError(f"Invalid {what}: expected a non-empty string")
    return value


def is_symlink(path: str, runner: Optional[ProcessRunner] = None) -> bool:
    """True if *path* is a symbolic link, as reported by ``test -L``."""
    _require_path(path, "path")
    runner = runner or get_runner()
    return runner.execute(f"test -L {quote(path)}").success


# ── listing ──────────────────────────────────────────────────────────────────

def _regular_files(directory: str) -> Optional[List[str]]:
    try:
        entries = os.listdir(directory)
    except OSError as exc:
        log.debug("list_dir_failed", directory=directory, error=str(exc))
        return None
    return sorted(e for e in entries if os.path.isfile(os.path.join(directory, e)))


def list_files(directory: str) -> Optional[List[str]]:
    """Names of regular files directly inside *directory*, or None on error."""
    return _regular_files(directory)


def find(directory: str, pattern: str, glob: bool = False) -> Optional[List[str]]:
    """Names of regular files in *directory* whose name contains *pattern*.

    By default every character of *pattern* is literal, ``*`` and ``?``
    included, so ``find(d, "*.log")`` matches a file named ``*.log`` but not
    ``app.log``. Pass ``glob=True`` for shell-style wildcard matching of the
    whole name.
    """
    names = _regular_files(directory)
    if names is None:
        return None
    if glob:
        return [name for name in names if fnmatch.fnmatchcase(name, pattern)]
    regex = re.compile(".*" + re.escape(pattern) + ".*", re.DOTALL)
    return [name for name in names if regex.search(name)]


# ── permissions ──────────────────────────────────────────────────────────────

_PERMISSION_RE = re.compile(r"^(?:[r-][w-][xsS-]){2}[r-][w-][xtT-]$")


def symbolic_permissions_to_mode(perm: str) -> int:
    """Convert ``rwxr-xr--`` style permissions to an octal mode.

    setuid/setgid/sticky are dropped; ``s``/``t`` still imply execute,
    ``S``/``T`` do not.

    >>> oct(symbolic_permissions_to_mode("rw-r--r--"))
    '0o644'
    """
    if not isinstance(perm, str) or not _PERMISSION_RE.match(perm):
        raise ValueError(f"Malformed permission string: {perm!r}")

    mode = 0
    for i in range(3):
        triple = perm[i * 3 : i * 3 + 3]
        bits = 0
        if triple[0] == "r":
            bits |= 4
        if triple[1] == "w":
            bits |= 2
        if triple[2] in "xst":
            bits |= 1
        mode = mode * 8 + bits
    return mode


def _symbolic_permissions(path: str) -> str:
    return stat.filemode(os.stat(path).st_mode)[1:]


# ── file operations ──────────────────────────────────────────────────────────

def copy_file(
    src: str,
    dst: str,
    runner: Optional[ProcessRunner] = None,
    chunk_size: Optional[int] = None,
) -> CopyResult:
    """Copy *src* to *dst* byte for byte, then try to copy its permissions.

    Raises InvalidArgumentError for empty or non-string paths and
    FileCopyError when the copy itself fails. A failed ``chmod`` only shows up
    as ``permissions_propagated=False``.
    """
    _require_path(src, "source path (src)")
    _require_path(dst, "destination path (dst)")

    if not file_exists(src):
        raise FileCopyError(f"Source does not exist or is not a file: {src}")

    if chunk_size is None:
        chunk_size = get_container().resolve(SysshimSettings).copy_chunk_size

    with log_operation(log, "copy_file", src=src, dst=dst) as op_log:
        try:
            src_file = open(src, "rb")
        except OSError as exc:
            raise FileCopyError(f"Cannot open source file: {exc}") from exc

        with src_file:
            try:
                dst_file = open(dst, "wb")
            except OSError as exc:
                raise FileCopyError(f"Cannot create destination file: {exc}") from exc

            with dst_file:
                try:
                    while True:
                        chunk = src_file.read(chunk_size)
                        if not chunk:
                            break
                        dst_file.write(chunk)
                except OSError as exc:
                    raise FileCopyError(f"Copy failed from {src} to {dst}: {exc}") from exc

        propagated = _propagate_permissions(src, dst, runner or get_runner(), op_log)

    return CopyResult(success=True, permissions_propagated=propagated)


def _propagate_permissions(src: str, dst: str, runner: ProcessRunner, op_log) -> bool:
    try:
        mode = symbolic_permissions_to_mode(_symbolic_permissions(src))
    except (OSError, ValueError) as exc:
        op_log.warning("permissions_unreadable", error=str(exc))
        return False

    result = runner.execute(f"chmod {mode:o} {quote(dst)}")
    if not result.success:
        op_log.warning("chmod_failed", mode=f"{mode:o}", code=result.code)
        return False
    return True


def mkdir(path: str) -> Tuple[bool, Optional[str]]:
    """Create *path* and any missing parents, like ``mkdir -p``."""
    if directory_exists(path):
        return True, None
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        log.error("mkdir_failed", path=path, error=str(exc))
        return False, str(exc)
    return True, None


def remove_dir(path: str, runner: Optional[ProcessRunner] = None) -> Tuple[bool, Optional[str]]:
    """Remove a directory tree with ``rm -rf`` if it exists."""
    if not directory_exists(path):
        return False, "directory does not exist"
    runner = runner or get_runner()
    result = runner.execute(f"rm -rf {quote(path)}")
    if not result.success:
        log.warning("remove_dir_failed", path=path, code=result.code)
        return False, str(result.code)
    return True, None


def remove(path: str) -> Tuple[bool, Optional[str]]:
    """Remove a file, returning the OS error message instead of raising."""
    try:
        os.remove(path)
    except OSError as exc:
        return False, f"{path}: {exc.strerror or exc}"
    return True, None


def rename(path: str, new_path: str) -> Tuple[bool, Optional[str]]:
    """Rename a file, returning the OS error message instead of raising."""
    try:
        os.rename(path, new_path)
    except OSError as exc:
        return False, f"{path}: {exc.strerror or exc}"
    return True, None


def pwd(runner: Optional[ProcessRunner] = None) -> str:
    """Current working directory from ``$PWD``, then ``pwd``, else ``"."``."""
    path = os.environ.get("PWD")
    if path:
        return path
    runner = runner or get_runner()
    result = runner.run_captured("pwd")
    if result.success and result.output:
        first_line = result.output.splitlines()[0].strip()
        if first_line:
            return first_line
    return "."
