"""File-system helpers used by the profile manager and configuration layer.

Every read and write goes through this module so that ``OSError`` is
translated into :class:`~lord_commander.exceptions.FileSystemError` in one
place. Writes use a temp-file-then-rename strategy (:func:`atomic_write`)
so that an interrupted process leaves the target either untouched or fully
written, never half-written.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from lord_commander.exceptions import FileSystemError

# Undecodable bytes survive a read/write cycle unchanged.
_ERRORS = "surrogateescape"


def read_text(path: Path) -> str:
    """Return the contents of *path*, or ``""`` when the file does not exist.

    Line endings are returned as stored and bytes that are not valid UTF-8
    are carried as surrogate escapes, so a read followed by
    :func:`atomic_write` reproduces every line it did not edit.

    Raises:
        FileSystemError: If the file exists but cannot be read.
    """
    try:
        with open(path, encoding="utf-8", errors=_ERRORS, newline="") as fh:
            return fh.read()
    except FileNotFoundError:
        return ""
    except OSError as exc:
        raise FileSystemError(f"Cannot read {path}: {exc.strerror or exc}") from exc


def ensure_file(path: Path) -> None:
    """Create *path* (and its parent directories) as an empty file if absent.

    Raises:
        FileSystemError: If the directory or file cannot be created.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.touch()
    except OSError as exc:
        raise FileSystemError(f"Cannot create {path}: {exc.strerror or exc}") from exc


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. The existing file
    mode is carried over to the replacement. On any failure the temp file
    is cleaned up and the original file is left as it was.

    Raises:
        FileSystemError: If the file cannot be written.
    """
    if path.is_symlink():
        # Write through the link so symlinked dotfiles stay links.
        path = Path(os.path.realpath(path))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(f"Cannot create {path.parent}: {exc.strerror or exc}") from exc

    try:
        mode: Optional[int] = path.stat().st_mode & 0o777
    except OSError:
        mode = None

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            errors=_ERRORS,
            newline="",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException as exc:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        if isinstance(exc, OSError):
            raise FileSystemError(f"Cannot write {path}: {exc.strerror or exc}") from exc
        raise


def remove_file(path: Path) -> bool:
    """Delete *path* if it exists. Returns ``True`` when a file was removed.

    Raises:
        FileSystemError: If the file exists but cannot be deleted.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FileSystemError(f"Cannot remove {path}: {exc.strerror or exc}") from exc
    return True
