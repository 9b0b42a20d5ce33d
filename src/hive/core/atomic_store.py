"""Atomic file operations for safe concurrent access.

Every write goes to a temporary file in the target's own directory and is
published with a single ``os.replace``. A reader therefore sees either the
complete old content or the complete new content, never a partial write.

The temp file is owned by a context manager, so it is removed on every exit
path: errors in the caller's mutation, I/O failures, and interruption
(KeyboardInterrupt, or SystemExit raised by the SIGTERM handler in
``hive.core.cleanup``).

Example:
    >>> atomic_write(Path("state.json"), '{"ok": true}')
    >>> atomic_update(Path("epic.md"), lambda tmp: tmp.write_text("..."))
"""

import os
import shutil
import stat
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import TargetMissingError, WriteFailureError


def _default_mode() -> int:
    """File mode a plain ``open()`` would create under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


@contextmanager
def _temp_beside(target: Path) -> Iterator[Path]:
    """Yield a temp path in target's directory, removed unless published."""
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd, name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    except OSError as e:
        raise WriteFailureError(f"Failed to create temp file for {target}: {e}") from e
    os.close(fd)
    temp_path = Path(name)
    try:
        yield temp_path
    finally:
        temp_path.unlink(missing_ok=True)


def _publish(temp_path: Path, target: Path) -> None:
    """Copy permissions, flush to disk and rename temp over target."""
    try:
        if target.exists():
            os.chmod(temp_path, stat.S_IMODE(target.stat().st_mode))
        else:
            os.chmod(temp_path, _default_mode())
        with open(temp_path, "rb") as f:
            os.fsync(f.fileno())
        os.replace(temp_path, target)
    except OSError as e:
        raise WriteFailureError(f"Failed to update {target}: {e}") from e


def _to_bytes(content: str | bytes) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def atomic_write(path: Path, content: str | bytes) -> None:
    """Replace path's content atomically (creating the file if needed).

    Raises:
        WriteFailureError: If the temp file cannot be written or published
    """
    with _temp_beside(path) as temp_path:
        try:
            temp_path.write_bytes(_to_bytes(content))
        except OSError as e:
            raise WriteFailureError(f"Failed to write temp file for {path}: {e}") from e
        _publish(temp_path, path)


def atomic_write_file(source: Path, target: Path) -> None:
    """Copy source over target atomically.

    Raises:
        TargetMissingError: If source does not exist
        WriteFailureError: On copy or rename failure
    """
    if not source.is_file():
        raise TargetMissingError(source)
    with _temp_beside(target) as temp_path:
        try:
            shutil.copyfile(source, temp_path)
        except OSError as e:
            raise WriteFailureError(f"Failed to copy {source} to temp file: {e}") from e
        _publish(temp_path, target)


def atomic_append(path: Path, line: str) -> None:
    """Append one line to path atomically (creating the file if needed).

    A newline is added after ``line``; if the existing content does not end
    with one, a separator is inserted first.
    """
    with _temp_beside(path) as temp_path:
        try:
            existing = path.read_bytes() if path.exists() else b""
            if existing and not existing.endswith(b"\n"):
                existing += b"\n"
            temp_path.write_bytes(existing + _to_bytes(line.rstrip("\n") + "\n"))
        except OSError as e:
            raise WriteFailureError(f"Failed to append to {path}: {e}") from e
        _publish(temp_path, path)


def atomic_update(path: Path, mutate: Callable[[Path], None]) -> None:
    """Apply ``mutate`` to a private copy of path, then publish it.

    ``mutate`` receives the temp copy's path and edits it in place. If it
    raises, the exception propagates and path is left untouched.

    Raises:
        TargetMissingError: If path does not exist (this never creates)
        WriteFailureError: On copy or rename failure
    """
    if not path.is_file():
        raise TargetMissingError(path)
    with _temp_beside(path) as temp_path:
        try:
            shutil.copyfile(path, temp_path)
        except FileNotFoundError:
            raise TargetMissingError(path) from None
        except OSError as e:
            raise WriteFailureError(f"Failed to create temp copy of {path}: {e}") from e
        mutate(temp_path)
        _publish(temp_path, path)
