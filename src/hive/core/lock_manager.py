"""Lock manager for resource mutual exclusion.

Provides lease-based file locks under ``.hive/locks`` so that cooperating
processes never modify the same resource at the same time. Includes stale
lock detection for crash recovery.

Uses atomic file creation (O_CREAT | O_EXCL) to prevent TOCTOU races. An
entry is reclaimed without waiting when its holder process is dead, and
after its lease runs out even if the holder is still alive. Otherwise the
caller backs off exponentially (capped, with jitter) until the overall
timeout or the retry budget runs out.
"""

import contextlib
import fcntl
import logging
import os
import random
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ..config import LocksConfig
from ..constants import ENV_AGENT_ID, ENV_OPERATION, LOCK_SUFFIX, REMOVAL_GUARD_NAME
from ..errors import (
    LockError,
    LockNotOwnerError,
    LockRetriesExhaustedError,
    LockTimeoutError,
)
from ..models import Lock, utcnow
from ..services import is_pid_running
from .cleanup import CleanupStack, get_cleanup_stack
from .hive_dir import get_lock_path, get_locks_dir

logger = logging.getLogger(__name__)


@dataclass
class LockHandle:
    """A lock held by this process."""

    resource: str
    path: Path
    lock: Lock


@dataclass
class LockInfo:
    """Snapshot of one lock entry for status and listings.

    ``lock`` is None when the entry exists but its metadata is unreadable
    (holder crashed between creating and writing it).
    """

    resource: str
    path: Path
    lock: Lock | None
    age_seconds: float
    holder_alive: bool | None

    @property
    def is_stale(self) -> bool:
        """True if the recorded holder process is gone."""
        return self.holder_alive is False

    @property
    def is_expired(self) -> bool:
        """True if the lease has run out."""
        return self.lock is not None and self.lock.is_expired()


def _try_atomic_create(lock_path: Path, lock: Lock) -> bool:
    """Attempt atomic lock file creation.

    Uses O_CREAT | O_EXCL flags for atomicity - if file exists,
    open() fails immediately rather than overwriting.

    Returns:
        True if lock was created, False if file already exists
    """
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        return False
    try:
        os.write(fd, lock.model_dump_json(indent=2).encode())
    finally:
        os.close(fd)
    return True


@dataclass(frozen=True)
class _Entry:
    """One read of a lock entry: the file it came from and its exact bytes.

    ``lock`` is None when the bytes are not valid lock metadata.
    """

    stat: os.stat_result
    raw: bytes
    lock: Lock | None

    def same_as(self, other: "_Entry") -> bool:
        """True if both reads saw the same file with the same content.

        Inodes are recycled as soon as an entry is unlinked, so the identity
        check includes the bytes, which carry the holder's pid and timestamp.
        """
        return (
            self.stat.st_dev,
            self.stat.st_ino,
            self.stat.st_mtime_ns,
            self.raw,
        ) == (other.stat.st_dev, other.stat.st_ino, other.stat.st_mtime_ns, other.raw)


def _read_entry(lock_path: Path) -> _Entry | None:
    """Read a lock entry; stat and content come from the same open file.

    Returns:
        None if no entry exists
    """
    try:
        with lock_path.open("rb") as f:
            st = os.fstat(f.fileno())
            raw = f.read()
    except FileNotFoundError:
        return None
    try:
        lock = Lock.model_validate_json(raw)
    except ValidationError:
        lock = None
    return _Entry(stat=st, raw=raw, lock=lock)


@contextlib.contextmanager
def _removal_guard(locks_dir: Path) -> Iterator[None]:
    """Serialize lock entry removals across processes.

    The flock is dropped by the kernel if its holder dies.
    """
    with (locks_dir / REMOVAL_GUARD_NAME).open("ab") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


def _remove_entry(lock_path: Path, observed: _Entry) -> bool:
    """Delete a lock entry only if it is still the one that was inspected.

    Every removal runs under the removal guard, and entries are only ever
    created with O_EXCL onto a free path. An entry verified under the guard
    therefore cannot be replaced before it is unlinked.

    Returns:
        True if the observed entry was removed
    """
    with _removal_guard(lock_path.parent):
        current = _read_entry(lock_path)
        if current is None:
            return False
        if not current.same_as(observed):
            logger.debug("Lock %s changed since it was inspected", lock_path.stem)
            return False
        try:
            lock_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise LockError(
                lock_path.stem, f"Failed to remove lock entry {lock_path}: {e}"
            ) from e
    return True


class LockManager:
    """Lease-based mutual exclusion over named resources."""

    def __init__(
        self,
        hive_dir: Path,
        config: LocksConfig | None = None,
        agent_id: str | None = None,
        operation: str | None = None,
        cleanup: CleanupStack | None = None,
    ) -> None:
        self.hive_dir = hive_dir
        self.config = config or LocksConfig()
        self._agent_id = agent_id
        self.operation = operation or os.environ.get(ENV_OPERATION, "unknown")
        self._cleanup = cleanup or get_cleanup_stack()

    @property
    def pid(self) -> int:
        """Process ID recorded for locks taken by this manager."""
        return os.getpid()

    @property
    def agent_id(self) -> str:
        """Holder id recorded for locks taken by this manager."""
        return self._agent_id or os.environ.get(ENV_AGENT_ID) or f"agent-{self.pid}"

    def acquire(
        self,
        resource: str,
        lease_seconds: float | None = None,
        timeout: float | None = None,
        operation: str | None = None,
    ) -> LockHandle:
        """Acquire the lock on a resource.

        ``lease_seconds`` only sets the lease recorded for this caller's own
        lock. Whether an existing holder's lock has expired is judged by the
        ``expires`` that holder recorded; the caller's lease is applied only
        to entries without readable metadata, aged by modification time.

        Args:
            resource: Resource name (file-name safe)
            lease_seconds: Lease duration; defaults to config
            timeout: Overall time budget for waiting; defaults to config
            operation: Diagnostic label stored with the lock

        Returns:
            Handle for the acquired lock

        Raises:
            LockTimeoutError: If the overall timeout elapses
            LockRetriesExhaustedError: If the retry budget is used up
        """
        lease = lease_seconds if lease_seconds is not None else self.config.lease_seconds
        budget = timeout if timeout is not None else self.config.acquire_timeout_seconds
        lock_path = get_lock_path(self.hive_dir, resource)
        lock_path.parent.mkdir(parents=True, exist_ok=True)

        start = time.monotonic()
        attempt = 0
        backoff = self.config.initial_backoff_seconds

        while True:
            lock = Lock.new(self.agent_id, self.pid, lease, operation or self.operation)
            if _try_atomic_create(lock_path, lock):
                logger.debug("Acquired lock on %s", resource)
                return LockHandle(resource=resource, path=lock_path, lock=lock)

            entry = _read_entry(lock_path)
            if entry is None:
                # Released between attempts
                continue
            existing = entry.lock

            if existing is None:
                age = time.time() - entry.stat.st_mtime
                if age > lease:
                    logger.warning(
                        "Cleaning up lock without metadata on %s (age: %.0fs)", resource, age
                    )
                    _remove_entry(lock_path, entry)
                    continue
            elif not is_pid_running(existing.pid):
                logger.warning(
                    "Cleaning up stale lock on %s from dead process %d", resource, existing.pid
                )
                _remove_entry(lock_path, entry)
                continue
            elif existing.is_expired():
                logger.warning(
                    "Cleaning up expired lock on %s (age: %.0fs)",
                    resource,
                    existing.age_seconds(),
                )
                _remove_entry(lock_path, entry)
                continue

            elapsed = time.monotonic() - start
            if elapsed >= budget:
                raise LockTimeoutError(resource, elapsed)

            attempt += 1
            if attempt >= self.config.max_retries:
                raise LockRetriesExhaustedError(resource, attempt)

            delay = min(backoff + random.uniform(0, backoff), budget - elapsed)
            holder = existing.agent_id if existing else "unknown holder"
            logger.info("Lock on %s held by %s, retrying in %.1fs", resource, holder, delay)
            time.sleep(delay)
            backoff = min(backoff * 2, self.config.max_backoff_seconds)

    def release(self, resource: str, force: bool = False) -> bool:
        """Release the lock on a resource.

        Missing entries count as released. A lock recorded under another
        process is only removed with ``force=True``.

        Returns:
            True if an entry was removed

        Raises:
            LockNotOwnerError: If another process holds the lock and not force
        """
        lock_path = get_lock_path(self.hive_dir, resource)
        entry = _read_entry(lock_path)
        if entry is None:
            return False
        existing = entry.lock

        if existing is not None and existing.pid != self.pid:
            if not force:
                raise LockNotOwnerError(resource, existing.pid, existing.agent_id)
            logger.warning(
                "Force-releasing lock on %s owned by PID %d (%s)",
                resource,
                existing.pid,
                existing.agent_id,
            )
        return _remove_entry(lock_path, entry)

    def release_handle(self, handle: LockHandle) -> bool:
        """Release a lock only if the entry is still the one this handle took.

        Returns:
            False if the entry is gone or was reclaimed by someone else
        """
        entry = _read_entry(handle.path)
        if entry is None:
            return False
        existing = entry.lock
        if existing is None or (existing.agent_id, existing.pid, existing.acquired) != (
            handle.lock.agent_id,
            handle.lock.pid,
            handle.lock.acquired,
        ):
            logger.warning("Lock on %s was reclaimed by another holder", handle.resource)
            return False
        return _remove_entry(handle.path, entry)

    def status(self, resource: str) -> LockInfo | None:
        """Read-only view of a lock; None if the resource is free."""
        return self._info(get_lock_path(self.hive_dir, resource))

    def list_locks(self) -> list[LockInfo]:
        """All current lock entries, sorted by resource."""
        locks_dir = get_locks_dir(self.hive_dir)
        if not locks_dir.exists():
            return []
        infos = (self._info(p) for p in sorted(locks_dir.glob(f"*{LOCK_SUFFIX}")))
        return [info for info in infos if info is not None]

    def sweep_stale(self) -> list[str]:
        """Delete every lock whose holder process is no longer running.

        Returns:
            Resources whose locks were removed
        """
        removed = []
        locks_dir = get_locks_dir(self.hive_dir)
        if not locks_dir.exists():
            return removed
        for lock_path in sorted(locks_dir.glob(f"*{LOCK_SUFFIX}")):
            entry = _read_entry(lock_path)
            if entry is None or entry.lock is None:
                continue
            if not is_pid_running(entry.lock.pid) and _remove_entry(lock_path, entry):
                logger.info("Removed stale lock: %s", lock_path.stem)
                removed.append(lock_path.stem)
        return removed

    @contextlib.contextmanager
    def with_lock(
        self,
        resource: str,
        lease_seconds: float | None = None,
        timeout: float | None = None,
        operation: str | None = None,
    ) -> Iterator[LockHandle]:
        """Hold a lock for the duration of a ``with`` block.

        The release is pushed onto the process cleanup stack, so it also runs
        if the process is terminated while inside the block.
        """
        handle = self.acquire(resource, lease_seconds, timeout, operation)
        token = self._cleanup.push(lambda: self.release_handle(handle))
        try:
            yield handle
        finally:
            if self._cleanup.pop(token) is not None:
                self.release_handle(handle)

    def _info(self, lock_path: Path) -> LockInfo | None:
        entry = _read_entry(lock_path)
        if entry is None:
            return None
        existing = entry.lock
        resource = lock_path.name.removesuffix(LOCK_SUFFIX)
        if existing is None:
            return LockInfo(
                resource=resource,
                path=lock_path,
                lock=None,
                age_seconds=time.time() - entry.stat.st_mtime,
                holder_alive=None,
            )
        return LockInfo(
            resource=resource,
            path=lock_path,
            lock=existing,
            age_seconds=existing.age_seconds(utcnow()),
            holder_alive=is_pid_running(existing.pid),
        )
