"""Exception hierarchy for hive.

Every failure raised by the coordination layer derives from ``HiveError`` so
callers (and the CLI) can catch the whole family in one place. Retryable
conditions (``VersionConflictError``, lock backoff) have dedicated retry
helpers; everything else is terminal for the current call.
"""

from pathlib import Path


class HiveError(Exception):
    """Base exception for hive coordination errors."""


class NotFoundError(HiveError):
    """Raised when an operation targets an absent participant or document."""


class CorruptDocumentError(HiveError):
    """Raised when a persisted document cannot be parsed."""


# Atomic store


class AtomicStoreError(HiveError):
    """Base exception for atomic file operations."""


class TargetMissingError(AtomicStoreError):
    """Raised when updating a file that does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Target file not found: {path}")


class WriteFailureError(AtomicStoreError):
    """Raised when preparing or publishing the replacement file fails."""


class FrontmatterError(HiveError):
    """Raised when a document has malformed frontmatter."""


# Locks


class LockError(HiveError):
    """Error acquiring or managing a lock."""

    def __init__(self, resource: str, message: str) -> None:
        self.resource = resource
        super().__init__(message)


class LockTimeoutError(LockError):
    """Raised when acquire() runs past its overall timeout."""

    def __init__(self, resource: str, elapsed: float) -> None:
        self.elapsed = elapsed
        super().__init__(
            resource, f"Failed to acquire lock on {resource} (timeout after {elapsed:.0f}s)"
        )


class LockRetriesExhaustedError(LockError):
    """Raised when acquire() uses up its retry budget."""

    def __init__(self, resource: str, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            resource, f"Failed to acquire lock on {resource} (max retries: {attempts})"
        )


class LockNotOwnerError(LockError):
    """Raised when releasing a lock recorded under another process."""

    def __init__(self, resource: str, holder_pid: int, holder_id: str) -> None:
        self.holder_pid = holder_pid
        self.holder_id = holder_id
        super().__init__(
            resource,
            f"Lock on {resource} is held by {holder_id} (PID {holder_pid}); "
            "use force to release it anyway",
        )


# Optimistic concurrency


class VersionConflictError(HiveError):
    """Raised when a document's version differs from the expected one."""

    def __init__(self, path: Path, expected: int, current: int) -> None:
        self.path = path
        self.expected = expected
        self.current = current
        super().__init__(
            f"Version conflict on {path}: expected {expected}, current {current}"
        )


# Work streams


class WorkStreamError(HiveError):
    """Base exception for work-stream ownership violations."""


class AlreadyClaimedError(WorkStreamError):
    """Raised when a stream is owned by a different participant."""

    def __init__(self, stream: str, owner: str) -> None:
        self.stream = stream
        self.owner = owner
        super().__init__(f"Work stream {stream!r} already claimed by {owner}")


class FileConflictError(WorkStreamError):
    """Raised when requested patterns overlap another in-progress stream."""

    def __init__(self, pattern: str, other_pattern: str, other_stream: str, owner: str) -> None:
        self.pattern = pattern
        self.other_pattern = other_pattern
        self.other_stream = other_stream
        self.owner = owner
        super().__init__(
            f"File conflict: {pattern!r} overlaps {other_pattern!r} "
            f"(stream {other_stream!r}, owner {owner})"
        )


class NotOwnerError(WorkStreamError):
    """Raised when a participant modifies a stream it does not own."""

    def __init__(self, stream: str, participant_id: str, owner: str | None) -> None:
        self.stream = stream
        self.participant_id = participant_id
        self.owner = owner
        super().__init__(
            f"{participant_id} does not own work stream {stream!r} (owner: {owner or 'none'})"
        )
