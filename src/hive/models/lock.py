"""Lock model for resource mutual exclusion.

One Lock is written to ``.hive/locks/<resource>.lock`` per held resource.
Entries are created and deleted, never rewritten in place.
"""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class Lock(BaseModel):
    """Holder metadata for one lock entry.

    Attributes:
        agent_id: Participant or agent identifier of the holder.
        pid: Process ID of the holder (used for crash detection).
        acquired: When the lock was acquired.
        expires: ``acquired`` plus the lease duration.
        operation: Free-form label for diagnostics.
    """

    agent_id: str = Field(description="Holder identifier")
    pid: int = Field(description="Process ID holding the lock")
    acquired: datetime = Field(default_factory=utcnow)
    expires: datetime
    operation: str = Field(default="unknown", description="Operation tag")

    @classmethod
    def new(cls, agent_id: str, pid: int, lease_seconds: float, operation: str) -> "Lock":
        """Build holder metadata for a lease starting now."""
        acquired = utcnow()
        return cls(
            agent_id=agent_id,
            pid=pid,
            acquired=acquired,
            expires=acquired + timedelta(seconds=lease_seconds),
            operation=operation,
        )

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds since the lock was acquired."""
        return ((now or utcnow()) - self.acquired).total_seconds()

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once the lease has run out."""
        return (now or utcnow()) >= self.expires
