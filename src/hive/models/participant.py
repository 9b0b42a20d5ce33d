"""Participant model for the heartbeat registry."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .lock import utcnow


class ParticipantStatus(str, Enum):
    """Liveness as seen through heartbeats (not process checks)."""

    ACTIVE = "active"
    STALE = "stale"


class Participant(BaseModel):
    """A registered worker in one coordination domain.

    Attributes:
        started: Registration time.
        last_heartbeat: Time of the latest heartbeat.
        status: ``active`` or ``stale`` (no heartbeat within the threshold).
        work_stream: Optional label of the stream the participant works on.
        files_locked: Deduplicated paths the participant has reserved.
        commits: Monotonic activity counter.
    """

    started: datetime = Field(default_factory=utcnow)
    last_heartbeat: datetime = Field(default_factory=utcnow)
    status: ParticipantStatus = ParticipantStatus.ACTIVE
    work_stream: str | None = None
    files_locked: list[str] = Field(default_factory=list)
    commits: int = Field(default=0, ge=0)

    @field_validator("files_locked")
    @classmethod
    def dedupe_files(cls, files: list[str]) -> list[str]:
        """Keep files_locked a sorted set."""
        return sorted(set(files))

    def heartbeat_age(self, now: datetime | None = None) -> float:
        """Seconds since the last heartbeat."""
        return ((now or utcnow()) - self.last_heartbeat).total_seconds()
