"""Work-stream ownership models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .lock import utcnow


class StreamStatus(str, Enum):
    """Lifecycle of a claimed work stream."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class WorkStream(BaseModel):
    """A named claim over a set of file patterns.

    Attributes:
        owner: Participant id holding the claim.
        status: ``in-progress`` or ``completed``. Completing does not release.
        files: Claimed file patterns.
        started: When the stream was (last) claimed.
    """

    owner: str
    status: StreamStatus = StreamStatus.IN_PROGRESS
    files: list[str] = Field(default_factory=list)
    started: datetime = Field(default_factory=utcnow)


class StreamConflict(BaseModel):
    """Two streams whose file patterns overlap."""

    pattern: str
    stream: str
    owner: str
    other_pattern: str
    other_stream: str
    other_owner: str
