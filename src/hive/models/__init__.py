"""Pydantic data models for hive's persisted documents.

This package defines the structures written under ``.hive/``:
- Lock entries (Lock)
- Registry documents with participants and work streams
  (Registry, Participant, WorkStream)
- The shared API budget (RateBudget)

All models are Pydantic BaseModel subclasses, so every document is
validated on read and serialized as JSON on write.

Example:
    >>> from hive.models import Participant
    >>> Participant().model_dump_json()
"""

from .lock import Lock, utcnow
from .participant import Participant, ParticipantStatus
from .rate_budget import RateBudget
from .registry import Coordination, Registry
from .work_stream import StreamConflict, StreamStatus, WorkStream

__all__ = [
    "Coordination",
    "Lock",
    "Participant",
    "ParticipantStatus",
    "RateBudget",
    "Registry",
    "StreamConflict",
    "StreamStatus",
    "WorkStream",
    "utcnow",
]
