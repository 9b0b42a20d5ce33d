"""Shared API call budget."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from .lock import utcnow


class RateBudget(BaseModel):
    """Advisory call budget shared by every participant.

    Attributes:
        remaining: Calls left in the current window.
        limit: Window size.
        reset: When the upstream window resets.
        last_updated: Last refresh or reservation.
    """

    remaining: int
    limit: int
    reset: datetime = Field(default_factory=lambda: utcnow() + timedelta(hours=1))
    last_updated: datetime = Field(default_factory=utcnow)
