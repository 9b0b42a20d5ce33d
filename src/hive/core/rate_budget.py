"""Shared API rate budget.

Participants consult one advisory budget document before making
externally-budgeted calls (GitHub API). Refreshes overwrite the document and
reservations are read-then-write; neither is serialized against other
processes, so concurrent writers may lose decrements. That is acceptable for
a cooperative throttle that is not authoritative.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import ParamSpec, TypeVar

from pydantic import ValidationError

from ..config import RateLimitConfig
from ..constants import RATE_LIMIT_FILE_NAME
from ..models import RateBudget, utcnow
from ..services import fetch_rate_limit
from .atomic_store import atomic_write
from .hive_dir import get_locks_dir

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

RateSource = Callable[[], RateBudget | None]


class RateBudgetCoordinator:
    """Cooperative throttle around a shared call budget."""

    def __init__(
        self,
        hive_dir: Path,
        config: RateLimitConfig | None = None,
        source: RateSource = fetch_rate_limit,
    ) -> None:
        self.hive_dir = hive_dir
        self.config = config or RateLimitConfig()
        self.source = source

    @property
    def path(self) -> Path:
        """Budget document path."""
        return get_locks_dir(self.hive_dir) / RATE_LIMIT_FILE_NAME

    def _default(self) -> RateBudget:
        return RateBudget(remaining=self.config.default_limit, limit=self.config.default_limit)

    def _write(self, budget: RateBudget) -> None:
        atomic_write(self.path, budget.model_dump_json(indent=2) + "\n")

    def init(self) -> None:
        """Create the budget document with defaults if it does not exist."""
        if not self.path.exists():
            self._write(self._default())

    def read(self) -> RateBudget:
        """Current budget; defaults if the document is unreadable."""
        self.init()
        try:
            return RateBudget.model_validate_json(self.path.read_bytes())
        except (ValidationError, FileNotFoundError) as e:
            logger.warning("Unreadable rate budget %s, using defaults: %s", self.path, e)
            return self._default()

    def check(self) -> int:
        """Remaining calls as last recorded."""
        return self.read().remaining

    def refresh(self) -> int:
        """Overwrite the budget from the external source.

        Returns the configured default, leaving the document untouched, when
        the source is unavailable.
        """
        budget = self.source()
        if budget is None:
            return self.config.default_limit
        self._write(budget)
        return budget.remaining

    def reserve(self, count: int = 1) -> int:
        """Deduct ``count`` calls and return the new remaining value."""
        if count < 0:
            raise ValueError("count must not be negative")
        budget = self.read()
        budget.remaining -= count
        budget.last_updated = utcnow()
        self._write(budget)
        return budget.remaining

    def is_low(self, remaining: int | None = None) -> bool:
        """True when the budget is under the configured warning threshold."""
        value = self.check() if remaining is None else remaining
        return value < self.config.low_threshold

    def wait_if_low(self, required: int = 1) -> bool:
        """Refresh, then sleep a fixed interval if fewer than ``required`` remain.

        Returns:
            True if it slept
        """
        remaining = self.refresh()
        if remaining >= required:
            return False
        logger.warning("Rate limit low: %d remaining", remaining)
        time.sleep(self.config.wait_seconds)
        return True

    def safe_call(self, fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Throttle if needed, reserve one call, then invoke ``fn``."""
        if self.check() < self.config.min_remaining:
            self.wait_if_low(self.config.min_remaining)
        self.reserve(1)
        return fn(*args, **kwargs)
