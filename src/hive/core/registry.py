"""Participant registry: heartbeats, activity counters and file reservations.

One registry document per coordination domain holds every participant. All
read-modify-write cycles go through ``ParticipantRegistry.edit``, which
publishes with the atomic store and, when ``serialize_writes`` is enabled,
holds the ``registry-<domain>`` lock for the duration of the cycle.

Liveness here is heartbeat-only: ``stale`` means "no recent heartbeat", not
"process is dead". A participant that stops heartbeating without crashing
looks the same as one that crashed, and stale participants are never
removed automatically.
"""

import contextlib
import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ..config import RegistryConfig
from ..constants import REGISTRY_LOCK_LEASE
from ..errors import CorruptDocumentError, NotFoundError
from ..models import Participant, ParticipantStatus, Registry, utcnow
from ..services import generate_agent_id
from .atomic_store import atomic_write
from .hive_dir import get_registry_path
from .lock_manager import LockManager

logger = logging.getLogger(__name__)


@dataclass
class RegistrySummary:
    """Counts shown by ``hive agents``."""

    total: int
    active: int
    stale: int
    commits: int


def read_registry(path: Path) -> Registry:
    """Parse a registry document.

    Raises:
        NotFoundError: If the document does not exist
        CorruptDocumentError: If it is not a valid registry
    """
    try:
        return Registry.model_validate_json(path.read_bytes())
    except FileNotFoundError:
        raise NotFoundError(f"Registry not found: {path}") from None
    except ValidationError as e:
        raise CorruptDocumentError(f"Invalid registry {path}: {e}") from e


class ParticipantRegistry:
    """Participants of every coordination domain under one hive directory."""

    def __init__(
        self,
        hive_dir: Path,
        config: RegistryConfig | None = None,
        lock_manager: LockManager | None = None,
    ) -> None:
        self.hive_dir = hive_dir
        self.config = config or RegistryConfig()
        self.locks = lock_manager or LockManager(hive_dir)

    def path(self, domain: str) -> Path:
        """Registry document of a domain."""
        return get_registry_path(self.hive_dir, domain)

    def load(self, domain: str) -> Registry:
        """Read a domain's registry; empty if it does not exist yet."""
        try:
            return read_registry(self.path(domain))
        except NotFoundError:
            return Registry()

    @contextlib.contextmanager
    def edit(self, domain: str, create: bool = False) -> Iterator[Registry]:
        """Read, let the caller mutate, then atomically publish a registry.

        Nothing is written if the ``with`` body raises.

        Raises:
            NotFoundError: If the registry is absent and ``create`` is False
        """
        path = self.path(domain)
        guard = (
            self.locks.with_lock(
                f"registry-{domain}",
                lease_seconds=REGISTRY_LOCK_LEASE,
                operation="registry-update",
            )
            if self.config.serialize_writes
            else contextlib.nullcontext()
        )
        with guard:
            if path.exists() or not create:
                registry = read_registry(path)
            else:
                registry = Registry()
            yield registry
            atomic_write(path, registry.model_dump_json(indent=2) + "\n")

    def register(self, domain: str, work_stream: str | None = None) -> str:
        """Add a new active participant and return its id."""
        participant_id = generate_agent_id()
        with self.edit(domain, create=True) as registry:
            registry.agents[participant_id] = Participant(work_stream=work_stream)
        logger.info("Registered %s in %s", participant_id, domain)
        return participant_id

    def heartbeat(self, domain: str, participant_id: str) -> None:
        """Record a heartbeat; revives a stale participant.

        Raises:
            NotFoundError: If the registry or participant is absent
        """
        with self.edit(domain) as registry:
            participant = _require(registry, domain, participant_id)
            participant.last_heartbeat = utcnow()
            participant.status = ParticipantStatus.ACTIVE

    def keep_alive(
        self,
        domain: str,
        participant_id: str,
        count: int | None = None,
        interval_seconds: float | None = None,
    ) -> int:
        """Heartbeat repeatedly, ``heartbeat_interval_seconds`` apart.

        Runs until ``count`` heartbeats have been sent, or forever when
        ``count`` is None. No sleep follows the last heartbeat.

        Returns:
            Number of heartbeats sent
        """
        interval = (
            interval_seconds
            if interval_seconds is not None
            else self.config.heartbeat_interval_seconds
        )
        sent = 0
        while count is None or sent < count:
            if sent:
                time.sleep(interval)
            self.heartbeat(domain, participant_id)
            sent += 1
            logger.debug("Heartbeat %d for %s in %s", sent, participant_id, domain)
        return sent

    def unregister(self, domain: str, participant_id: str) -> bool:
        """Remove a participant (idempotent).

        Returns:
            True if the participant was present
        """
        if not self.path(domain).exists():
            return False
        with self.edit(domain) as registry:
            removed = registry.agents.pop(participant_id, None) is not None
        if removed:
            logger.info("Unregistered %s from %s", participant_id, domain)
        return removed

    def get(self, domain: str, participant_id: str) -> Participant:
        """Look up one participant.

        Raises:
            NotFoundError: If the registry or participant is absent
        """
        return _require(read_registry(self.path(domain)), domain, participant_id)

    def list_participants(self, domain: str) -> dict[str, Participant]:
        """All participants of a domain, keyed by id."""
        return self.load(domain).agents

    def list_active(self, domain: str) -> dict[str, Participant]:
        """Participants whose status is ``active``."""
        return {
            pid: p
            for pid, p in self.list_participants(domain).items()
            if p.status == ParticipantStatus.ACTIVE
        }

    def sweep_stale(self, domain: str, threshold_seconds: float | None = None) -> list[str]:
        """Mark participants without a recent heartbeat as stale.

        Returns:
            Ids newly marked stale
        """
        threshold = (
            threshold_seconds
            if threshold_seconds is not None
            else self.config.stale_threshold_seconds
        )
        if not self.path(domain).exists():
            return []
        now = utcnow()
        marked = []
        with self.edit(domain) as registry:
            for participant_id, participant in registry.agents.items():
                if (
                    participant.status == ParticipantStatus.ACTIVE
                    and participant.heartbeat_age(now) > threshold
                ):
                    participant.status = ParticipantStatus.STALE
                    marked.append(participant_id)
        if marked:
            logger.info("Marked %d agents as stale in %s", len(marked), domain)
        return marked

    def increment_commits(self, domain: str, participant_id: str) -> int:
        """Bump a participant's commit counter and return the new value."""
        with self.edit(domain) as registry:
            participant = _require(registry, domain, participant_id)
            participant.commits += 1
            return participant.commits

    def add_locked_file(self, domain: str, participant_id: str, file_path: str) -> list[str]:
        """Reserve a file for a participant (deduplicated)."""
        with self.edit(domain) as registry:
            participant = _require(registry, domain, participant_id)
            participant.files_locked = sorted({*participant.files_locked, file_path})
            return participant.files_locked

    def remove_locked_file(self, domain: str, participant_id: str, file_path: str) -> list[str]:
        """Drop a file reservation (no-op if not reserved)."""
        with self.edit(domain) as registry:
            participant = _require(registry, domain, participant_id)
            participant.files_locked = [f for f in participant.files_locked if f != file_path]
            return participant.files_locked

    def summary(self, domain: str) -> RegistrySummary:
        """Active/stale counts and total commits of a domain."""
        agents = self.list_participants(domain).values()
        return RegistrySummary(
            total=len(agents),
            active=sum(1 for p in agents if p.status == ParticipantStatus.ACTIVE),
            stale=sum(1 for p in agents if p.status == ParticipantStatus.STALE),
            commits=sum(p.commits for p in agents),
        )


def _require(registry: Registry, domain: str, participant_id: str) -> Participant:
    participant = registry.agents.get(participant_id)
    if participant is None:
        raise NotFoundError(f"Agent {participant_id} not registered in {domain}")
    return participant
