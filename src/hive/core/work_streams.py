"""Work-stream ownership tracking.

Streams live in the ``coordination.work_streams`` section of a domain's
registry document. While in progress, a stream's file patterns must not
overlap those of any other in-progress stream. Two patterns overlap when
they are equal or one is a substring of the other; the rule is coarse on
purpose, preferring false positives to missed conflicts.
"""

import itertools
import logging

from ..errors import AlreadyClaimedError, FileConflictError, NotFoundError, NotOwnerError
from ..models import StreamConflict, StreamStatus, WorkStream
from .registry import ParticipantRegistry

logger = logging.getLogger(__name__)


def patterns_conflict(a: str, b: str) -> bool:
    """True if two file patterns overlap (equal or substring)."""
    return a == b or a in b or b in a


class WorkStreams:
    """Claim, release and inspect work streams of a domain."""

    def __init__(self, registry: ParticipantRegistry) -> None:
        self.registry = registry

    def claim(self, domain: str, participant_id: str, name: str, files: list[str]) -> WorkStream:
        """Claim (or re-claim) a work stream for a participant.

        Raises:
            AlreadyClaimedError: If another participant owns the stream
            FileConflictError: If a pattern overlaps another in-progress stream
            ValueError: If a pattern is empty
        """
        patterns = list(dict.fromkeys(files))
        if any(not p for p in patterns):
            raise ValueError("File patterns must not be empty")

        with self.registry.edit(domain, create=True) as registry:
            streams = registry.coordination.work_streams
            existing = streams.get(name)
            if existing is not None and existing.owner != participant_id:
                raise AlreadyClaimedError(name, existing.owner)

            for other_name, other in streams.items():
                if other_name == name or other.status != StreamStatus.IN_PROGRESS:
                    continue
                for pattern, other_pattern in itertools.product(patterns, other.files):
                    if patterns_conflict(pattern, other_pattern):
                        raise FileConflictError(pattern, other_pattern, other_name, other.owner)

            stream = WorkStream(owner=participant_id, files=patterns)
            streams[name] = stream

        logger.info("%s claimed work stream %s", participant_id, name)
        return stream

    def release(self, domain: str, participant_id: str, name: str) -> None:
        """Remove a stream claim; only the owner may release it.

        Raises:
            NotFoundError: If the stream does not exist
            NotOwnerError: If the participant does not own it
        """
        with self.registry.edit(domain) as registry:
            streams = registry.coordination.work_streams
            _require_owner(streams, domain, participant_id, name)
            del streams[name]
        logger.info("%s released work stream %s", participant_id, name)

    def complete(self, domain: str, participant_id: str, name: str) -> None:
        """Mark a stream completed; ownership and file claims are kept.

        Raises:
            NotFoundError: If the stream does not exist
            NotOwnerError: If the participant does not own it
        """
        with self.registry.edit(domain) as registry:
            stream = _require_owner(
                registry.coordination.work_streams, domain, participant_id, name
            )
            stream.status = StreamStatus.COMPLETED

    def list_streams(self, domain: str) -> dict[str, WorkStream]:
        """All streams of a domain, keyed by name."""
        return self.registry.load(domain).coordination.work_streams

    def owner_of(self, domain: str, name: str) -> str | None:
        """Owner of a stream, or None if unclaimed."""
        stream = self.list_streams(domain).get(name)
        return stream.owner if stream else None

    def find_conflicts(self, domain: str) -> list[StreamConflict]:
        """Pairwise overlap check across every stream of a domain.

        Catches overlaps that predate claim-time enforcement, and overlaps
        involving completed streams, which claims do not check.
        """
        conflicts = []
        streams = sorted(self.list_streams(domain).items())
        for (name, stream), (other_name, other) in itertools.combinations(streams, 2):
            for pattern, other_pattern in itertools.product(stream.files, other.files):
                if patterns_conflict(pattern, other_pattern):
                    conflicts.append(
                        StreamConflict(
                            pattern=pattern,
                            stream=name,
                            owner=stream.owner,
                            other_pattern=other_pattern,
                            other_stream=other_name,
                            other_owner=other.owner,
                        )
                    )
        return conflicts


def _require_owner(
    streams: dict[str, WorkStream], domain: str, participant_id: str, name: str
) -> WorkStream:
    stream = streams.get(name)
    if stream is None:
        raise NotFoundError(f"Work stream {name!r} not found in {domain}")
    if stream.owner != participant_id:
        raise NotOwnerError(name, participant_id, stream.owner)
    return stream
