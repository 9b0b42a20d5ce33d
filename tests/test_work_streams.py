"""Tests for work-stream ownership."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from hive.core import Coordinator, WorkStreams, patterns_conflict
from hive.errors import AlreadyClaimedError, FileConflictError, NotFoundError, NotOwnerError
from hive.models import StreamStatus


@pytest.fixture
def streams(coordinator: Coordinator) -> WorkStreams:
    """Work streams backed by the temporary hive."""
    return coordinator.streams


class TestPatternsConflict:
    """Tests for the overlap rule."""

    def test_equal_patterns(self) -> None:
        """Identical patterns conflict."""
        assert patterns_conflict("src/api/", "src/api/")

    def test_substring_patterns(self) -> None:
        """A pattern contained in another conflicts, in either order."""
        assert patterns_conflict("src/", "src/api/routes.py")
        assert patterns_conflict("src/api/routes.py", "src/")

    def test_disjoint_patterns(self) -> None:
        """Unrelated patterns do not conflict."""
        assert not patterns_conflict("src/api/", "src/ui/")

    @given(st.text(min_size=1), st.text(min_size=1))
    @settings(max_examples=200)
    def test_symmetric(self, a: str, b: str) -> None:
        """The rule does not depend on argument order."""
        assert patterns_conflict(a, b) == patterns_conflict(b, a)

    @given(st.text(min_size=1), st.text(), st.text())
    @settings(max_examples=200)
    def test_containing_pattern_always_conflicts(self, core: str, prefix: str, suffix: str) -> None:
        """Any pattern conflicts with every pattern that contains it."""
        assert patterns_conflict(core, prefix + core + suffix)


class TestClaim:
    """Tests for claiming streams."""

    def test_claim_records_stream(self, streams: WorkStreams) -> None:
        """A claim records owner, status and patterns."""
        stream = streams.claim("epic-x", "A", "api", ["src/api/", "src/api/"])
        assert stream.owner == "A"
        assert stream.status == StreamStatus.IN_PROGRESS
        assert stream.files == ["src/api/"]
        assert streams.owner_of("epic-x", "api") == "A"

    def test_overlapping_claim_rejected(self, streams: WorkStreams) -> None:
        """B cannot claim a pattern inside A's stream."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(FileConflictError) as exc_info:
            streams.claim("epic-x", "B", "routes", ["src/api/routes.py"])
        assert exc_info.value.other_stream == "api"
        assert exc_info.value.owner == "A"
        assert "routes" not in streams.list_streams("epic-x")

    def test_disjoint_claim_accepted(self, streams: WorkStreams) -> None:
        """Non-overlapping streams coexist."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.claim("epic-x", "B", "ui", ["src/ui/"])
        assert set(streams.list_streams("epic-x")) == {"api", "ui"}

    def test_claim_owned_by_other(self, streams: WorkStreams) -> None:
        """A stream owned by someone else cannot be claimed."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(AlreadyClaimedError) as exc_info:
            streams.claim("epic-x", "B", "api", ["src/api/"])
        assert exc_info.value.owner == "A"

    def test_reclaim_by_owner_replaces_files(self, streams: WorkStreams) -> None:
        """The owner may claim its own stream again with new patterns."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        stream = streams.claim("epic-x", "A", "api", ["src/api/v2/"])
        assert stream.files == ["src/api/v2/"]

    def test_same_owner_overlap_still_conflicts(self, streams: WorkStreams) -> None:
        """Overlap is checked against every other stream, whoever owns it."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(FileConflictError):
            streams.claim("epic-x", "A", "api-tests", ["src/api/"])

    def test_completed_streams_do_not_block_claims(self, streams: WorkStreams) -> None:
        """Only in-progress streams are checked at claim time."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.complete("epic-x", "A", "api")
        streams.claim("epic-x", "B", "api-v2", ["src/api/"])
        assert streams.owner_of("epic-x", "api-v2") == "B"

    def test_empty_pattern_rejected(self, streams: WorkStreams) -> None:
        """Empty patterns would conflict with everything."""
        with pytest.raises(ValueError):
            streams.claim("epic-x", "A", "api", [""])


class TestReleaseAndComplete:
    """Tests for release and complete."""

    def test_release_removes_stream(self, streams: WorkStreams) -> None:
        """After release the patterns are free again."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.release("epic-x", "A", "api")
        assert streams.owner_of("epic-x", "api") is None
        streams.claim("epic-x", "B", "routes", ["src/api/routes.py"])

    def test_release_by_non_owner(self, streams: WorkStreams) -> None:
        """Only the owner may release."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(NotOwnerError):
            streams.release("epic-x", "B", "api")
        assert streams.owner_of("epic-x", "api") == "A"

    def test_release_unknown_stream(self, streams: WorkStreams) -> None:
        """Releasing a stream that does not exist fails."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(NotFoundError):
            streams.release("epic-x", "A", "ui")

    def test_complete_keeps_claims(self, streams: WorkStreams) -> None:
        """Completion changes status but not ownership or files."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.complete("epic-x", "A", "api")
        stream = streams.list_streams("epic-x")["api"]
        assert stream.status == StreamStatus.COMPLETED
        assert stream.owner == "A"
        assert stream.files == ["src/api/"]

    def test_complete_by_non_owner(self, streams: WorkStreams) -> None:
        """Only the owner may complete."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        with pytest.raises(NotOwnerError):
            streams.complete("epic-x", "B", "api")


class TestFindConflicts:
    """Tests for the pairwise conflict report."""

    def test_no_conflicts(self, streams: WorkStreams) -> None:
        """Disjoint streams report nothing."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.claim("epic-x", "B", "ui", ["src/ui/"])
        assert streams.find_conflicts("epic-x") == []

    def test_reports_overlap_with_completed_stream(self, streams: WorkStreams) -> None:
        """Overlaps involving completed streams are reported."""
        streams.claim("epic-x", "A", "api", ["src/api/"])
        streams.complete("epic-x", "A", "api")
        streams.claim("epic-x", "B", "api-v2", ["src/api/v2/"])

        conflicts = streams.find_conflicts("epic-x")
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert {conflict.stream, conflict.other_stream} == {"api", "api-v2"}
        assert {conflict.owner, conflict.other_owner} == {"A", "B"}

    def test_unknown_domain(self, streams: WorkStreams) -> None:
        """A domain without a registry has no conflicts."""
        assert streams.find_conflicts("epic-none") == []
