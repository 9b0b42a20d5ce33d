"""Optimistic concurrency control for versioned Markdown documents.

Each document carries a ``version`` frontmatter field. ``compare_and_update``
checks the stored version against the caller's expectation, applies the
mutation to a private copy, bumps the version by exactly one and publishes
the copy with an atomic rename.

The check and the publish are not one atomic step: two writers can both pass
the check before either publishes, and the later publish silently replaces
the earlier one. OCC alone therefore detects most lost updates but does not
prevent them. Callers that need mutual exclusion should run the update
inside ``LockManager.with_lock`` on the document's resource.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..constants import VERSION_MAX_ATTEMPTS, VERSION_MAX_BACKOFF, VERSION_MIN_BACKOFF
from ..errors import NotFoundError, VersionConflictError
from . import frontmatter
from .atomic_store import atomic_update, atomic_write
from .hive_dir import get_domains_dir

logger = logging.getLogger(__name__)

VERSION_FIELD = "version"

Mutation = Callable[[Path], None]


def _read(path: Path) -> str:
    try:
        return path.read_text()
    except FileNotFoundError:
        raise NotFoundError(f"Document not found: {path}") from None


def _set_field_in_place(path: Path, key: str, value: object) -> None:
    path.write_text(frontmatter.set_field(path.read_text(), key, str(value)))


def get_version(path: Path) -> int:
    """Current version of a document (0 if absent or unparsable).

    Raises:
        NotFoundError: If the document does not exist
    """
    raw = frontmatter.get_field(_read(path), VERSION_FIELD)
    try:
        return int(raw) if raw is not None else 0
    except ValueError:
        return 0


def ensure_version(path: Path) -> bool:
    """Add ``version: 1`` to a document that has no version field.

    Returns:
        True if the field was added
    """
    if frontmatter.get_field(_read(path), VERSION_FIELD) is not None:
        return False
    atomic_update(path, lambda tmp: _set_field_in_place(tmp, VERSION_FIELD, 1))
    return True


def compare_and_update(path: Path, expected_version: int, mutate: Mutation) -> int:
    """Apply ``mutate`` if the document is still at ``expected_version``.

    Args:
        path: Versioned document
        expected_version: Version the caller last read
        mutate: Edits the private copy whose path it receives

    Returns:
        The new version (``expected_version + 1``)

    Raises:
        VersionConflictError: If the stored version differs; nothing is written
        NotFoundError: If the document does not exist
    """
    current = get_version(path)
    if current != expected_version:
        raise VersionConflictError(path, expected_version, current)

    new_version = current + 1

    def apply(temp_path: Path) -> None:
        mutate(temp_path)
        _set_field_in_place(temp_path, VERSION_FIELD, new_version)

    atomic_update(path, apply)
    logger.debug("Updated %s to version %d", path, new_version)
    return new_version


def retry_with_backoff(
    path: Path,
    mutate: Mutation,
    max_attempts: int = VERSION_MAX_ATTEMPTS,
    min_backoff: float = VERSION_MIN_BACKOFF,
    max_backoff: float = VERSION_MAX_BACKOFF,
) -> int:
    """Run ``compare_and_update`` with a fresh version until it succeeds.

    Sleeps a random ``min_backoff``-``max_backoff`` seconds between attempts.

    Raises:
        VersionConflictError: The last conflict, after ``max_attempts`` tries
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return compare_and_update(path, get_version(path), mutate)
        except VersionConflictError:
            if attempt >= max_attempts:
                logger.error("Failed to update %s after %d attempts", path, max_attempts)
                raise
            logger.warning("Version conflict on %s, retry %d of %d", path, attempt, max_attempts)
        time.sleep(random.uniform(min_backoff, max_backoff))


def update_field(path: Path, key: str, value: object, expected_version: int | None = None) -> int:
    """Set one frontmatter field with an optimistic version check.

    Without ``expected_version`` the current version is read first, so the
    check only guards the short window between that read and the publish.

    Returns:
        The new version
    """
    expected = get_version(path) if expected_version is None else expected_version
    return compare_and_update(path, expected, lambda tmp: _set_field_in_place(tmp, key, value))


def set_unversioned_field(path: Path, key: str, value: object) -> None:
    """Set one frontmatter field atomically without touching the version."""
    atomic_update(path, lambda tmp: _set_field_in_place(tmp, key, value))


def create_with_frontmatter(path: Path, fields: dict[str, object], body: str = "") -> None:
    """Write a new document (replacing any existing one) at version 1.

    An explicit ``version`` in ``fields`` is kept as given.
    """
    fields = {**fields}
    fields.setdefault(VERSION_FIELD, 1)
    atomic_write(path, frontmatter.render(fields, body))


@dataclass
class MigrationReport:
    """Outcome of adding version fields across all domains."""

    checked: int = 0
    migrated: list[Path] = field(default_factory=list)

    @property
    def already_versioned(self) -> int:
        """Documents that already had a version field."""
        return self.checked - len(self.migrated)


def iter_versioned_documents(hive_dir: Path) -> list[Path]:
    """Every domain's ``epic.md`` and numbered task documents."""
    domains_dir = get_domains_dir(hive_dir)
    if not domains_dir.exists():
        return []
    documents: list[Path] = []
    for domain_dir in sorted(d for d in domains_dir.iterdir() if d.is_dir()):
        epic = domain_dir / "epic.md"
        if epic.is_file():
            documents.append(epic)
        documents.extend(sorted(p for p in domain_dir.glob("[0-9]*.md") if p.is_file()))
    return documents


def migrate_versions(hive_dir: Path) -> MigrationReport:
    """Ensure every versioned document in every domain has a version field."""
    report = MigrationReport()
    for document in iter_versioned_documents(hive_dir):
        report.checked += 1
        if ensure_version(document):
            logger.info("Migrated: %s", document)
            report.migrated.append(document)
    return report
