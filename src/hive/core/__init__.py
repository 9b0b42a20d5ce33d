"""Core coordination logic for hive.

This package contains the coordination layer:
- atomic_store: write-temp-then-rename file primitives
- lock_manager: lease-based mutual exclusion over named resources
- cleanup: process-wide stack of deferred lock releases
- frontmatter / version_store: optimistic concurrency for Markdown documents
- registry: participant heartbeats, counters and file reservations
- work_streams: claim-based ownership of file patterns
- rate_budget: cooperative throttle around a shared API budget
- diagnostics: deadlock and conflict reports
"""

from .atomic_store import atomic_append, atomic_update, atomic_write, atomic_write_file
from .cleanup import CleanupStack, get_cleanup_stack
from .coordinator import Coordinator
from .diagnostics import DeadlockReport, check_deadlocks, find_all_conflicts
from .hive_dir import (
    get_domain_dir,
    get_hive_dir,
    get_lock_path,
    get_locks_dir,
    get_registry_path,
    init_hive_dir,
    list_domains,
)
from .lock_manager import LockHandle, LockInfo, LockManager
from .rate_budget import RateBudgetCoordinator
from .registry import ParticipantRegistry, RegistrySummary
from .version_store import (
    MigrationReport,
    compare_and_update,
    create_with_frontmatter,
    ensure_version,
    get_version,
    migrate_versions,
    retry_with_backoff,
    set_unversioned_field,
    update_field,
)
from .work_streams import WorkStreams, patterns_conflict

__all__ = [
    "CleanupStack",
    "Coordinator",
    "DeadlockReport",
    "LockHandle",
    "LockInfo",
    "LockManager",
    "MigrationReport",
    "ParticipantRegistry",
    "RateBudgetCoordinator",
    "RegistrySummary",
    "WorkStreams",
    "atomic_append",
    "atomic_update",
    "atomic_write",
    "atomic_write_file",
    "check_deadlocks",
    "compare_and_update",
    "create_with_frontmatter",
    "ensure_version",
    "find_all_conflicts",
    "get_cleanup_stack",
    "get_domain_dir",
    "get_hive_dir",
    "get_lock_path",
    "get_locks_dir",
    "get_registry_path",
    "get_version",
    "init_hive_dir",
    "list_domains",
    "migrate_versions",
    "patterns_conflict",
    "retry_with_backoff",
    "set_unversioned_field",
    "update_field",
]
