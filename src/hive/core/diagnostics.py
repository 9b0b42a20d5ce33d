"""Cross-cutting health reports over locks and registries."""

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from ..models import StreamConflict
from .hive_dir import list_domains
from .lock_manager import LockInfo, LockManager
from .work_streams import WorkStreams


@dataclass
class DeadlockReport:
    """Potential deadlock conditions among live lock holders.

    Attributes:
        hoarders: Agent id -> resources, for agents holding more than one lock
        long_held: Locks held longer than the threshold
    """

    hoarders: dict[str, list[str]] = field(default_factory=dict)
    long_held: list[LockInfo] = field(default_factory=list)

    @property
    def risk_count(self) -> int:
        """Number of reported conditions."""
        return len(self.hoarders) + len(self.long_held)


def check_deadlocks(lock_manager: LockManager, long_held_seconds: float) -> DeadlockReport:
    """Report resource hoarding and long-held locks.

    Only locks whose holder process is alive count towards hoarding; dead
    holders are a job for ``sweep_stale``.
    """
    report = DeadlockReport()
    by_agent: defaultdict[str, list[str]] = defaultdict(list)
    for info in lock_manager.list_locks():
        if info.lock is not None and info.holder_alive:
            by_agent[info.lock.agent_id].append(info.resource)
        if info.age_seconds > long_held_seconds:
            report.long_held.append(info)
    report.hoarders = {agent: locks for agent, locks in by_agent.items() if len(locks) > 1}
    return report


def find_all_conflicts(hive_dir: Path, streams: WorkStreams) -> dict[str, list[StreamConflict]]:
    """Stream conflicts of every domain that has any."""
    results = {}
    for domain in list_domains(hive_dir):
        conflicts = streams.find_conflicts(domain)
        if conflicts:
            results[domain] = conflicts
    return results
