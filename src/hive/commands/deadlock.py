"""Deadlock check command implementation."""

from ..core import check_deadlocks
from ..output import get_output_context
from .common import format_age, handle_errors, open_coordinator


def deadlock_check() -> None:
    """Report agents holding several locks and locks held for a long time."""
    ctx = get_output_context()
    with handle_errors():
        coordinator = open_coordinator()
        threshold = coordinator.config.diagnostics.long_held_seconds
        report = check_deadlocks(coordinator.locks, threshold)

    if ctx.json_mode:
        ctx.emit(
            {
                "hoarders": report.hoarders,
                "long_held": [
                    {
                        "resource": info.resource,
                        "agent_id": info.lock.agent_id if info.lock else None,
                        "age_seconds": round(info.age_seconds, 1),
                    }
                    for info in report.long_held
                ],
                "risks": report.risk_count,
            }
        )
        return

    for agent_id, resources in sorted(report.hoarders.items()):
        ctx.info(
            f"[yellow]Multiple locks[/yellow] {agent_id} holds {len(resources)}: "
            f"{', '.join(resources)}"
        )
    for info in report.long_held:
        holder = info.lock.agent_id if info.lock else "unknown holder"
        ctx.info(
            f"[yellow]Long-held lock[/yellow] {info.resource} by {holder} "
            f"({format_age(info.age_seconds)})"
        )
    if report.risk_count:
        ctx.info(f"\n{report.risk_count} potential deadlock risk(s)")
    else:
        ctx.info("[green]No deadlock risks detected[/green]")
