"""Participant registry command implementations."""

import typer
from rich.table import Table

from ..core import list_domains
from ..models import Participant, utcnow
from ..output import get_output_context
from .common import format_age, handle_errors, open_coordinator, require_hive_dir

agent_app = typer.Typer(help="Participant registry commands")


def _participant_row(participant_id: str, participant: Participant) -> list[str]:
    status = participant.status.value
    style = "green" if status == "active" else "yellow"
    return [
        participant_id,
        f"[{style}]{status}[/{style}]",
        participant.work_stream or "-",
        format_age(participant.heartbeat_age(utcnow())),
        str(participant.commits),
        ", ".join(participant.files_locked) or "-",
    ]


def _participant_table(title: str, participants: dict[str, Participant]) -> Table:
    table = Table(title=title)
    for column in ("Agent", "Status", "Stream", "Heartbeat", "Commits", "Files"):
        table.add_column(column)
    for participant_id, participant in sorted(participants.items()):
        table.add_row(*_participant_row(participant_id, participant))
    return table


def _dump(participants: dict[str, Participant]) -> dict:
    return {pid: participant.model_dump(mode="json") for pid, participant in participants.items()}


@agent_app.command("register")
def agent_register(
    domain: str = typer.Argument(..., help="Coordination domain (epic name)"),
    stream: str | None = typer.Option(None, "--stream", "-s", help="Work stream label"),
) -> None:
    """Register a new participant and print its id."""
    ctx = get_output_context()
    with handle_errors():
        participant_id = open_coordinator().registry.register(domain, stream)

    ctx.value({"agent_id": participant_id, "domain": domain}, participant_id)


@agent_app.command("heartbeat")
def agent_heartbeat(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    keep_alive: bool = typer.Option(
        False,
        "--keep-alive",
        "-k",
        help="Keep sending heartbeats at the configured interval until interrupted",
    ),
    count: int | None = typer.Option(
        None, "--count", "-n", min=1, help="Stop after this many heartbeats (with --keep-alive)"
    ),
    interval: float | None = typer.Option(
        None, "--interval", min=0, help="Seconds between heartbeats; defaults to config"
    ),
) -> None:
    """Record a heartbeat for a participant."""
    ctx = get_output_context()
    with handle_errors():
        registry = open_coordinator().registry
        if not keep_alive:
            registry.heartbeat(domain, agent_id)
            ctx.report({"agent_id": agent_id, "heartbeat": True})
            return
        try:
            sent = registry.keep_alive(domain, agent_id, count, interval)
        except KeyboardInterrupt:
            ctx.info("\n[yellow]Heartbeats stopped[/yellow]")
            return
    ctx.report({"agent_id": agent_id, "heartbeats": sent}, f"Sent {sent} heartbeats")


@agent_app.command("unregister")
def agent_unregister(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
) -> None:
    """Remove a participant from the registry."""
    ctx = get_output_context()
    with handle_errors():
        removed = open_coordinator().registry.unregister(domain, agent_id)

    if removed:
        ctx.success(f"Unregistered {agent_id}", {"agent_id": agent_id, "removed": True})
    else:
        ctx.report(
            {"agent_id": agent_id, "removed": False},
            f"[dim]{agent_id} is not registered[/dim]",
        )


@agent_app.command("list")
def agent_list(
    domain: str = typer.Argument(..., help="Coordination domain"),
    all_: bool = typer.Option(False, "--all", "-a", help="Include stale participants"),
) -> None:
    """List participants of a domain (active only unless --all)."""
    ctx = get_output_context()
    with handle_errors():
        registry = open_coordinator().registry
        participants = (
            registry.list_participants(domain) if all_ else registry.list_active(domain)
        )

    ctx.table(
        _participant_table(domain, participants),
        _dump(participants),
        empty=f"No participants in {domain}",
    )


@agent_app.command("sweep")
def agent_sweep(
    domain: str = typer.Argument(..., help="Coordination domain"),
    threshold: float | None = typer.Option(
        None, "--threshold", help="Seconds without heartbeat before a participant is stale"
    ),
) -> None:
    """Mark participants without a recent heartbeat as stale."""
    ctx = get_output_context()
    with handle_errors():
        marked = open_coordinator().registry.sweep_stale(domain, threshold)

    for participant_id in marked:
        ctx.info(f"Marked stale: {participant_id}")
    ctx.success(f"Marked {len(marked)} participant(s) stale", {"stale": marked})


@agent_app.command("commit")
def agent_commit(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
) -> None:
    """Increment a participant's commit counter."""
    ctx = get_output_context()
    with handle_errors():
        commits = open_coordinator().registry.increment_commits(domain, agent_id)
    ctx.report({"agent_id": agent_id, "commits": commits}, f"{agent_id}: {commits} commit(s)")


@agent_app.command("lock-file")
def agent_lock_file(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    path: str = typer.Argument(..., help="File path to reserve"),
) -> None:
    """Record a file reservation for a participant."""
    ctx = get_output_context()
    with handle_errors():
        files = open_coordinator().registry.add_locked_file(domain, agent_id, path)
    ctx.report({"agent_id": agent_id, "files_locked": files}, f"{agent_id}: {len(files)} file(s)")


@agent_app.command("unlock-file")
def agent_unlock_file(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    path: str = typer.Argument(..., help="File path to release"),
) -> None:
    """Drop a file reservation of a participant."""
    ctx = get_output_context()
    with handle_errors():
        files = open_coordinator().registry.remove_locked_file(domain, agent_id, path)
    ctx.report({"agent_id": agent_id, "files_locked": files}, f"{agent_id}: {len(files)} file(s)")


def agents_overview() -> None:
    """Show participants of every domain with summary counts."""
    ctx = get_output_context()
    hive_dir = require_hive_dir()
    with handle_errors():
        registry = open_coordinator().registry
        domains = list_domains(hive_dir)
        overview = {
            domain: (registry.summary(domain), registry.list_participants(domain))
            for domain in domains
        }

    if ctx.json_mode:
        ctx.emit(
            {
                domain: {
                    "summary": vars(summary),
                    "agents": _dump(participants),
                }
                for domain, (summary, participants) in overview.items()
            }
        )
        return
    if not overview:
        ctx.info("[dim]No coordination domains[/dim]")
        return

    for domain, (summary, participants) in overview.items():
        ctx.console.print(_participant_table(domain, participants))
        ctx.info(
            f"Total: {summary.total}  Active: {summary.active}  "
            f"Stale: {summary.stale}  Commits: {summary.commits}\n"
        )
