"""Lock command implementations."""

import subprocess

import typer
from rich.table import Table

from ..core import LockInfo
from ..output import get_output_context
from .common import format_age, handle_errors, open_coordinator

lock_app = typer.Typer(help="Resource lock commands")


def _lock_data(info: LockInfo) -> dict:
    data = {
        "resource": info.resource,
        "age_seconds": round(info.age_seconds, 1),
        "holder_alive": info.holder_alive,
        "expired": info.is_expired,
    }
    if info.lock is not None:
        data.update(info.lock.model_dump(mode="json"))
    return data


def _lock_state(info: LockInfo) -> str:
    if info.lock is None:
        return "[yellow]no metadata[/yellow]"
    if info.is_stale:
        return "[red]stale[/red]"
    if info.is_expired:
        return "[yellow]expired[/yellow]"
    return "[green]held[/green]"


@lock_app.command("list")
def lock_list() -> None:
    """List every active lock."""
    ctx = get_output_context()
    locks = open_coordinator().locks.list_locks()

    table = Table(title="Active locks")
    table.add_column("Resource")
    table.add_column("Agent")
    table.add_column("PID", justify="right")
    table.add_column("Operation")
    table.add_column("Age", justify="right")
    table.add_column("State")
    for info in locks:
        lock = info.lock
        table.add_row(
            info.resource,
            lock.agent_id if lock else "?",
            str(lock.pid) if lock else "?",
            lock.operation if lock else "?",
            format_age(info.age_seconds),
            _lock_state(info),
        )
    ctx.table(table, {"locks": [_lock_data(info) for info in locks]}, empty="No active locks")


@lock_app.command("status")
def lock_status(
    resource: str = typer.Argument(..., help="Resource name"),
) -> None:
    """Show who holds the lock on a resource."""
    ctx = get_output_context()
    with handle_errors():
        info = open_coordinator().locks.status(resource)

    if info is None:
        ctx.report({"resource": resource, "held": False}, f"{resource}: free")
        return

    data = {"held": True, **_lock_data(info)}
    if info.lock is None:
        message = f"{resource}: locked (no metadata, age {format_age(info.age_seconds)})"
    else:
        message = (
            f"{resource}: locked by {info.lock.agent_id} (PID {info.lock.pid}, "
            f"{info.lock.operation}, age {format_age(info.age_seconds)})"
        )
        if info.is_stale:
            message += " [red]stale[/red]"
    ctx.report(data, message)


@lock_app.command("release")
def lock_release(
    resource: str = typer.Argument(..., help="Resource name"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Release even if another process holds it"
    ),
) -> None:
    """Release a lock held by this process (or any holder with --force)."""
    ctx = get_output_context()
    with handle_errors():
        removed = open_coordinator().locks.release(resource, force=force)

    if removed:
        ctx.success(f"Released lock on {resource}", {"resource": resource, "released": True})
    else:
        ctx.report(
            {"resource": resource, "released": False},
            f"[dim]No lock on {resource}[/dim]",
        )


@lock_app.command("cleanup")
def lock_cleanup() -> None:
    """Remove locks whose holder process is no longer running."""
    ctx = get_output_context()
    with handle_errors():
        removed = open_coordinator().locks.sweep_stale()

    for resource in removed:
        ctx.info(f"Removed stale lock: {resource}")
    ctx.success(f"Cleaned up {len(removed)} stale lock(s)", {"removed": removed})


@lock_app.command("run")
def lock_run(
    resource: str = typer.Argument(..., help="Resource name"),
    command: list[str] = typer.Argument(..., help="Command to run while holding the lock"),
    lease: float | None = typer.Option(None, "--lease", help="Lease duration in seconds"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Acquire timeout"),
    operation: str | None = typer.Option(None, "--operation", "-o", help="Operation label"),
) -> None:
    """Run a command while holding the lock on a resource.

    Use ``--`` to separate the command from hive options, e.g.
    ``hive lock run epic-x -- git push``.
    """
    coordinator = open_coordinator()
    label = operation or command[0]
    with handle_errors(), coordinator.locks.with_lock(resource, lease, timeout, label):
        try:
            returncode = subprocess.run(command).returncode
        except FileNotFoundError:
            get_output_context().error(f"Command not found: {command[0]}")
            returncode = 127
    if returncode:
        raise typer.Exit(returncode)
