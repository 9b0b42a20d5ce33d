"""Work-stream command implementations."""

import typer
from rich.table import Table

from ..core import find_all_conflicts
from ..models import StreamConflict
from ..output import get_output_context
from .common import handle_errors, open_coordinator

stream_app = typer.Typer(help="Work-stream ownership commands")


def _describe(conflict: StreamConflict) -> str:
    return (
        f"{conflict.stream} ({conflict.owner}) {conflict.pattern} <-> "
        f"{conflict.other_stream} ({conflict.other_owner}) {conflict.other_pattern}"
    )


@stream_app.command("claim")
def stream_claim(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    name: str = typer.Argument(..., help="Work stream name"),
    files: list[str] = typer.Option(
        ..., "--file", "-f", help="File pattern to claim (repeatable)"
    ),
) -> None:
    """Claim a work stream and its file patterns."""
    ctx = get_output_context()
    with handle_errors():
        stream = open_coordinator().streams.claim(domain, agent_id, name, files)
    ctx.success(
        f"Claimed {name} ({len(stream.files)} pattern(s))",
        {"stream": name, **stream.model_dump(mode="json")},
    )


@stream_app.command("release")
def stream_release(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    name: str = typer.Argument(..., help="Work stream name"),
) -> None:
    """Release a claimed work stream."""
    ctx = get_output_context()
    with handle_errors():
        open_coordinator().streams.release(domain, agent_id, name)
    ctx.success(f"Released {name}", {"stream": name, "released": True})


@stream_app.command("complete")
def stream_complete(
    domain: str = typer.Argument(..., help="Coordination domain"),
    agent_id: str = typer.Argument(..., help="Participant id"),
    name: str = typer.Argument(..., help="Work stream name"),
) -> None:
    """Mark a work stream completed (its claims are kept)."""
    ctx = get_output_context()
    with handle_errors():
        open_coordinator().streams.complete(domain, agent_id, name)
    ctx.success(f"Completed {name}", {"stream": name, "status": "completed"})


@stream_app.command("list")
def stream_list(
    domain: str = typer.Argument(..., help="Coordination domain"),
) -> None:
    """List work streams of a domain."""
    ctx = get_output_context()
    with handle_errors():
        streams = open_coordinator().streams.list_streams(domain)

    table = Table(title=f"{domain} work streams")
    table.add_column("Stream")
    table.add_column("Owner")
    table.add_column("Status")
    table.add_column("Files")
    for name, stream in sorted(streams.items()):
        table.add_row(name, stream.owner, stream.status.value, ", ".join(stream.files))
    ctx.table(
        table,
        {name: stream.model_dump(mode="json") for name, stream in streams.items()},
        empty=f"No work streams in {domain}",
    )


@stream_app.command("owner")
def stream_owner(
    domain: str = typer.Argument(..., help="Coordination domain"),
    name: str = typer.Argument(..., help="Work stream name"),
) -> None:
    """Print the owner of a work stream (exit 1 if unclaimed)."""
    ctx = get_output_context()
    with handle_errors():
        owner = open_coordinator().streams.owner_of(domain, name)

    if owner is None:
        ctx.report({"stream": name, "owner": None}, f"[dim]{name} is unclaimed[/dim]")
        raise typer.Exit(1)
    ctx.value({"stream": name, "owner": owner}, owner)


@stream_app.command("conflicts")
def stream_conflicts(
    domain: str | None = typer.Argument(None, help="Domain to check (default: all)"),
) -> None:
    """Report overlapping file patterns between work streams."""
    ctx = get_output_context()
    with handle_errors():
        coordinator = open_coordinator()
        if domain is None:
            results = find_all_conflicts(coordinator.hive_dir, coordinator.streams)
        else:
            conflicts = coordinator.streams.find_conflicts(domain)
            results = {domain: conflicts} if conflicts else {}

    if ctx.json_mode:
        ctx.emit(
            {
                name: [conflict.model_dump(mode="json") for conflict in conflicts]
                for name, conflicts in results.items()
            }
        )
        return
    if not results:
        ctx.info("[green]No conflicts detected[/green]")
        return

    for name, conflicts in results.items():
        ctx.info(f"[bold]{name}[/bold]")
        for conflict in conflicts:
            ctx.info(f"  [red]conflict[/red] {_describe(conflict)}")
