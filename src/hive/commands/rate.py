"""Rate budget command implementations."""

import typer

from ..output import get_output_context
from .common import handle_errors, open_coordinator

rate_app = typer.Typer(help="Shared API rate budget commands")


@rate_app.command("status")
def rate_status() -> None:
    """Show the recorded rate budget."""
    ctx = get_output_context()
    with handle_errors():
        rate = open_coordinator().rate
        budget = rate.read()
        low = rate.is_low(budget.remaining)

    if ctx.json_mode:
        ctx.emit({**budget.model_dump(mode="json"), "low": low})
        return
    ctx.info(f"Remaining: {budget.remaining}/{budget.limit}")
    ctx.info(f"Resets at: {budget.reset.isoformat()}")
    ctx.info(f"[dim]Last updated: {budget.last_updated.isoformat()}[/dim]")
    if low:
        ctx.warning(f"Rate budget is low ({budget.remaining} remaining)")


@rate_app.command("refresh")
def rate_refresh() -> None:
    """Refresh the budget from the GitHub API."""
    ctx = get_output_context()
    with handle_errors():
        remaining = open_coordinator().rate.refresh()
    ctx.report({"remaining": remaining}, f"Remaining: {remaining}")


@rate_app.command("reserve")
def rate_reserve(
    count: int = typer.Argument(1, help="Number of calls to reserve"),
) -> None:
    """Deduct calls from the shared budget."""
    ctx = get_output_context()
    with handle_errors():
        rate = open_coordinator().rate
        remaining = rate.reserve(count)
    ctx.report({"reserved": count, "remaining": remaining}, f"Remaining: {remaining}")
    if rate.is_low(remaining):
        ctx.warning(f"Rate budget is low ({remaining} remaining)")
