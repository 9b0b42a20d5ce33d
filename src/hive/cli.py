"""Hive CLI: coordination primitives for concurrent agents."""

import typer

from hive import __version__

from .commands import (
    agent_app,
    agents_overview,
    deadlock_check,
    doc_app,
    init,
    lock_app,
    rate_app,
    stream_app,
)
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hive {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="hive",
    help="Locks, heartbeats and work-stream claims for concurrent agents",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback, is_eager=True, help="Print version"
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="More log output (-vv)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
    json_output: bool = typer.Option(False, "--json", help="Machine-readable JSON output"),
    no_color: bool = typer.Option(False, "--no-color", help="Plain output without colors"),
) -> None:
    """Coordinate concurrent agents through a shared .hive directory."""
    console = configure_logging(verbosity=verbose, quiet=quiet, no_color=no_color)
    set_output_context(OutputContext(console=console, json_mode=json_output))


# ============================================================================
# Top-level commands
# ============================================================================

app.command()(init)
app.command("agents")(agents_overview)
app.command("deadlock-check")(deadlock_check)

# ============================================================================
# Command groups
# ============================================================================

app.add_typer(lock_app, name="lock")
app.add_typer(agent_app, name="agent")
app.add_typer(stream_app, name="stream")
app.add_typer(doc_app, name="doc")
app.add_typer(rate_app, name="rate")


if __name__ == "__main__":
    app()
