"""Command output for the hive CLI.

Every command renders through one ``OutputContext``: Rich markup and tables
for people, a single JSON document per command for scripts (``--json``).
Log records never go through here; they use the stderr handler installed by
``configure_logging``.
"""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.table import Table


@dataclass
class OutputContext:
    """Renders command results as text or JSON."""

    console: Console
    json_mode: bool = False

    def info(self, message: str, style: str | None = None) -> None:
        """Informational text; omitted in JSON mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def emit(self, data: Any) -> None:
        """Write a JSON document to stdout (JSON mode only)."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def report(self, data: Any, message: str = "") -> None:
        """Data in JSON mode, otherwise the message (if any)."""
        if self.json_mode:
            self.emit(data)
        elif message:
            self.console.print(message)

    def value(self, data: Any, text: str) -> None:
        """A bare value scripts can capture, such as an id or a version.

        Printed without markup, highlighting or wrapping in text mode.
        """
        if self.json_mode:
            self.emit(data)
        else:
            self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def table(self, table: Table, data: Any, empty: str = "") -> None:
        """A Rich table for people, ``data`` for scripts."""
        if self.json_mode:
            self.emit(data)
        elif table.row_count:
            self.console.print(table)
        elif empty:
            self.console.print(f"[dim]{empty}[/dim]")

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Report a failure."""
        if self.json_mode:
            self.emit({"error": message, **(data or {})})
        else:
            self.console.print(f"[red]Error: {message}[/red]")

    def warning(self, message: str) -> None:
        """Report a condition worth attention (text mode only)."""
        if not self.json_mode:
            self.console.print(f"[yellow]Warning: {message}[/yellow]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Report a completed change."""
        if self.json_mode:
            self.emit({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{message}[/green]")


# Set by the cli.py main callback
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Context installed by the CLI, or a plain text one outside it."""
    return _ctx if _ctx is not None else OutputContext(Console())


def set_output_context(ctx: OutputContext) -> None:
    """Install the context used by every command in this invocation."""
    global _ctx
    _ctx = ctx
