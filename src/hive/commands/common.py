"""Helpers shared by command implementations."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from ..core import Coordinator, get_hive_dir
from ..errors import HiveError, LockError, VersionConflictError, WorkStreamError
from ..output import get_output_context

EXIT_ERROR = 1
EXIT_NOT_INITIALIZED = 3
EXIT_LOCK_FAILED = 4
EXIT_CONFLICT = 5


def require_hive_dir() -> Path:
    """Return the hive directory or exit if ``hive init`` was never run."""
    hive_dir = get_hive_dir()
    if not hive_dir.exists():
        get_output_context().error("Hive not initialized. Run 'hive init' first.")
        raise typer.Exit(EXIT_NOT_INITIALIZED)
    return hive_dir


def open_coordinator() -> Coordinator:
    """Coordinator for the current hive directory."""
    return Coordinator.open(require_hive_dir())


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn coordination errors into an error message and exit code."""
    ctx = get_output_context()
    try:
        yield
    except LockError as e:
        ctx.error(str(e), {"resource": e.resource})
        raise typer.Exit(EXIT_LOCK_FAILED) from None
    except (VersionConflictError, WorkStreamError) as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_CONFLICT) from None
    except (HiveError, ValueError) as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_ERROR) from None


def format_age(seconds: float) -> str:
    """Compact age such as ``42s``, ``5m`` or ``2h``."""
    if seconds < 120:
        return f"{seconds:.0f}s"
    if seconds < 7200:
        return f"{seconds / 60:.0f}m"
    return f"{seconds / 3600:.0f}h"
