"""Logging configuration for the hive CLI."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
) -> Console:
    """Route library log records through a Rich handler on stderr.

    Args:
        verbosity: Number of -v flags (0=info, 1+=debug, 2+=debug with paths)
        quiet: Only warnings and errors (takes precedence over verbosity)
        no_color: Disable colored output

    Returns:
        Console for command output (stdout)

    Note:
        Flag precedence: quiet > verbosity
    """
    if quiet:
        level = LogLevel.QUIET
    elif verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    return Console(no_color=no_color)
