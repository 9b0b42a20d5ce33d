"""CLI command implementations for hive.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .agents import agent_app, agents_overview
from .deadlock import deadlock_check
from .docs import doc_app
from .init import init
from .locks import lock_app
from .rate import rate_app
from .streams import stream_app

__all__ = [
    "agent_app",
    "agents_overview",
    "deadlock_check",
    "doc_app",
    "init",
    "lock_app",
    "rate_app",
    "stream_app",
]
