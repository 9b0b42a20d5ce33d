"""Process-wide stack of deferred release actions.

Scoped lock acquisitions push their own release action and pop it when the
scope exits normally. One SIGTERM handler and one ``atexit`` hook are
installed the first time anything is pushed; they drain whatever is still
pending, newest first. Later acquisitions never replace the handler, so an
earlier lock cannot be leaked by a later one.
"""

import atexit
import itertools
import logging
import signal
import threading
from collections.abc import Callable
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class CleanupStack:
    """LIFO registry of cleanup actions keyed by opaque tokens."""

    def __init__(self) -> None:
        self._actions: dict[int, Action] = {}
        self._tokens = itertools.count(1)
        self._mutex = threading.RLock()  # re-entered by the signal handler
        self._installed = False
        self._previous_handler: Any = None

    def __len__(self) -> int:
        with self._mutex:
            return len(self._actions)

    def push(self, action: Action) -> int:
        """Register an action and return its token."""
        with self._mutex:
            self._install()
            token = next(self._tokens)
            self._actions[token] = action
            return token

    def pop(self, token: int) -> Action | None:
        """Unregister an action without running it.

        Returns None if the action already ran (e.g. on signal).
        """
        with self._mutex:
            return self._actions.pop(token, None)

    def run_all(self) -> None:
        """Run every pending action, newest first."""
        while True:
            with self._mutex:
                if not self._actions:
                    return
                token = next(reversed(self._actions))
                action = self._actions.pop(token)
            try:
                action()
            except Exception:
                logger.exception("Cleanup action failed")

    def _install(self) -> None:
        if self._installed:
            return
        self._installed = True
        atexit.register(self.run_all)
        # signal.signal() only works from the main thread
        if threading.current_thread() is threading.main_thread():
            self._previous_handler = signal.getsignal(signal.SIGTERM)
            signal.signal(signal.SIGTERM, self._on_signal)

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        logger.warning("Received signal %d, releasing held resources", signum)
        self.run_all()
        previous = self._previous_handler
        if previous is signal.SIG_IGN:
            return
        if callable(previous):
            previous(signum, frame)
            return
        raise SystemExit(128 + signum)


_stack = CleanupStack()


def get_cleanup_stack() -> CleanupStack:
    """Get the process-wide cleanup stack."""
    return _stack
