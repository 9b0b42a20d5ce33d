"""Process liveness check."""

import os


def is_pid_running(pid: int) -> bool:
    """Check if a process with given PID is running.

    Signal 0 performs the existence and permission checks without
    delivering anything. EPERM means the process exists but belongs to
    another user, so it counts as running.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True
