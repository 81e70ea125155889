from __future__ import annotations

import os
import signal

import psutil


def is_process_alive(pid: int) -> bool:
    """Return True when a process id appears to be alive on this host.

    This only proves that *some* process owns the id right now; after the
    service exits the kernel may hand the same id to an unrelated process.
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


def signal_processes(name: str, sig: int = signal.SIGTERM) -> int:
    """Send ``sig`` to every process whose name is ``name``; return how many were signalled."""
    signalled = 0
    for proc in psutil.process_iter(["name"]):
        try:
            if proc.info.get("name") != name:
                continue
            proc.send_signal(sig)
            signalled += 1
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return signalled
