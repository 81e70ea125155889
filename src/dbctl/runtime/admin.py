from __future__ import annotations

import os
import subprocess
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from dbctl.core.models import ServiceEndpoint


class AdminCommandResult(BaseModel):
    """Outcome of one administrative call against the service."""

    ok: bool
    output: str = ""
    returncode: Optional[int] = None


def admin_environment(endpoint: ServiceEndpoint) -> Dict[str, str]:
    env = os.environ.copy()
    if endpoint.home:
        env["HOME"] = endpoint.home
    return env


def run_admin_command(
    endpoint: ServiceEndpoint,
    verb: str,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> AdminCommandResult:
    """Run ``<admin tool> <verb>`` and fold every failure mode into ``ok=False``."""
    command = endpoint.command(verb)
    try:
        completed = runner(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            env=admin_environment(endpoint),
            timeout=endpoint.timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return AdminCommandResult(
            ok=False,
            output=f"'{' '.join(command)}' timed out after {endpoint.timeout_seconds:g}s",
        )
    except OSError as exc:
        return AdminCommandResult(ok=False, output=f"Could not run '{command[0]}': {exc}")

    output = (completed.stdout or "").strip()
    return AdminCommandResult(
        ok=completed.returncode == 0,
        output=output,
        returncode=completed.returncode,
    )


class AdminClient:
    """Administrative control channel (ping/shutdown/reload/version) of the service."""

    def __init__(
        self,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.runner = runner

    def ping(self, endpoint: ServiceEndpoint) -> AdminCommandResult:
        return run_admin_command(endpoint, "ping", runner=self.runner)

    def shutdown(self, endpoint: ServiceEndpoint) -> AdminCommandResult:
        return run_admin_command(endpoint, "shutdown", runner=self.runner)

    def reload(self, endpoint: ServiceEndpoint) -> AdminCommandResult:
        return run_admin_command(endpoint, "reload", runner=self.runner)

    def version(self, endpoint: ServiceEndpoint) -> AdminCommandResult:
        return run_admin_command(endpoint, "version", runner=self.runner)
