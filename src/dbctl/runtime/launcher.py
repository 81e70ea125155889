from __future__ import annotations

import os
import shlex
import subprocess
from typing import Callable, List, Protocol

from dbctl.core.models import ServiceEndpoint, ServiceSettings
from dbctl.runtime.admin import admin_environment
from dbctl.utils.diagnostics import OperationFailure


class Launcher(Protocol):
    """Fire-and-forget launch primitive; returns as soon as the launch is issued."""

    def start(self) -> None:
        ...


def build_launch_command(service: ServiceSettings) -> List[str]:
    """Command that starts the server in the background and exits immediately."""
    if service.run_as_user:
        return [
            "su",
            "-",
            service.run_as_user,
            "-s",
            "/bin/sh",
            "-c",
            f"{service.launch_command} > /dev/null 2>&1 &",
        ]
    return shlex.split(service.launch_command)


class DetachedLauncher:
    """Launch the server in its own session without keeping a handle to it."""

    def __init__(
        self,
        service: ServiceSettings,
        endpoint: ServiceEndpoint,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self.service = service
        self.endpoint = endpoint
        self.popen = popen

    def start(self) -> None:
        command = build_launch_command(self.service)
        try:
            self.popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                cwd=self.service.working_dir,
                env=admin_environment(self.endpoint),
                umask=self.service.umask,
                start_new_session=True,
            )
        except OSError as exc:
            raise OperationFailure(f"Could not launch '{command[0]}': {exc}") from exc


def run_post_start_hook(
    service: ServiceSettings,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> str:
    """Run the post-start hook and return whatever it printed."""
    if not service.post_start_hook:
        return ""

    command = shlex.split(service.post_start_hook)
    if not command or not os.path.exists(command[0]):
        return ""

    try:
        completed = runner(
            command,
            stdout=subprocess.PIPE,
            text=True,
            cwd=service.working_dir,
            check=False,
        )
    except OSError as exc:
        raise OperationFailure(f"Post-start hook '{command[0]}' failed: {exc}") from exc
    return (completed.stdout or "").strip()
