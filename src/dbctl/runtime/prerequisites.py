from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional

import psutil

from dbctl.cli.formatter import OutputFormatter
from dbctl.core.models import ServiceSettings
from dbctl.utils.diagnostics import OperationFailure, PrerequisiteFailure


def parse_print_defaults(output: str, option: str) -> Optional[str]:
    """Return the value of the last ``--option=value`` token in ``--print-defaults`` output."""
    flag = f"--{option}"
    value: Optional[str] = None
    for token in output.split():
        if token == flag:
            value = ""
        elif token.startswith(flag + "="):
            value = token.split("=", 1)[1]
    return value or None


def read_server_param(
    server_binary: str,
    option: str,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> Optional[str]:
    """Ask the server binary which value it would use for ``option``."""
    try:
        completed = runner(
            [server_binary, "--print-defaults"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=30,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return parse_print_defaults(completed.stdout or "", option)


def resolve_pid_file(service: ServiceSettings) -> Optional[Path]:
    if service.pid_file:
        return Path(service.pid_file)
    value = read_server_param(service.server_binary, "pid-file")
    return Path(value) if value else None


def resolve_datadir(service: ServiceSettings) -> Optional[Path]:
    if service.datadir:
        return Path(service.datadir)
    value = read_server_param(service.server_binary, "datadir")
    return Path(value) if value else None


def check_config_readable(config_file: str) -> bool:
    """Warn, never fail, when the server's own config file cannot be read."""
    if os.access(config_file, os.R_OK):
        return True
    OutputFormatter.log(f"WARNING: {config_file} cannot be read.", severity="warning")
    return False


def check_disk_space(datadir: Path, min_free_kb: int) -> int:
    """Raise ``PrerequisiteFailure`` when the datadir partition has too little room left."""
    try:
        free_kb = psutil.disk_usage(str(datadir)).free // 1024
    except OSError as exc:
        raise PrerequisiteFailure(f"Cannot inspect free space of {datadir}: {exc}") from exc

    if free_kb <= min_free_kb:
        raise PrerequisiteFailure(
            f"ERROR: The partition with {datadir} is too full!",
            detail=f"{free_kb} KiB available, more than {min_free_kb} KiB required",
        )
    return free_kb


def run_sanity_checks(service: ServiceSettings) -> None:
    """Checks that must run before every start attempt."""
    check_config_readable(service.config_file)

    datadir = resolve_datadir(service)
    if datadir is None:
        OutputFormatter.log("Could not determine datadir; skipping disk space check.", severity="warning")
        return
    check_disk_space(datadir, service.min_free_kb)


def ensure_runtime_dir(service: ServiceSettings) -> bool:
    """Create the runtime directory the server needs; returns True when it was created."""
    runtime_dir = Path(service.runtime_dir)
    if runtime_dir.exists():
        return False

    try:
        runtime_dir.mkdir(parents=True, mode=service.runtime_dir_mode)
        os.chmod(runtime_dir, service.runtime_dir_mode)
        if service.runtime_dir_owner or service.runtime_dir_group:
            shutil.chown(runtime_dir, user=service.runtime_dir_owner, group=service.runtime_dir_group)
    except (LookupError, OSError) as exc:
        # shutil.chown raises LookupError for unknown users and groups.
        raise OperationFailure(f"Could not prepare {runtime_dir}: {exc}") from exc
    return True
