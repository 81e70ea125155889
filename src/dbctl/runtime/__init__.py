"""Liveness probing and lifecycle control for the supervised service."""

from dbctl.runtime.admin import AdminClient, AdminCommandResult, run_admin_command
from dbctl.runtime.controller import LifecycleController
from dbctl.runtime.launcher import DetachedLauncher, Launcher, run_post_start_hook
from dbctl.runtime.probe import LivenessProbe
from dbctl.runtime.process_table import is_process_alive, signal_processes

__all__ = [
	"AdminClient",
	"AdminCommandResult",
	"DetachedLauncher",
	"Launcher",
	"LifecycleController",
	"LivenessProbe",
	"is_process_alive",
	"run_admin_command",
	"run_post_start_hook",
	"signal_processes",
]
