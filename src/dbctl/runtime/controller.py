from __future__ import annotations

import signal
import time
from pathlib import Path
from typing import Callable, Optional

from dbctl.cli.formatter import OutputFormatter
from dbctl.core.models import (
    DbctlConfig,
    LifecycleOutcome,
    LivenessReport,
    OutcomeStatus,
    PidRecord,
)
from dbctl.runtime.admin import AdminClient
from dbctl.runtime.launcher import DetachedLauncher, Launcher, run_post_start_hook
from dbctl.runtime.prerequisites import ensure_runtime_dir, resolve_pid_file, run_sanity_checks
from dbctl.runtime.probe import LivenessProbe
from dbctl.runtime.process_table import signal_processes
from dbctl.utils.diagnostics import (
    ControllerError,
    EscalationFailure,
    OperationFailure,
    TimeoutFailure,
)


class LifecycleController:
    """Start/stop/restart/reload/status for one supervised service.

    Every operation is a bounded poll against ``LivenessProbe``; nothing is
    remembered between invocations, and two controllers racing against the
    same service are not coordinated.
    """

    def __init__(
        self,
        config: DbctlConfig,
        admin: Optional[AdminClient] = None,
        probe: Optional[LivenessProbe] = None,
        launcher: Optional[Launcher] = None,
        send_signal: Callable[[str, int], int] = signal_processes,
        sanity_checks: Optional[Callable[[], None]] = None,
        prepare_runtime: Optional[Callable[[], object]] = None,
        post_start_hook: Optional[Callable[[], str]] = None,
        pid_record: Optional[PidRecord] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.service = config.service
        self.endpoint = config.endpoint
        self.polling = config.polling

        self.admin = admin or AdminClient()
        self.liveness = probe or LivenessProbe(self.admin)
        self.launcher: Launcher = launcher or DetachedLauncher(self.service, self.endpoint)
        self.send_signal = send_signal
        self.sanity_checks = sanity_checks or (lambda: run_sanity_checks(self.service))
        self.prepare_runtime = prepare_runtime or (lambda: ensure_runtime_dir(self.service))
        self.post_start_hook = post_start_hook or (lambda: run_post_start_hook(self.service))
        self.sleep = sleep
        self._pid_record = pid_record

    @property
    def pid_record(self) -> PidRecord:
        if self._pid_record is None:
            path: Optional[Path] = resolve_pid_file(self.service)
            self._pid_record = PidRecord(path=path)
        return self._pid_record

    def check(self, warn: bool = False) -> LivenessReport:
        return self.liveness.probe(self.endpoint, self.pid_record, warn=warn)

    def _failed(
        self,
        error: ControllerError,
        status: OutcomeStatus = OutcomeStatus.OPERATION_FAILED,
        diagnostic: Optional[str] = None,
    ) -> LifecycleOutcome:
        OutputFormatter.log(error.message, severity="error")
        if error.detail:
            OutputFormatter.log(error.detail, severity="info")
        return LifecycleOutcome(
            status=status,
            detail=error.message,
            failure=error.kind,
            diagnostic=diagnostic or error.detail,
        )

    def start(self) -> LifecycleOutcome:
        name = self.service.display_name
        try:
            self.sanity_checks()
        except ControllerError as exc:
            return self._failed(exc)

        OutputFormatter.log(f"Starting {name}: {self.service.service_name}")
        if self.check().is_alive:
            OutputFormatter.log("already running", severity="success")
            return LifecycleOutcome(
                status=OutcomeStatus.ALREADY_IN_DESIRED_STATE,
                detail=f"{name} already running.",
            )

        try:
            self.prepare_runtime()
        except ControllerError as exc:
            return self._failed(exc)

        try:
            self.launcher.start()
        except ControllerError as exc:
            return self._failed(exc)

        dots = 0
        for _ in range(self.polling.start_attempts):
            self.sleep(self.polling.interval_seconds)
            if self.check().is_alive:
                break
            OutputFormatter.progress(".")
            dots += 1
        if dots:
            OutputFormatter.end_progress()

        report = self.check(warn=True)
        if not report.is_alive:
            diagnostic = report.describe()
            if not report.disagrees:
                OutputFormatter.log(diagnostic, severity="debug")
            outcome = self._failed(
                TimeoutFailure(f"{name} did not become reachable within {self.polling.start_attempts} checks."),
                status=OutcomeStatus.TIMED_OUT,
                diagnostic=diagnostic,
            )
            OutputFormatter.log("Please take a look at the syslog", severity="error")
            return outcome

        OutputFormatter.log(f"{name} started.", severity="success")
        try:
            hook_output = self.post_start_hook()
        except ControllerError as exc:
            OutputFormatter.log(exc.message, severity="warning")
        else:
            if hook_output:
                OutputFormatter.log(hook_output, severity="info")
        return LifecycleOutcome(status=OutcomeStatus.SUCCESS, detail=f"{name} started.")

    def stop(self) -> LifecycleOutcome:
        name = self.service.display_name
        OutputFormatter.log(f"Stopping {name}: {self.service.service_name}")
        if self.check().is_fully_dead:
            OutputFormatter.log("not running", severity="success")
            return LifecycleOutcome(
                status=OutcomeStatus.ALREADY_IN_DESIRED_STATE,
                detail=f"{name} is not running.",
            )

        escalated_to_kill = False
        shutdown = self.admin.shutdown(self.endpoint)
        if not shutdown.ok:
            # Rejected and timed-out shutdowns are treated alike.
            OutputFormatter.log(f"Error: {shutdown.output}", severity="error")
            OutputFormatter.log(f"Killing {name} by signal: {self.service.service_name}")
            self.send_signal(self.service.service_name, signal.SIGTERM)

            server_down = False
            for _ in range(self.polling.stop_attempts):
                self.sleep(self.polling.interval_seconds)
                if self.check().is_fully_dead:
                    server_down = True
                    break

            if not server_down:
                OutputFormatter.log(f"{name} ignored SIGTERM; sending SIGKILL.", severity="warning")
                self.send_signal(self.service.service_name, signal.SIGKILL)
                escalated_to_kill = True

        report = self.check(warn=True)
        if report.is_fully_dead:
            OutputFormatter.log(f"{name} stopped.", severity="success")
            return LifecycleOutcome(status=OutcomeStatus.SUCCESS, detail=f"{name} stopped.")

        diagnostic = report.describe()
        if not report.disagrees:
            OutputFormatter.log(diagnostic, severity="debug")
        failure_type = EscalationFailure if escalated_to_kill else OperationFailure
        return self._failed(failure_type(self.service.manual_stop_hint), diagnostic=diagnostic)

    def restart(self) -> LifecycleOutcome:
        try:
            stopped = self.stop()
        except ControllerError as exc:
            OutputFormatter.log(f"Ignoring stop failure during restart: {exc.message}", severity="warning")
        else:
            if not stopped.ok:
                OutputFormatter.log(f"Ignoring stop failure during restart: {stopped.detail}", severity="warning")
        return self.start()

    def reload(self) -> LifecycleOutcome:
        name = self.service.display_name
        OutputFormatter.log(f"Reloading {name}: {self.service.service_name}")
        result = self.admin.reload(self.endpoint)
        if not result.ok:
            return self._failed(OperationFailure(result.output or f"Reload of {name} failed."))
        OutputFormatter.log(f"{name} reloaded.", severity="success")
        return LifecycleOutcome(status=OutcomeStatus.SUCCESS, detail=f"{name} reloaded.")

    def status(self) -> LifecycleOutcome:
        name = self.service.display_name
        if not self.check().is_alive:
            return LifecycleOutcome(status=OutcomeStatus.NOT_RUNNING, detail=f"{name} is stopped.")

        version = self.admin.version(self.endpoint)
        detail = version.output if version.ok and version.output else f"{name} is running."
        return LifecycleOutcome(status=OutcomeStatus.SUCCESS, detail=detail)
