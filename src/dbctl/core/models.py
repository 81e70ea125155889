from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FrameworkSettings(BaseSettings):
    """
    Framework-level settings (the 'dbctl' section in dbctl.yaml).
    """
    model_config = SettingsConfigDict(env_prefix='DBCTL_', extra='ignore')

    log_level: str = "INFO"


class ServiceEndpoint(BaseModel):
    """
    Everything needed to issue an administrative request to the service
    (the 'endpoint' section in dbctl.yaml).
    """
    model_config = ConfigDict(extra='ignore', frozen=True)

    admin_tool: str = "/usr/bin/mysqladmin"
    defaults_file: Optional[str] = "/etc/mysql/debian.cnf"
    # The admin tool reads ~/.my.cnf; point HOME somewhere predictable.
    home: Optional[str] = "/etc/mysql/"
    timeout_seconds: float = Field(default=60.0, gt=0)

    def command(self, verb: str) -> List[str]:
        command = [self.admin_tool]
        if self.defaults_file:
            command.append(f"--defaults-file={self.defaults_file}")
        command.append(verb)
        return command

    def label(self) -> str:
        return " ".join(self.command("")).strip()


class ServiceSettings(BaseModel):
    """
    Settings describing the supervised service (the 'service' section in dbctl.yaml).
    """
    model_config = ConfigDict(extra='ignore')

    display_name: str = "MySQL database server"
    service_name: str = "mysqld"
    server_binary: str = "/usr/sbin/mysqld"
    launch_command: str = "/usr/bin/mysqld_safe"
    run_as_user: Optional[str] = "mysql"
    config_file: str = "/etc/mysql/my.cnf"
    pid_file: Optional[str] = None
    datadir: Optional[str] = None
    min_free_kb: int = Field(default=4096, ge=0)
    runtime_dir: str = "/var/run/mysqld"
    runtime_dir_owner: Optional[str] = "mysql"
    runtime_dir_group: Optional[str] = "root"
    runtime_dir_mode: int = 0o755
    post_start_hook: Optional[str] = "/etc/mysql/debian-start"
    working_dir: str = "/"
    umask: int = 0o077
    manual_stop_hint: str = "Please stop MySQL manually and read /usr/share/doc/mysql-server/README.Debian.gz!"


class PollingSettings(BaseModel):
    """
    Poll bounds for start and stop escalation (the 'polling' section in dbctl.yaml).
    """
    model_config = ConfigDict(extra='ignore')

    start_attempts: int = Field(default=30, ge=1)
    stop_attempts: int = Field(default=10, ge=1)
    interval_seconds: float = Field(default=1.0, ge=0)


class DbctlConfig(BaseModel):
    """
    Explicit runtime configuration handed to the controller at construction.
    """
    model_config = ConfigDict(extra='ignore')

    settings: FrameworkSettings = Field(default_factory=FrameworkSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    endpoint: ServiceEndpoint = Field(default_factory=ServiceEndpoint)
    polling: PollingSettings = Field(default_factory=PollingSettings)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "DbctlConfig":
        """Build a config from the sections returned by ``load_config``."""
        return cls(
            settings=FrameworkSettings(**(config_dict.get('dbctl') or {})),
            service=ServiceSettings(**(config_dict.get('service') or {})),
            endpoint=ServiceEndpoint(**(config_dict.get('endpoint') or {})),
            polling=PollingSettings(**(config_dict.get('polling') or {})),
        )


class PidRecord(BaseModel):
    """
    A recorded process id living in a pid file.

    The record is evidence only: it may be missing, unreadable, stale, or point
    at a pid the kernel has since handed to an unrelated process.
    """
    model_config = ConfigDict(frozen=True)

    path: Optional[Path] = None

    def read(self) -> Optional[int]:
        """Return the recorded pid, or None when absent or unreadable."""
        if self.path is None or not self.path.is_file():
            return None
        try:
            pid = int(self.path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None
        return pid if pid > 0 else None


class LivenessVerdict(str, Enum):
    """Composite of the ping signal and the process-table signal."""

    RESPONDING_AND_TRACKED = "responding_and_tracked"
    RESPONDING_ONLY = "responding_only"
    TRACKED_ONLY = "tracked_only"
    DEAD = "dead"

    @classmethod
    def from_signals(cls, ping_ok: bool, ps_ok: bool) -> "LivenessVerdict":
        if ping_ok and ps_ok:
            return cls.RESPONDING_AND_TRACKED
        if ping_ok:
            return cls.RESPONDING_ONLY
        if ps_ok:
            return cls.TRACKED_ONLY
        return cls.DEAD


class LivenessReport(BaseModel):
    """Evidence gathered by a single probe call."""

    model_config = ConfigDict(frozen=True)

    ping_ok: bool
    ps_ok: bool
    pid: Optional[int] = None
    ping_output: str = ""
    admin_label: str = ""

    @property
    def verdict(self) -> LivenessVerdict:
        return LivenessVerdict.from_signals(self.ping_ok, self.ps_ok)

    @property
    def is_alive(self) -> bool:
        # Responsiveness is authoritative; the pid file is only a hint.
        return self.ping_ok

    @property
    def is_fully_dead(self) -> bool:
        return not self.ping_ok and not self.ps_ok

    @property
    def disagrees(self) -> bool:
        return self.verdict in {LivenessVerdict.RESPONDING_ONLY, LivenessVerdict.TRACKED_ONLY}

    def describe(self) -> str:
        alive = 1 if self.ps_ok else 0
        return f"{alive} processes alive and '{self.admin_label} ping' resulted in\n{self.ping_output}\n"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    ALREADY_IN_DESIRED_STATE = "already_in_desired_state"
    TIMED_OUT = "timed_out"
    OPERATION_FAILED = "operation_failed"
    NOT_RUNNING = "not_running"


class FailureKind(str, Enum):
    PREREQUISITE = "prerequisite"
    TIMEOUT = "timeout"
    ESCALATION = "escalation"
    OPERATION = "operation"


EXIT_CODES = {
    OutcomeStatus.SUCCESS: 0,
    OutcomeStatus.ALREADY_IN_DESIRED_STATE: 0,
    OutcomeStatus.TIMED_OUT: 1,
    OutcomeStatus.OPERATION_FAILED: 1,
    OutcomeStatus.NOT_RUNNING: 3,
}


class LifecycleOutcome(BaseModel):
    """Terminal result of one start/stop/restart/reload/status invocation."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    detail: str = ""
    failure: Optional[FailureKind] = None
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in {OutcomeStatus.SUCCESS, OutcomeStatus.ALREADY_IN_DESIRED_STATE}

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.status]
