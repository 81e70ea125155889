import pytest
import sys
from pathlib import Path

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from dbctl.core.models import DbctlConfig, LivenessReport, PidRecord  # noqa: E402
from dbctl.runtime.admin import AdminCommandResult  # noqa: E402
from dbctl.runtime.controller import LifecycleController  # noqa: E402


class FakeAdmin:
    """Scripted admin channel; records every verb it was asked to run."""

    def __init__(self, ping_ok=False, shutdown_ok=True, reload_ok=True, version="mysqladmin  Ver 8.0.36"):
        self.ping_ok = ping_ok
        self.shutdown_ok = shutdown_ok
        self.reload_ok = reload_ok
        self.version_text = version
        self.calls = []

    def ping(self, endpoint):
        self.calls.append("ping")
        if self.ping_ok:
            return AdminCommandResult(ok=True, output="mysqld is alive", returncode=0)
        return AdminCommandResult(ok=False, output="connect to server at 'localhost' failed", returncode=1)

    def shutdown(self, endpoint):
        self.calls.append("shutdown")
        if self.shutdown_ok:
            return AdminCommandResult(ok=True, returncode=0)
        return AdminCommandResult(ok=False, output="shutdown refused", returncode=1)

    def reload(self, endpoint):
        self.calls.append("reload")
        if self.reload_ok:
            return AdminCommandResult(ok=True, returncode=0)
        return AdminCommandResult(ok=False, output="reload refused", returncode=1)

    def version(self, endpoint):
        self.calls.append("version")
        return AdminCommandResult(ok=True, output=self.version_text, returncode=0)


class ScriptedProbe:
    """Returns (ping_ok, ps_ok) pairs in order, repeating the last one."""

    def __init__(self, states):
        self.states = list(states)
        self.calls = 0

    def probe(self, endpoint, pid_record, warn=False):
        index = min(self.calls, len(self.states) - 1)
        self.calls += 1
        ping_ok, ps_ok = self.states[index]
        return LivenessReport(ping_ok=ping_ok, ps_ok=ps_ok, admin_label="mysqladmin")


class FakeLauncher:
    def __init__(self):
        self.starts = 0

    def start(self):
        self.starts += 1


class SignalRecorder:
    def __init__(self):
        self.sent = []

    def __call__(self, name, sig):
        self.sent.append((name, sig))
        return 1


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def config():
    return DbctlConfig()


@pytest.fixture
def make_controller(config):
    """
    Build a LifecycleController wired to in-memory fakes.
    Returns (controller, fakes) where fakes is a dict of the collaborators.
    """
    def factory(states, admin=None, hook_output="", sanity_checks=None, prepare_runtime=None):
        fakes = {
            "admin": admin or FakeAdmin(),
            "probe": ScriptedProbe(states),
            "launcher": FakeLauncher(),
            "signals": SignalRecorder(),
            "sleep": SleepRecorder(),
            "runtime_dirs": [],
        }
        controller = LifecycleController(
            config,
            admin=fakes["admin"],
            probe=fakes["probe"],
            launcher=fakes["launcher"],
            send_signal=fakes["signals"],
            sanity_checks=sanity_checks or (lambda: None),
            prepare_runtime=prepare_runtime or (lambda: fakes["runtime_dirs"].append(True)),
            post_start_hook=lambda: hook_output,
            pid_record=PidRecord(path=None),
            sleep=fakes["sleep"],
        )
        return controller, fakes

    return factory
