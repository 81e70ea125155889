import os
import subprocess
from types import SimpleNamespace

import pytest

from dbctl.core.models import ServiceSettings
from dbctl.runtime.prerequisites import (
    check_config_readable,
    check_disk_space,
    ensure_runtime_dir,
    parse_print_defaults,
    read_server_param,
    resolve_pid_file,
    run_sanity_checks,
)
from dbctl.utils.diagnostics import OperationFailure, PrerequisiteFailure

PRINT_DEFAULTS = (
    "/usr/sbin/mysqld would have been started with the following arguments:\n"
    "--user=mysql --pid-file=/var/run/mysqld/mysqld.pid --socket=/var/run/mysqld/mysqld.sock "
    "--datadir=/var/lib/mysql --datadir=/srv/mysql\n"
)


def test_parse_print_defaults_takes_last_value():
    assert parse_print_defaults(PRINT_DEFAULTS, "datadir") == "/srv/mysql"
    assert parse_print_defaults(PRINT_DEFAULTS, "pid-file") == "/var/run/mysqld/mysqld.pid"
    assert parse_print_defaults(PRINT_DEFAULTS, "port") is None


def test_read_server_param_runs_print_defaults():
    calls = []

    def runner(command, **kwargs):
        calls.append(command)
        return subprocess.CompletedProcess(command, 0, stdout=PRINT_DEFAULTS)

    assert read_server_param("/usr/sbin/mysqld", "pid-file", runner=runner) == "/var/run/mysqld/mysqld.pid"
    assert calls == [["/usr/sbin/mysqld", "--print-defaults"]]


def test_read_server_param_missing_binary():
    def runner(command, **kwargs):
        raise FileNotFoundError(2, "No such file or directory")

    assert read_server_param("/nope/mysqld", "datadir", runner=runner) is None


def test_resolve_pid_file_prefers_configured_path(monkeypatch):
    monkeypatch.setattr("dbctl.runtime.prerequisites.read_server_param", lambda *a, **k: pytest.fail("not expected"))

    path = resolve_pid_file(ServiceSettings(pid_file="/run/mysqld/mysqld.pid"))

    assert str(path) == "/run/mysqld/mysqld.pid"


def test_check_config_readable_only_warns(tmp_path):
    assert check_config_readable(str(tmp_path / "missing.cnf")) is False

    readable = tmp_path / "my.cnf"
    readable.write_text("[mysqld]\n")
    assert check_config_readable(str(readable)) is True


def test_check_disk_space_passes_with_room(tmp_path, monkeypatch):
    monkeypatch.setattr(
        "dbctl.runtime.prerequisites.psutil.disk_usage",
        lambda path: SimpleNamespace(free=10 * 1024 * 1024),
    )

    assert check_disk_space(tmp_path, 4096) == 10 * 1024


def test_check_disk_space_fails_at_threshold(tmp_path, monkeypatch):
    monkeypatch.setattr(
        "dbctl.runtime.prerequisites.psutil.disk_usage",
        lambda path: SimpleNamespace(free=4096 * 1024),
    )

    with pytest.raises(PrerequisiteFailure) as exc_info:
        check_disk_space(tmp_path, 4096)

    assert "too full" in exc_info.value.message


def test_run_sanity_checks_uses_configured_datadir(tmp_path, monkeypatch):
    seen = []
    monkeypatch.setattr(
        "dbctl.runtime.prerequisites.check_disk_space",
        lambda datadir, min_free_kb: seen.append((str(datadir), min_free_kb)),
    )
    config_file = tmp_path / "my.cnf"
    config_file.write_text("")

    run_sanity_checks(ServiceSettings(datadir=str(tmp_path), config_file=str(config_file)))

    assert seen == [(str(tmp_path), 4096)]


def test_ensure_runtime_dir_creates_missing_dir(tmp_path):
    runtime_dir = tmp_path / "run" / "mysqld"
    service = ServiceSettings(
        runtime_dir=str(runtime_dir),
        runtime_dir_owner=None,
        runtime_dir_group=None,
    )

    assert ensure_runtime_dir(service) is True
    assert runtime_dir.is_dir()
    assert oct(os.stat(runtime_dir).st_mode & 0o777) == oct(0o755)
    assert ensure_runtime_dir(service) is False


def test_ensure_runtime_dir_sets_ownership(tmp_path, monkeypatch):
    chowned = []
    monkeypatch.setattr(
        "dbctl.runtime.prerequisites.shutil.chown",
        lambda path, user=None, group=None: chowned.append((user, group)),
    )

    ensure_runtime_dir(ServiceSettings(runtime_dir=str(tmp_path / "mysqld")))

    assert chowned == [("mysql", "root")]


def test_ensure_runtime_dir_unknown_owner_raises_operation_failure(tmp_path):
    service = ServiceSettings(
        runtime_dir=str(tmp_path / "mysqld"),
        runtime_dir_owner="no_such_user_xyz",
        runtime_dir_group=None,
    )

    with pytest.raises(OperationFailure) as exc_info:
        ensure_runtime_dir(service)

    assert exc_info.value.message.startswith("Could not prepare")


def test_ensure_runtime_dir_wraps_os_errors(tmp_path, monkeypatch):
    def denied(path, user=None, group=None):
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr("dbctl.runtime.prerequisites.shutil.chown", denied)

    with pytest.raises(OperationFailure):
        ensure_runtime_dir(ServiceSettings(runtime_dir=str(tmp_path / "mysqld")))
