from __future__ import annotations

from typing import Callable

from dbctl.cli.formatter import OutputFormatter
from dbctl.core.models import LivenessReport, PidRecord, ServiceEndpoint
from dbctl.runtime.admin import AdminClient
from dbctl.runtime.process_table import is_process_alive


class LivenessProbe:
    """Combines an administrative ping with a process-table lookup of the recorded pid.

    Holds no state between calls: every ``probe`` is one ping plus one
    process-table read, and the verdict is recomputed from scratch.
    """

    def __init__(
        self,
        admin: AdminClient | None = None,
        process_exists: Callable[[int], bool] = is_process_alive,
    ) -> None:
        self.admin = admin or AdminClient()
        self.process_exists = process_exists

    def probe(
        self,
        endpoint: ServiceEndpoint,
        pid_record: PidRecord,
        warn: bool = False,
    ) -> LivenessReport:
        ping = self.admin.ping(endpoint)

        pid = pid_record.read()
        ps_ok = pid is not None and self.process_exists(pid)

        report = LivenessReport(
            ping_ok=ping.ok,
            ps_ok=ps_ok,
            pid=pid,
            ping_output=ping.output,
            admin_label=endpoint.label(),
        )

        if warn and report.disagrees:
            OutputFormatter.log(report.describe(), severity="debug")

        return report
