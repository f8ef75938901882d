"""Check executors — one class per CheckKind.

Each executor queries a single reachable host through a RemoteQuery and
returns a classified CheckResult, or raises. Failures are turned into
UNKNOWN results by the orchestrator, not here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from fleetcheck.agent.client import RemoteQuery
from fleetcheck.errors import CheckExecutionError
from fleetcheck.health.aggregate import worst
from fleetcheck.health.models import (
    AdapterConfig,
    CheckKind,
    CheckResult,
    DiskMeasurement,
    EventLogMeasurement,
    NetworkMeasurement,
    ServiceMeasurement,
    ServiceStatus,
    Severity,
    UpdatesMeasurement,
    UptimeMeasurement,
    UtilizationMeasurement,
    VolumeUsage,
)
from fleetcheck.health.thresholds import (
    DEFAULT_THRESHOLDS,
    ThresholdSet,
    classify,
    classify_service_state,
    classify_updates,
)

logger = logging.getLogger(__name__)

_GB = 1024 ** 3
# Boot times this far ahead of the local clock are read as zero uptime.
_CLOCK_SKEW = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckExecutor(ABC):
    """Runs one kind of check against one host."""

    kind: CheckKind

    def __init__(self, query: RemoteQuery, thresholds: ThresholdSet = DEFAULT_THRESHOLDS) -> None:
        self.query = query
        self.thresholds = thresholds

    @abstractmethod
    def execute(self, host: str) -> CheckResult:
        ...

    def _result(self, host: str, severity: Severity, measurement, note: str | None = None) -> CheckResult:
        return CheckResult(host=host, kind=self.kind, severity=severity, measurement=measurement, note=note)


class DiskCapacityCheck(CheckExecutor):
    kind = CheckKind.DISK_CAPACITY

    def execute(self, host: str) -> CheckResult:
        volumes = []
        for d in self.query.disks(host):
            if d.size_bytes == 0:
                continue  # optical drives, unmounted media
            free_pct = d.free_bytes / d.size_bytes * 100
            volumes.append(
                VolumeUsage(
                    name=d.name,
                    size_gb=round(d.size_bytes / _GB, 2),
                    free_gb=round(d.free_bytes / _GB, 2),
                    free_percent=round(free_pct, 1),
                    severity=classify(free_pct, self.thresholds.disk_free_percent),
                )
            )
        if not volumes:
            raise CheckExecutionError("no volumes reported")

        severity = worst(v.severity for v in volumes)
        low = [v.name for v in volumes if v.severity != Severity.HEALTHY]
        note = f"low free space on {', '.join(low)}" if low else None
        return self._result(host, severity, DiskMeasurement(volumes=tuple(volumes)), note)


class ServiceStateCheck(CheckExecutor):
    kind = CheckKind.SERVICE_STATE

    def __init__(
        self,
        query: RemoteQuery,
        thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
        watched: list[str] | tuple[str, ...] = (),
    ) -> None:
        super().__init__(query, thresholds)
        self.watched = tuple(watched)

    def execute(self, host: str) -> CheckResult:
        if not self.watched:
            raise CheckExecutionError("no services configured to watch")

        reported = {s.name.lower(): s.state for s in self.query.services(host, list(self.watched))}
        statuses = []
        for name in self.watched:
            state = reported.get(name.lower())
            if state is None:
                statuses.append(ServiceStatus(name=name, state="missing", severity=Severity.WARNING))
            else:
                statuses.append(ServiceStatus(name=name, state=state, severity=classify_service_state(state)))

        severity = worst(s.severity for s in statuses)
        down = [f"{s.name} ({s.state})" for s in statuses if s.severity != Severity.HEALTHY]
        note = "not running: " + ", ".join(down) if down else None
        return self._result(host, severity, ServiceMeasurement(services=tuple(statuses)), note)


class EventLogVolumeCheck(CheckExecutor):
    kind = CheckKind.EVENT_LOG_VOLUME

    def __init__(
        self,
        query: RemoteQuery,
        thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
        window_hours: int = 24,
    ) -> None:
        super().__init__(query, thresholds)
        self.window_hours = window_hours

    def execute(self, host: str) -> CheckResult:
        counts = self.query.event_errors(host, self.window_hours)
        m = EventLogMeasurement(
            system_errors=counts.system,
            application_errors=counts.application,
            window_hours=self.window_hours,
        )
        return self._result(host, classify(m.total, self.thresholds.event_log_errors), m)


class UptimeCheck(CheckExecutor):
    kind = CheckKind.UPTIME

    def __init__(
        self,
        query: RemoteQuery,
        thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(query, thresholds)
        self.clock = clock

    def execute(self, host: str) -> CheckResult:
        last_boot = self.query.uptime(host).last_boot
        if last_boot.tzinfo is None:
            last_boot = last_boot.replace(tzinfo=timezone.utc)
        elapsed = self.clock() - last_boot
        if -_CLOCK_SKEW <= elapsed < timedelta(0):
            elapsed = timedelta(0)
        days = elapsed.total_seconds() / 86400
        if days < 0:
            raise CheckExecutionError(f"last boot {last_boot.isoformat()} is in the future")
        m = UptimeMeasurement(last_boot=last_boot, uptime_days=round(days, 1))
        return self._result(host, classify(days, self.thresholds.uptime_days), m)


class PendingUpdatesCheck(CheckExecutor):
    kind = CheckKind.PENDING_UPDATES

    def execute(self, host: str) -> CheckResult:
        u = self.query.pending_updates(host)
        m = UpdatesMeasurement(critical=u.critical, important=u.important, other=u.other)
        return self._result(host, classify_updates(u.critical, u.important), m)


class UtilizationCheck(CheckExecutor):
    kind = CheckKind.UTILIZATION

    def execute(self, host: str) -> CheckResult:
        u = self.query.utilization(host)
        m = UtilizationMeasurement(
            cpu_percent=round(u.cpu_percent, 1),
            memory_percent=round(u.memory_percent, 1),
            pagefile_percent=round(u.pagefile_percent, 1),
        )
        t = self.thresholds
        severity = worst([
            classify(u.cpu_percent, t.cpu_percent),
            classify(u.memory_percent, t.memory_percent),
            classify(u.pagefile_percent, t.pagefile_percent),
        ])
        return self._result(host, severity, m)


class NetworkConfigCheck(CheckExecutor):
    kind = CheckKind.NETWORK_CONFIG

    def execute(self, host: str) -> CheckResult:
        adapters = tuple(
            AdapterConfig(
                name=a.name,
                addresses=tuple(a.addresses),
                gateway=a.gateway or None,
                dns_servers=tuple(a.dns_servers),
            )
            for a in self.query.network(host)
        )
        addressed = [a for a in adapters if a.addresses]
        if not addressed:
            severity, note = Severity.CRITICAL, "no adapter has an IP address"
        elif not any(a.gateway for a in addressed):
            severity, note = Severity.WARNING, "no default gateway configured"
        elif not any(a.dns_servers for a in addressed):
            severity, note = Severity.WARNING, "no DNS servers configured"
        else:
            severity, note = Severity.HEALTHY, None
        return self._result(host, severity, NetworkMeasurement(adapters=adapters), note)


EXECUTOR_TYPES: dict[CheckKind, type[CheckExecutor]] = {
    cls.kind: cls
    for cls in (
        DiskCapacityCheck,
        ServiceStateCheck,
        EventLogVolumeCheck,
        UptimeCheck,
        PendingUpdatesCheck,
        UtilizationCheck,
        NetworkConfigCheck,
    )
}


def build_executors(
    query: RemoteQuery,
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
    watched_services: list[str] | tuple[str, ...] = (),
    event_window_hours: int = 24,
) -> dict[CheckKind, CheckExecutor]:
    """One executor per CheckKind, all sharing the same query and thresholds."""
    executors: dict[CheckKind, CheckExecutor] = {}
    for kind, cls in EXECUTOR_TYPES.items():
        if cls is ServiceStateCheck:
            executors[kind] = ServiceStateCheck(query, thresholds, watched=watched_services)
        elif cls is EventLogVolumeCheck:
            executors[kind] = EventLogVolumeCheck(query, thresholds, window_hours=event_window_hours)
        else:
            executors[kind] = cls(query, thresholds)
    return executors
