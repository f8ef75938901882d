"""Data model for a diagnostic run.

Severity ordering, check identities, depth profiles, one measurement type
per check kind, and the immutable per-host and per-run reports.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union

# ── Enums ────────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    """Health classification, ordered UNKNOWN < HEALTHY < WARNING < CRITICAL.

    UNREACHABLE is the host-level sentinel. Classifiers never produce it and
    it outranks every check severity in host and run rollups.
    """

    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNREACHABLE = "unreachable"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_RANK = {
    Severity.UNKNOWN: 0,
    Severity.HEALTHY: 1,
    Severity.WARNING: 2,
    Severity.CRITICAL: 3,
    Severity.UNREACHABLE: 4,
}


class CheckKind(str, Enum):
    DISK_CAPACITY = "disk_capacity"
    SERVICE_STATE = "service_state"
    EVENT_LOG_VOLUME = "event_log_volume"
    UPTIME = "uptime"
    PENDING_UPDATES = "pending_updates"
    UTILIZATION = "utilization"
    NETWORK_CONFIG = "network_config"


class DepthProfile(str, Enum):
    QUICK = "quick"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"


# ── Measurements (one per CheckKind) ─────────────────────────────────────────


@dataclass(frozen=True)
class VolumeUsage:
    name: str
    size_gb: float
    free_gb: float
    free_percent: float
    severity: Severity


@dataclass(frozen=True)
class DiskMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.DISK_CAPACITY
    volumes: tuple[VolumeUsage, ...] = ()


@dataclass(frozen=True)
class ServiceStatus:
    name: str
    state: str
    severity: Severity


@dataclass(frozen=True)
class ServiceMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.SERVICE_STATE
    services: tuple[ServiceStatus, ...] = ()


@dataclass(frozen=True)
class EventLogMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.EVENT_LOG_VOLUME
    system_errors: int
    application_errors: int
    window_hours: int

    @property
    def total(self) -> int:
        return self.system_errors + self.application_errors


@dataclass(frozen=True)
class UptimeMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.UPTIME
    last_boot: datetime
    uptime_days: float


@dataclass(frozen=True)
class UpdatesMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.PENDING_UPDATES
    critical: int
    important: int
    other: int


@dataclass(frozen=True)
class UtilizationMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.UTILIZATION
    cpu_percent: float
    memory_percent: float
    pagefile_percent: float


@dataclass(frozen=True)
class AdapterConfig:
    name: str
    addresses: tuple[str, ...]
    gateway: str | None
    dns_servers: tuple[str, ...]


@dataclass(frozen=True)
class NetworkMeasurement:
    kind: ClassVar[CheckKind] = CheckKind.NETWORK_CONFIG
    adapters: tuple[AdapterConfig, ...] = ()


Measurement = Union[
    DiskMeasurement,
    ServiceMeasurement,
    EventLogMeasurement,
    UptimeMeasurement,
    UpdatesMeasurement,
    UtilizationMeasurement,
    NetworkMeasurement,
]


def _measurement_to_dict(m: Measurement) -> dict[str, Any]:
    data = asdict(m)
    if isinstance(m, EventLogMeasurement):
        data["total"] = m.total
    if isinstance(m, UptimeMeasurement):
        data["last_boot"] = m.last_boot.isoformat()
    return _plain(data)


def _plain(value: Any) -> Any:
    """Replace enums and tuples in an asdict() tree with JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


# ── Results and reports ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CheckResult:
    """Outcome of running one CheckKind against one host.

    ``measurement`` is None when the check failed; the failure is then
    described by ``note`` and the severity is UNKNOWN.
    """

    host: str
    kind: CheckKind
    severity: Severity
    measurement: Measurement | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if self.measurement is not None and self.measurement.kind != self.kind:
            raise ValueError(
                f"{type(self.measurement).__name__} cannot back a {self.kind.value} result"
            )
        if self.severity == Severity.UNREACHABLE:
            raise ValueError("UNREACHABLE is a host-level status, not a check severity")

    @property
    def failed(self) -> bool:
        return self.measurement is None

    @classmethod
    def failure(cls, host: str, kind: CheckKind, note: str) -> CheckResult:
        return cls(host=host, kind=kind, severity=Severity.UNKNOWN, note=note)

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "measurement": _measurement_to_dict(self.measurement) if self.measurement else None,
            "note": self.note,
        }


@dataclass(frozen=True)
class HostHealthReport:
    """Aggregated outcome for one host.

    ``reachable`` is None when the host was never probed. ``completed`` is
    False only when the run was cancelled before this host finished its
    resolved checks. ``note`` carries a host-level error, if any.
    """

    host: str
    reachable: bool | None
    checks: tuple[CheckResult, ...]
    overall: Severity
    completed: bool = True
    note: str | None = None

    def __post_init__(self) -> None:
        kinds = [c.kind for c in self.checks]
        if len(kinds) != len(set(kinds)):
            raise ValueError(f"duplicate check kinds in report for {self.host}")
        if any(c.host != self.host for c in self.checks):
            raise ValueError(f"report for {self.host} holds results for another host")
        if not self.reachable and self.checks:
            raise ValueError(f"unreachable host {self.host} cannot carry check results")

    def get(self, kind: CheckKind) -> CheckResult | None:
        return next((c for c in self.checks if c.kind == kind), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "reachable": self.reachable,
            "completed": self.completed,
            "overall": self.overall.value,
            "note": self.note,
            "checks": [c.to_dict() for c in self.checks],
        }


@dataclass(frozen=True)
class RunReport:
    """Outcome of a whole run. Built once, never mutated."""

    depth: DepthProfile
    hosts: tuple[HostHealthReport, ...]
    worst: Severity
    cancelled: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> dict[str, int]:
        """Number of hosts per overall status."""
        counts = {s.value: 0 for s in Severity}
        for h in self.hosts:
            counts[h.overall.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth.value,
            "timestamp": self.timestamp.isoformat(),
            "worst": self.worst.value,
            "cancelled": self.cancelled,
            "summary": self.summary(),
            "hosts": [h.to_dict() for h in self.hosts],
        }
