"""Shared test fixtures."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from fleetcheck.agent.models import (
    AdapterInfo,
    DiskInfo,
    EventErrorCounts,
    PendingUpdates,
    ServiceInfo,
    UptimeInfo,
    Utilization,
)
from fleetcheck.health.checks import build_executors
from fleetcheck.health.orchestrator import RunOrchestrator

GB = 1024 ** 3
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeQuery:
    """In-memory RemoteQuery. Every host answers with the same healthy data
    unless a per-host override or failure is set."""

    def __init__(self) -> None:
        self.disk_data = [DiskInfo(name="C:", size_bytes=100 * GB, free_bytes=50 * GB)]
        self.service_states: dict[str, str] = {}
        self.event_counts = EventErrorCounts(system=3, application=4)
        self.last_boot = datetime.now(timezone.utc) - timedelta(days=5)
        self.updates = PendingUpdates()
        self.util = Utilization(cpu_percent=20, memory_percent=40, pagefile_percent=10)
        self.adapters = [
            AdapterInfo(name="eth0", addresses=["10.0.0.5"], gateway="10.0.0.1", dns_servers=["10.0.0.2"])
        ]
        # (host, method) -> exception to raise
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _call(self, host: str, method: str) -> None:
        with self._lock:
            self.calls.append((host, method))
        exc = self.failures.get((host, method)) or self.failures.get(("*", method))
        if exc is not None:
            raise exc

    def disks(self, host: str) -> list[DiskInfo]:
        self._call(host, "disks")
        return list(self.disk_data)

    def services(self, host: str, names: list[str]) -> list[ServiceInfo]:
        self._call(host, "services")
        return [ServiceInfo(name=n, state=self.service_states.get(n, "Running")) for n in names]

    def event_errors(self, host: str, hours: int) -> EventErrorCounts:
        self._call(host, "event_errors")
        return self.event_counts

    def uptime(self, host: str) -> UptimeInfo:
        self._call(host, "uptime")
        return UptimeInfo(last_boot=self.last_boot)

    def pending_updates(self, host: str) -> PendingUpdates:
        self._call(host, "pending_updates")
        return self.updates

    def utilization(self, host: str) -> Utilization:
        self._call(host, "utilization")
        return self.util

    def network(self, host: str) -> list[AdapterInfo]:
        self._call(host, "network")
        return list(self.adapters)


class FakeProbe:
    """Probe that reports every host reachable except those listed."""

    def __init__(self, unreachable: set[str] | None = None, delays: dict[str, float] | None = None) -> None:
        self.unreachable = unreachable or set()
        self.delays = delays or {}
        self.probed: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, host: str) -> bool:
        with self._lock:
            self.probed.append(host)
        if host in self.delays:
            time.sleep(self.delays[host])
        return host not in self.unreachable


@pytest.fixture
def query() -> FakeQuery:
    return FakeQuery()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def executors(query: FakeQuery) -> dict[Any, Any]:
    return build_executors(query, watched_services=["EventLog", "WinRM"])


@pytest.fixture
def orchestrator(executors, probe: FakeProbe) -> RunOrchestrator:
    return RunOrchestrator(executors, probe, max_workers=4)
