"""Builds the immutable RunReport and maps it to a process exit code."""

from __future__ import annotations

from collections.abc import Sequence

from fleetcheck.health.aggregate import run_status
from fleetcheck.health.models import DepthProfile, HostHealthReport, RunReport, Severity

EXIT_OK = 0
EXIT_WARNING = 1
EXIT_CRITICAL = 2
EXIT_CONFIG_ERROR = 3


def assemble_run_report(
    depth: DepthProfile,
    hosts: Sequence[HostHealthReport],
    cancelled: bool = False,
) -> RunReport:
    """Freeze per-host reports into a RunReport. An empty list is valid."""
    hosts = tuple(hosts)
    return RunReport(depth=depth, hosts=hosts, worst=run_status(hosts), cancelled=cancelled)


def exit_code(report: RunReport) -> int:
    """0 healthy, 1 warning, 2 critical or unreachable.

    An UNKNOWN run is 0 only when no check failed; a run whose every check
    failed exits 1 so it never reads as a clean sweep.
    """
    if report.worst in (Severity.CRITICAL, Severity.UNREACHABLE):
        return EXIT_CRITICAL
    if report.worst == Severity.WARNING:
        return EXIT_WARNING
    if report.worst == Severity.UNKNOWN and any(_has_failure(h) for h in report.hosts):
        return EXIT_WARNING
    return EXIT_OK


def _has_failure(host: HostHealthReport) -> bool:
    return host.note is not None or any(c.failed for c in host.checks)
