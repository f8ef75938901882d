"""Status aggregation — worst-case-wins rollups for hosts and runs.

Both rollups are max-reductions under the Severity ordering, with UNKNOWN
as the identity, so they can be applied incrementally or in any order.
"""

from __future__ import annotations

from collections.abc import Iterable

from fleetcheck.health.models import CheckResult, HostHealthReport, Severity


def worst(severities: Iterable[Severity]) -> Severity:
    """Maximum severity, UNKNOWN for an empty input."""
    result = Severity.UNKNOWN
    for s in severities:
        if s > result:
            result = s
    return result


def host_status(checks: Iterable[CheckResult], reachable: bool = True) -> Severity:
    """Overall host severity.

    UNKNOWN checks do not move the result; if every check is UNKNOWN (or
    there are none) the host is UNKNOWN.
    """
    if not reachable:
        return Severity.UNREACHABLE
    return worst(c.severity for c in checks if c.severity != Severity.UNKNOWN)


def run_status(hosts: Iterable[HostHealthReport]) -> Severity:
    """Worst overall status across all hosts, UNREACHABLE ranking highest."""
    return worst(h.overall for h in hosts)
