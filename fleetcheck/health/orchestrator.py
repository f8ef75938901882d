"""Run orchestrator — probes each host, runs the resolved checks, collects reports.

Hosts are processed on a bounded ThreadPoolExecutor. Each worker owns its
host's results until it returns; the main thread places finished reports
by input index, so the RunReport keeps input order whatever the completion
order. A ``threading.Event`` cancels the run: workers finish the check in
flight, skip the rest, and their reports are tagged ``completed=False``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any

from fleetcheck.agent.client import AgentClient, AgentError, AgentUnavailableError
from fleetcheck.errors import CheckExecutionError, ConfigurationError, ConnectivityError
from fleetcheck.health.aggregate import host_status
from fleetcheck.health.checks import CheckExecutor, build_executors
from fleetcheck.health.models import (
    CheckKind,
    CheckResult,
    DepthProfile,
    HostHealthReport,
    RunReport,
    Severity,
)
from fleetcheck.health.probe import ConnectivityProbe
from fleetcheck.health.profiles import parse_depth, resolve_profile
from fleetcheck.health.thresholds import DEFAULT_THRESHOLDS, ThresholdSet
from fleetcheck.report.assembler import assemble_run_report

if TYPE_CHECKING:
    from fleetcheck.config import Settings

logger = logging.getLogger(__name__)

Probe = Callable[[str], bool]
HostCallback = Callable[[HostHealthReport], Any]


def describe_failure(exc: BaseException) -> str:
    """Failure note for a check that raised; the prefix names the cause."""
    if isinstance(exc, AgentUnavailableError):
        return f"{'timeout' if exc.timed_out else 'unavailable'}: {exc}"
    if isinstance(exc, AgentError):
        return f"{'permission denied' if exc.permission_denied else 'query error'}: {exc.detail}"
    if isinstance(exc, PermissionError):
        return f"permission denied: {exc}"
    if isinstance(exc, TimeoutError):
        return f"timeout: {exc}"
    if isinstance(exc, CheckExecutionError):
        return f"check error: {exc}"
    return f"error: {type(exc).__name__}: {exc}"


def validate_hosts(hosts: Sequence[str]) -> list[str]:
    """Reject blank or non-string host entries. Duplicates are kept."""
    cleaned = []
    for i, h in enumerate(hosts):
        if not isinstance(h, str) or not h.strip():
            raise ConfigurationError(f"invalid host entry at position {i}: {h!r}")
        cleaned.append(h.strip())
    return cleaned


class RunOrchestrator:
    """Executes one diagnostic run across many hosts.

    ``executors`` maps every CheckKind the requested depth can resolve to
    an executor; ``probe`` is the reachability gate. Both are supplied by
    the caller, nothing is read from global settings.
    """

    def __init__(
        self,
        executors: Mapping[CheckKind, CheckExecutor],
        probe: Probe,
        max_workers: int = 4,
        on_host: HostCallback | None = None,
    ) -> None:
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")
        self.executors = dict(executors)
        self.probe = probe
        self.max_workers = max_workers
        self.on_host = on_host

    def run(
        self,
        hosts: Sequence[str],
        depth: DepthProfile | str = DepthProfile.STANDARD,
        stop_event: threading.Event | None = None,
    ) -> RunReport:
        """Run the sweep. Only ConfigurationError escapes; it is raised before any probe."""
        depth = parse_depth(depth)
        targets = validate_hosts(hosts)
        kinds = resolve_profile(depth)
        missing = [k.value for k in kinds if k not in self.executors]
        if missing:
            raise ConfigurationError(f"no executor configured for: {', '.join(missing)}")

        stop_event = stop_event or threading.Event()
        logger.info(
            "Run started: %d hosts, depth=%s, %d checks per host, workers=%d",
            len(targets), depth.value, len(kinds), self.max_workers,
        )

        reports: list[HostHealthReport | None] = [None] * len(targets)
        if targets:
            n_workers = min(self.max_workers, len(targets))
            with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="fleetcheck") as pool:
                futures = {
                    pool.submit(self._run_host, host, kinds, stop_event): i
                    for i, host in enumerate(targets)
                }
                for future in as_completed(futures):
                    i = futures[future]
                    try:
                        reports[i] = future.result()
                    except Exception as exc:
                        logger.exception("Worker for host %s raised", targets[i])
                        reports[i] = HostHealthReport(
                            host=targets[i], reachable=None, checks=(),
                            overall=Severity.UNKNOWN, note=describe_failure(exc),
                        )
                    self._notify(reports[i])

        cancelled = stop_event.is_set()
        if cancelled:
            logger.info("Run cancelled: %d of %d hosts completed",
                        sum(1 for r in reports if r and r.completed), len(targets))

        report = assemble_run_report(depth, [r for r in reports if r is not None], cancelled=cancelled)
        logger.info("Run finished: worst=%s", report.worst.value)
        return report

    def _notify(self, report: HostHealthReport | None) -> None:
        if self.on_host is None or report is None:
            return
        try:
            self.on_host(report)
        except Exception:
            logger.exception("Host callback error")

    def _run_host(
        self,
        host: str,
        kinds: list[CheckKind],
        stop_event: threading.Event,
    ) -> HostHealthReport:
        """Probe one host and run its checks in order."""
        if stop_event.is_set():
            return HostHealthReport(
                host=host, reachable=None, checks=(),
                overall=Severity.UNKNOWN, completed=False,
            )

        # Probes signal failure by returning False or raising ConnectivityError.
        try:
            if not self.probe(host):
                raise ConnectivityError(f"{host} failed its reachability probe")
        except Exception as exc:
            logger.warning("Host %s is unreachable, skipping checks: %s", host, exc)
            return HostHealthReport(
                host=host, reachable=False, checks=(), overall=Severity.UNREACHABLE,
            )

        results: list[CheckResult] = []
        completed = True
        for kind in kinds:
            if stop_event.is_set():
                completed = False
                break
            results.append(self._run_check(host, kind))

        return HostHealthReport(
            host=host,
            reachable=True,
            checks=tuple(results),
            overall=host_status(results),
            completed=completed,
        )

    def _run_check(self, host: str, kind: CheckKind) -> CheckResult:
        try:
            result = self.executors[kind].execute(host)
        except Exception as exc:
            note = describe_failure(exc)
            logger.warning("Check %s on %s failed: %s", kind.value, host, note)
            return CheckResult.failure(host, kind, note)

        if result.host != host or result.kind != kind:
            logger.error("Executor for %s returned a result for %s/%s", kind.value, result.host, result.kind.value)
            return CheckResult.failure(host, kind, "error: executor returned a mismatched result")

        logger.debug("Check %s on %s: %s", kind.value, host, result.severity.value)
        return result


def build_orchestrator(
    cfg: Settings,
    thresholds: ThresholdSet = DEFAULT_THRESHOLDS,
    max_workers: int | None = None,
    on_host: HostCallback | None = None,
) -> RunOrchestrator:
    """Wire the agent client, probe and executors from an explicit Settings value."""
    query = AgentClient(
        port=cfg.agent_port,
        token=cfg.agent_token,
        timeout=cfg.check_timeout,
        scheme=cfg.agent_scheme,
    )
    executors = build_executors(
        query,
        thresholds,
        watched_services=cfg.watched_services,
        event_window_hours=cfg.event_window_hours,
    )
    probe = ConnectivityProbe(port=cfg.probe_port or cfg.agent_port, timeout=cfg.probe_timeout)
    return RunOrchestrator(
        executors,
        probe,
        max_workers=cfg.max_workers if max_workers is None else max_workers,
        on_host=on_host,
    )
