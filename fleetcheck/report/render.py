"""Renderers for a finished RunReport — JSON, CSV, HTML and a rich console table.

Renderers only read the report. Any failure is raised as ReportRenderError
and leaves the in-memory report untouched.
"""

from __future__ import annotations

import csv
import html
import io
import json
import logging
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from fleetcheck.errors import ReportRenderError
from fleetcheck.health.models import (
    CheckResult,
    DiskMeasurement,
    EventLogMeasurement,
    HostHealthReport,
    NetworkMeasurement,
    RunReport,
    ServiceMeasurement,
    Severity,
    UpdatesMeasurement,
    UptimeMeasurement,
    UtilizationMeasurement,
)

logger = logging.getLogger(__name__)

_STYLE = {
    Severity.UNKNOWN: "dim",
    Severity.HEALTHY: "green",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "bold red",
    Severity.UNREACHABLE: "bold magenta",
}

_HTML_COLOR = {
    Severity.UNKNOWN: "#8a8a8a",
    Severity.HEALTHY: "#2e7d32",
    Severity.WARNING: "#f9a825",
    Severity.CRITICAL: "#c62828",
    Severity.UNREACHABLE: "#6a1b9a",
}

CSV_COLUMNS = ["host", "reachable", "completed", "overall", "check", "severity", "detail", "note"]


def _renderer(name: str) -> Callable:
    """Wrap a renderer so any failure surfaces as ReportRenderError."""

    def decorator(fn: Callable) -> Callable:
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return fn(*args, **kwargs)
            except ReportRenderError:
                raise
            except Exception as e:
                logger.error("%s rendering failed: %s", name, e)
                raise ReportRenderError(f"{name} rendering failed: {type(e).__name__}: {e}") from e

        return wrapper

    return decorator


def describe(result: CheckResult) -> str:
    """One-line human summary of a check's measurement."""
    if result.failed:
        return ""
    m = result.measurement
    if isinstance(m, DiskMeasurement):
        return ", ".join(f"{v.name} {v.free_percent:.1f}% free" for v in m.volumes)
    if isinstance(m, ServiceMeasurement):
        running = sum(1 for s in m.services if s.severity == Severity.HEALTHY)
        return f"{running}/{len(m.services)} running"
    if isinstance(m, EventLogMeasurement):
        return (
            f"{m.total} errors in {m.window_hours}h "
            f"(system {m.system_errors}, application {m.application_errors})"
        )
    if isinstance(m, UptimeMeasurement):
        return f"up {m.uptime_days:.1f} days"
    if isinstance(m, UpdatesMeasurement):
        return f"{m.critical} critical, {m.important} important, {m.other} other pending"
    if isinstance(m, UtilizationMeasurement):
        return f"CPU {m.cpu_percent:.1f}%, memory {m.memory_percent:.1f}%, page file {m.pagefile_percent:.1f}%"
    if isinstance(m, NetworkMeasurement):
        addressed = [a for a in m.adapters if a.addresses]
        return f"{len(addressed)}/{len(m.adapters)} adapters addressed"
    return ""


def _host_note(h: HostHealthReport) -> str:
    if h.note:
        return h.note
    if not h.completed:
        return "cancelled before completion"
    if h.reachable is None:
        return "not probed"
    if not h.reachable:
        return "host unreachable"
    if not h.checks:
        return "no checks run"
    return ""


# ── JSON ─────────────────────────────────────────────────────────────────────


@_renderer("JSON")
def render_json(report: RunReport, indent: int = 2) -> str:
    return json.dumps(report.to_dict(), indent=indent)


# ── CSV ──────────────────────────────────────────────────────────────────────


@_renderer("CSV")
def render_csv(report: RunReport) -> str:
    """One row per check; hosts without checks get a single row."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for h in report.hosts:
        base = {
            "host": h.host,
            "reachable": "" if h.reachable is None else str(h.reachable).lower(),
            "completed": str(h.completed).lower(),
            "overall": h.overall.value,
        }
        if not h.checks:
            writer.writerow({**base, "check": "", "severity": "", "detail": "", "note": _host_note(h)})
            continue
        for c in h.checks:
            writer.writerow({
                **base,
                "check": c.kind.value,
                "severity": c.severity.value,
                "detail": describe(c),
                "note": c.note or "",
            })
    return buf.getvalue()


# ── HTML ─────────────────────────────────────────────────────────────────────


def _badge(severity: Severity) -> str:
    color = _HTML_COLOR[severity]
    return (
        f'<span style="background:{color};color:#fff;padding:2px 8px;'
        f'border-radius:4px;font-size:12px;">{severity.value.upper()}</span>'
    )


@_renderer("HTML")
def render_html(report: RunReport, title: str = "System Health Report") -> str:
    """Self-contained HTML document with a summary and one table per host."""
    esc = html.escape
    summary = report.summary()
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en"><head><meta charset="utf-8">',
        f"<title>{esc(title)}</title>",
        "<style>"
        "body{font-family:Segoe UI,Arial,sans-serif;margin:24px;color:#222}"
        "table{border-collapse:collapse;width:100%;margin-bottom:24px}"
        "th,td{border:1px solid #ddd;padding:6px 10px;text-align:left;font-size:13px}"
        "th{background:#f3f3f3}"
        "</style></head><body>",
        f"<h1>{esc(title)}</h1>",
        f"<p>Generated {esc(report.timestamp.strftime('%Y-%m-%d %H:%M:%S %Z'))} &middot; "
        f"depth <b>{esc(report.depth.value)}</b> &middot; {len(report.hosts)} hosts &middot; "
        f"overall {_badge(report.worst)}</p>",
    ]
    if report.cancelled:
        parts.append("<p><b>Run was cancelled; some hosts are incomplete.</b></p>")

    counts = ", ".join(f"{esc(k)}: {v}" for k, v in summary.items() if v)
    parts.append(f"<p>{counts or 'No hosts'}</p>")

    for h in report.hosts:
        parts.append(f"<h2>{esc(h.host)} {_badge(h.overall)}</h2>")
        note = _host_note(h)
        if note:
            parts.append(f"<p><i>{esc(note)}</i></p>")
        if not h.checks:
            continue
        parts.append("<table><tr><th>Check</th><th>Status</th><th>Detail</th><th>Note</th></tr>")
        for c in h.checks:
            parts.append(
                f"<tr><td>{esc(c.kind.value)}</td><td>{_badge(c.severity)}</td>"
                f"<td>{esc(describe(c))}</td><td>{esc(c.note or '')}</td></tr>"
            )
        parts.append("</table>")

    parts.append("</body></html>")
    return "\n".join(parts)


# ── Console ──────────────────────────────────────────────────────────────────


@_renderer("Console")
def print_report(report: RunReport, console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title=f"Health sweep — depth {report.depth.value}", show_lines=False)
    table.add_column("Host", style="bold")
    table.add_column("Overall")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Detail")
    table.add_column("Note", style="dim")

    for h in report.hosts:
        overall = f"[{_STYLE[h.overall]}]{h.overall.value}[/]"
        if not h.checks:
            table.add_row(h.host, overall, "", "", "", _host_note(h))
            continue
        for i, c in enumerate(h.checks):
            table.add_row(
                h.host if i == 0 else "",
                overall if i == 0 else "",
                c.kind.value,
                f"[{_STYLE[c.severity]}]{c.severity.value}[/]",
                describe(c),
                c.note or "",
            )

    console.print(table)
    counts = "  ".join(f"{k}={v}" for k, v in report.summary().items() if v)
    console.print(
        f"\n[bold]Worst:[/bold] [{_STYLE[report.worst]}]{report.worst.value}[/]  "
        f"[dim]{counts or 'no hosts'}{'  (cancelled)' if report.cancelled else ''}[/dim]"
    )


# ── Files ────────────────────────────────────────────────────────────────────

_FORMATS: dict[str, Callable[[RunReport], str]] = {
    "json": render_json,
    "csv": render_csv,
    "html": render_html,
}


def write_report(report: RunReport, path: str | Path, fmt: str) -> Path:
    """Render ``report`` as ``fmt`` and write it to ``path``."""
    renderer = _FORMATS.get(fmt)
    if renderer is None:
        raise ReportRenderError(f"unknown report format: {fmt}")
    content = renderer(report)
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportRenderError(f"could not write {p}: {e}") from e
    logger.info("Wrote %s report to %s", fmt, p)
    return p
