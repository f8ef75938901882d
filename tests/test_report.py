"""Tests for report assembly, exit codes and renderers."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from fleetcheck.errors import ReportRenderError
from fleetcheck.health.models import (
    CheckKind,
    CheckResult,
    DepthProfile,
    DiskMeasurement,
    EventLogMeasurement,
    HostHealthReport,
    Severity,
    UptimeMeasurement,
    VolumeUsage,
)
from fleetcheck.report.assembler import (
    EXIT_CRITICAL,
    EXIT_OK,
    EXIT_WARNING,
    assemble_run_report,
    exit_code,
)
from fleetcheck.report.render import describe, print_report, render_csv, render_html, render_json, write_report


def _disk(host: str, free_pct: float, severity: Severity) -> CheckResult:
    vol = VolumeUsage(name="C:", size_gb=100, free_gb=free_pct, free_percent=free_pct, severity=severity)
    return CheckResult(host=host, kind=CheckKind.DISK_CAPACITY, severity=severity,
                       measurement=DiskMeasurement(volumes=(vol,)))


@pytest.fixture
def mixed_report():
    web = HostHealthReport(
        host="web01",
        reachable=True,
        checks=(
            _disk("web01", 15.0, Severity.WARNING),
            CheckResult.failure("web01", CheckKind.SERVICE_STATE, "timeout: <agent> slow"),
        ),
        overall=Severity.WARNING,
    )
    db = HostHealthReport(host="db01", reachable=False, checks=(), overall=Severity.UNREACHABLE)
    return assemble_run_report(DepthProfile.QUICK, [web, db])


class TestAssembler:
    def test_empty(self) -> None:
        report = assemble_run_report(DepthProfile.STANDARD, [])
        assert report.hosts == ()
        assert report.worst == Severity.UNKNOWN
        assert exit_code(report) == EXIT_OK

    def test_worst_and_summary(self, mixed_report) -> None:
        assert mixed_report.worst == Severity.UNREACHABLE
        summary = mixed_report.summary()
        assert summary["warning"] == 1
        assert summary["unreachable"] == 1
        assert summary["healthy"] == 0

    def test_report_is_frozen(self, mixed_report) -> None:
        with pytest.raises(AttributeError):
            mixed_report.worst = Severity.HEALTHY  # type: ignore[misc]


class TestExitCode:
    @pytest.mark.parametrize(
        "overall, code",
        [
            (Severity.UNKNOWN, EXIT_OK),
            (Severity.HEALTHY, EXIT_OK),
            (Severity.WARNING, EXIT_WARNING),
            (Severity.CRITICAL, EXIT_CRITICAL),
            (Severity.UNREACHABLE, EXIT_CRITICAL),
        ],
    )
    def test_mapping(self, overall: Severity, code: int) -> None:
        host = HostHealthReport(host="h", reachable=overall != Severity.UNREACHABLE, checks=(), overall=overall)
        assert exit_code(assemble_run_report(DepthProfile.QUICK, [host])) == code

    def test_all_checks_failed_is_not_success(self) -> None:
        failed = CheckResult.failure("h", CheckKind.UPTIME, "timeout: agent request timed out")
        host = HostHealthReport(host="h", reachable=True, checks=(failed,), overall=Severity.UNKNOWN)
        report = assemble_run_report(DepthProfile.QUICK, [host])
        assert report.worst == Severity.UNKNOWN
        assert exit_code(report) == EXIT_WARNING

    def test_host_error_is_not_success(self) -> None:
        host = HostHealthReport(host="h", reachable=None, checks=(), overall=Severity.UNKNOWN,
                                note="error: RuntimeError: boom")
        assert exit_code(assemble_run_report(DepthProfile.QUICK, [host])) == EXIT_WARNING

    def test_unknown_without_checks_is_ok(self) -> None:
        host = HostHealthReport(host="h", reachable=None, checks=(), overall=Severity.UNKNOWN, completed=False)
        assert exit_code(assemble_run_report(DepthProfile.QUICK, [host], cancelled=True)) == EXIT_OK


class TestDescribe:
    def test_failed_check_has_no_detail(self) -> None:
        assert describe(CheckResult.failure("h", CheckKind.UPTIME, "timeout: x")) == ""

    def test_event_log(self) -> None:
        r = CheckResult(host="h", kind=CheckKind.EVENT_LOG_VOLUME, severity=Severity.WARNING,
                        measurement=EventLogMeasurement(system_errors=90, application_errors=20, window_hours=24))
        assert describe(r).startswith("110 errors in 24h")

    def test_uptime(self) -> None:
        r = CheckResult(host="h", kind=CheckKind.UPTIME, severity=Severity.HEALTHY,
                        measurement=UptimeMeasurement(last_boot=datetime(2026, 1, 1, tzinfo=timezone.utc),
                                                      uptime_days=4.2))
        assert describe(r) == "up 4.2 days"


class TestRenderers:
    def test_json(self, mixed_report) -> None:
        data = json.loads(render_json(mixed_report))
        assert data["depth"] == "quick"
        assert data["worst"] == "unreachable"
        assert [h["host"] for h in data["hosts"]] == ["web01", "db01"]
        disk = data["hosts"][0]["checks"][0]
        assert disk["measurement"]["volumes"][0]["severity"] == "warning"
        assert data["hosts"][0]["checks"][1]["measurement"] is None

    def test_csv_rows(self, mixed_report) -> None:
        rows = list(csv.DictReader(io.StringIO(render_csv(mixed_report))))
        assert len(rows) == 3  # two checks + one unreachable host row
        assert rows[0]["check"] == "disk_capacity"
        assert rows[0]["detail"] == "C: 15.0% free"
        assert rows[1]["note"].startswith("timeout")
        assert rows[2]["host"] == "db01"
        assert rows[2]["note"] == "host unreachable"

    def test_csv_not_probed_host(self) -> None:
        skipped = HostHealthReport(host="h", reachable=None, checks=(), overall=Severity.UNKNOWN, completed=False)
        rows = list(csv.DictReader(io.StringIO(render_csv(assemble_run_report(DepthProfile.QUICK, [skipped])))))
        assert rows[0]["reachable"] == ""
        assert rows[0]["completed"] == "false"
        assert rows[0]["note"] == "cancelled before completion"

    def test_html_escapes(self, mixed_report) -> None:
        doc = render_html(mixed_report)
        assert doc.startswith("<!DOCTYPE html>")
        assert "&lt;agent&gt;" in doc
        assert "<agent>" not in doc
        assert "UNREACHABLE" in doc

    def test_console(self, mixed_report) -> None:
        console = Console(record=True, width=160)
        print_report(mixed_report, console)
        text = console.export_text()
        assert "web01" in text
        assert "db01" in text
        assert "Worst:" in text

    def test_render_failure_keeps_report(self, mixed_report) -> None:
        before = mixed_report.to_dict()
        with patch("fleetcheck.report.render.json.dumps", side_effect=TypeError("boom")):
            with pytest.raises(ReportRenderError, match="JSON"):
                render_json(mixed_report)
        assert mixed_report.to_dict() == before


class TestWriteReport:
    def test_writes_file(self, mixed_report, tmp_path: Path) -> None:
        out = write_report(mixed_report, tmp_path / "out" / "report.html", "html")
        assert out.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_unknown_format(self, mixed_report, tmp_path: Path) -> None:
        with pytest.raises(ReportRenderError, match="unknown report format"):
            write_report(mixed_report, tmp_path / "r.xml", "xml")

    def test_unwritable_path(self, mixed_report, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ReportRenderError, match="could not write"):
            write_report(mixed_report, blocker / "report.json", "json")
