"""Tests for the threshold classifier and override loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from fleetcheck.errors import ConfigurationError
from fleetcheck.health.models import Severity
from fleetcheck.health.thresholds import (
    DEFAULT_THRESHOLDS,
    Threshold,
    ThresholdSet,
    classify,
    classify_service_state,
    classify_updates,
    load_thresholds,
)

T = DEFAULT_THRESHOLDS


# ── Numeric classification ───────────────────────────────────────────────────


class TestDiskFree:
    @pytest.mark.parametrize(
        "free_pct, expected",
        [
            (50, Severity.HEALTHY),
            (20, Severity.HEALTHY),  # boundary: strict <
            (19.9, Severity.WARNING),
            (15, Severity.WARNING),
            (10, Severity.WARNING),  # boundary: strict <
            (9.99, Severity.CRITICAL),
            (5, Severity.CRITICAL),
            (0, Severity.CRITICAL),
        ],
    )
    def test_defaults(self, free_pct: float, expected: Severity) -> None:
        assert classify(free_pct, T.disk_free_percent) == expected


class TestUtilization:
    @pytest.mark.parametrize(
        "pct, expected",
        [
            (10, Severity.HEALTHY),
            (80, Severity.HEALTHY),
            (80.1, Severity.WARNING),
            (90, Severity.WARNING),
            (90.5, Severity.CRITICAL),
            (100, Severity.CRITICAL),
        ],
    )
    def test_cpu_and_memory_share_defaults(self, pct: float, expected: Severity) -> None:
        assert classify(pct, T.cpu_percent) == expected
        assert classify(pct, T.memory_percent) == expected


class TestInformational:
    def test_uptime_never_critical(self) -> None:
        assert classify(30, T.uptime_days) == Severity.HEALTHY
        assert classify(31, T.uptime_days) == Severity.WARNING
        assert classify(10_000, T.uptime_days) == Severity.WARNING

    def test_event_log_never_critical(self) -> None:
        assert classify(100, T.event_log_errors) == Severity.HEALTHY
        assert classify(101, T.event_log_errors) == Severity.WARNING
        assert classify(50_000, T.event_log_errors) == Severity.WARNING


class TestServiceState:
    def test_running(self) -> None:
        assert classify_service_state("Running") == Severity.HEALTHY

    def test_stopped(self) -> None:
        assert classify_service_state("stopped") == Severity.CRITICAL

    @pytest.mark.parametrize("state", ["StartPending", "Paused", "StopPending", "missing"])
    def test_other_states_warn(self, state: str) -> None:
        assert classify_service_state(state) == Severity.WARNING


class TestUpdates:
    def test_critical_wins(self) -> None:
        assert classify_updates(critical=1, important=5) == Severity.CRITICAL

    def test_important_only(self) -> None:
        assert classify_updates(critical=0, important=2) == Severity.WARNING

    def test_none_pending(self) -> None:
        assert classify_updates(critical=0, important=0) == Severity.HEALTHY


# ── Overrides ────────────────────────────────────────────────────────────────


class TestOverrides:
    def test_merge_keeps_other_defaults(self) -> None:
        t = T.with_overrides({"cpu_percent": {"warning": 70}})
        assert t.cpu_percent == Threshold(warning=70, critical=90)
        assert t.memory_percent == T.memory_percent
        assert T.cpu_percent.warning == 80  # defaults untouched

    def test_lower_is_worse_direction_enforced(self) -> None:
        with pytest.raises(ConfigurationError):
            T.with_overrides({"disk_free_percent": {"warning": 10, "critical": 20}})

    def test_higher_is_worse_direction_enforced(self) -> None:
        with pytest.raises(ConfigurationError):
            T.with_overrides({"cpu_percent": {"warning": 95}})

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown threshold"):
            T.with_overrides({"gpu_percent": {"warning": 50}})

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown keys"):
            T.with_overrides({"cpu_percent": {"warn": 50}})

    def test_non_numeric(self) -> None:
        with pytest.raises(ConfigurationError, match="must be a number"):
            T.with_overrides({"cpu_percent": {"warning": "high"}})

    def test_negative(self) -> None:
        with pytest.raises(ConfigurationError, match="negative"):
            T.with_overrides({"uptime_days": {"warning": -1}})

    @pytest.mark.parametrize("bound", [float("nan"), float("inf")])
    def test_non_finite(self, bound: float) -> None:
        with pytest.raises(ConfigurationError, match="finite"):
            T.with_overrides({"cpu_percent": {"warning": bound}})

    def test_null_critical_on_thresholded(self) -> None:
        with pytest.raises(ConfigurationError, match="requires a critical"):
            T.with_overrides({"cpu_percent": {"critical": None}})

    def test_null_warning(self) -> None:
        with pytest.raises(ConfigurationError, match="required"):
            T.with_overrides({"memory_percent": {"warning": None}})

    def test_informational_has_no_critical(self) -> None:
        with pytest.raises(ConfigurationError, match="informational"):
            T.with_overrides({"uptime_days": {"critical": 90}})

    def test_defaults_validate(self) -> None:
        ThresholdSet().validate()


class TestLoadThresholds:
    def test_empty_path_gives_defaults(self) -> None:
        assert load_thresholds("") is DEFAULT_THRESHOLDS
        assert load_thresholds(None) is DEFAULT_THRESHOLDS

    def test_yaml_file(self, tmp_path: Path) -> None:
        f = tmp_path / "thresholds.yaml"
        f.write_text("disk_free_percent:\n  warning: 30\n  critical: 15\nuptime_days:\n  warning: 60\n")
        t = load_thresholds(f)
        assert classify(25, t.disk_free_percent) == Severity.WARNING
        assert classify(45, t.uptime_days) == Severity.HEALTHY

    def test_empty_file(self, tmp_path: Path) -> None:
        f = tmp_path / "thresholds.yaml"
        f.write_text("")
        assert load_thresholds(f) == DEFAULT_THRESHOLDS

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_thresholds(tmp_path / "nope.yaml")

    def test_yaml_nan(self, tmp_path: Path) -> None:
        f = tmp_path / "thresholds.yaml"
        f.write_text("cpu_percent:\n  warning: .nan\n")
        with pytest.raises(ConfigurationError):
            load_thresholds(f)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        f = tmp_path / "thresholds.yaml"
        f.write_text("cpu_percent: [unclosed\n")
        with pytest.raises(ConfigurationError, match="not valid YAML"):
            load_thresholds(f)

    def test_top_level_not_mapping(self, tmp_path: Path) -> None:
        f = tmp_path / "thresholds.yaml"
        f.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_thresholds(f)
