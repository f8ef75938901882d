"""Threshold classifier and the threshold table it reads.

Comparisons are strict: a value exactly on a bound falls into the lower
severity bucket.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from fleetcheck.errors import ConfigurationError
from fleetcheck.health.models import Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Threshold:
    """Warning/critical bounds for one measurement.

    ``critical`` may be None for informational measurements that never go
    past WARNING. ``higher_is_worse`` sets the comparison direction.
    """

    warning: float
    critical: float | None
    higher_is_worse: bool = True

    def validate(self, name: str) -> None:
        if self.warning is None:
            raise ConfigurationError(f"{name}.warning is required")
        for label, bound in (("warning", self.warning), ("critical", self.critical)):
            if bound is None:
                continue
            if isinstance(bound, bool) or not isinstance(bound, (int, float)):
                raise ConfigurationError(f"{name}.{label} must be a number, got {bound!r}")
            if not math.isfinite(bound):
                raise ConfigurationError(f"{name}.{label} must be finite, got {bound!r}")
            if bound < 0:
                raise ConfigurationError(f"{name}.{label} must not be negative")
        if self.critical is None:
            return
        if self.higher_is_worse and self.critical <= self.warning:
            raise ConfigurationError(
                f"{name}: critical ({self.critical}) must be above warning ({self.warning})"
            )
        if not self.higher_is_worse and self.critical >= self.warning:
            raise ConfigurationError(
                f"{name}: critical ({self.critical}) must be below warning ({self.warning})"
            )


def classify(value: float, threshold: Threshold) -> Severity:
    """Map a measurement to a severity using strict comparisons."""
    if threshold.higher_is_worse:
        if threshold.critical is not None and value > threshold.critical:
            return Severity.CRITICAL
        if value > threshold.warning:
            return Severity.WARNING
        return Severity.HEALTHY

    if threshold.critical is not None and value < threshold.critical:
        return Severity.CRITICAL
    if value < threshold.warning:
        return Severity.WARNING
    return Severity.HEALTHY


def classify_service_state(state: str) -> Severity:
    normalized = state.strip().lower()
    if normalized == "running":
        return Severity.HEALTHY
    if normalized == "stopped":
        return Severity.CRITICAL
    return Severity.WARNING


def classify_updates(critical: int, important: int) -> Severity:
    if critical > 0:
        return Severity.CRITICAL
    if important > 0:
        return Severity.WARNING
    return Severity.HEALTHY


@dataclass(frozen=True)
class ThresholdSet:
    """Immutable threshold table handed to executors at construction time."""

    disk_free_percent: Threshold = Threshold(warning=20, critical=10, higher_is_worse=False)
    cpu_percent: Threshold = Threshold(warning=80, critical=90)
    memory_percent: Threshold = Threshold(warning=80, critical=90)
    pagefile_percent: Threshold = Threshold(warning=80, critical=90)
    uptime_days: Threshold = Threshold(warning=30, critical=None)
    event_log_errors: Threshold = Threshold(warning=100, critical=None)

    def validate(self) -> None:
        for f in fields(self):
            getattr(self, f.name).validate(f.name)

    def with_overrides(self, overrides: dict[str, Any]) -> ThresholdSet:
        """Return a copy with ``{name: {warning, critical}}`` merged in.

        Raises ConfigurationError for unknown names, unknown bound keys,
        or bounds that end up inconsistent.
        """
        if not isinstance(overrides, dict):
            raise ConfigurationError("threshold overrides must be a mapping")

        known = {f.name for f in fields(self)}
        changes: dict[str, Threshold] = {}
        for name, raw in overrides.items():
            if name not in known:
                raise ConfigurationError(f"unknown threshold: {name}")
            if not isinstance(raw, dict):
                raise ConfigurationError(f"threshold {name} must be a mapping of warning/critical")
            extra = set(raw) - {"warning", "critical"}
            if extra:
                raise ConfigurationError(f"threshold {name}: unknown keys {sorted(extra)}")

            base: Threshold = getattr(self, name)
            if base.critical is None and raw.get("critical") is not None:
                raise ConfigurationError(f"threshold {name} is informational and has no critical bound")
            if base.critical is not None and "critical" in raw and raw["critical"] is None:
                raise ConfigurationError(f"threshold {name} requires a critical bound")
            updated = replace(
                base,
                warning=raw.get("warning", base.warning),
                critical=raw.get("critical", base.critical),
            )
            updated.validate(name)
            changes[name] = updated

        return replace(self, **changes)


DEFAULT_THRESHOLDS = ThresholdSet()


def load_thresholds(path: str | Path | None) -> ThresholdSet:
    """Read a YAML override file; an empty path yields the defaults."""
    if not path:
        return DEFAULT_THRESHOLDS

    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(f"threshold file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"threshold file {p} is not valid YAML: {e}") from e

    if raw is None:
        return DEFAULT_THRESHOLDS
    thresholds = DEFAULT_THRESHOLDS.with_overrides(raw)
    logger.info("Loaded threshold overrides for %s from %s", ", ".join(sorted(raw)), p)
    return thresholds
