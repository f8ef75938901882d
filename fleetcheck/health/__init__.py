"""Health subsystem: classifier, check executors, aggregation."""

from .aggregate import host_status, run_status
from .checks import build_executors
from .models import CheckKind, CheckResult, DepthProfile, HostHealthReport, RunReport, Severity
from .probe import ConnectivityProbe
from .profiles import resolve_profile
from .thresholds import DEFAULT_THRESHOLDS, ThresholdSet, classify, load_thresholds
