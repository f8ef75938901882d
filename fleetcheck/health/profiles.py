"""Depth profile resolver — which checks run at which depth."""

from __future__ import annotations

from fleetcheck.errors import ConfigurationError
from fleetcheck.health.models import CheckKind, DepthProfile

_QUICK = (
    CheckKind.DISK_CAPACITY,
    CheckKind.SERVICE_STATE,
)
_STANDARD = _QUICK + (
    CheckKind.EVENT_LOG_VOLUME,
    CheckKind.UPTIME,
    CheckKind.UTILIZATION,
)
_COMPREHENSIVE = _STANDARD + (
    CheckKind.PENDING_UPDATES,
    CheckKind.NETWORK_CONFIG,
)

PROFILE_CHECKS: dict[DepthProfile, tuple[CheckKind, ...]] = {
    DepthProfile.QUICK: _QUICK,
    DepthProfile.STANDARD: _STANDARD,
    DepthProfile.COMPREHENSIVE: _COMPREHENSIVE,
}


def resolve_profile(depth: DepthProfile) -> list[CheckKind]:
    """Ordered, duplicate-free check kinds for a depth profile."""
    return list(dict.fromkeys(PROFILE_CHECKS[depth]))


def parse_depth(value: str | DepthProfile) -> DepthProfile:
    """Validate a user-supplied depth name. Raises ConfigurationError."""
    if isinstance(value, DepthProfile):
        return value
    try:
        return DepthProfile(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(d.value for d in DepthProfile)
        raise ConfigurationError(f"invalid depth profile {value!r} (expected one of: {choices})") from None
