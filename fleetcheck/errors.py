"""Error taxonomy for a diagnostic run.

Only ``ConfigurationError`` aborts a run. Everything else is recovered
into the report as an Unreachable host or an Unknown check.
"""

from __future__ import annotations


class FleetcheckError(Exception):
    """Base class for all fleetcheck errors."""


class ConfigurationError(FleetcheckError):
    """Invalid depth profile, threshold override, host entry or setting."""


class ConnectivityError(FleetcheckError):
    """A host failed its reachability probe."""


class CheckExecutionError(FleetcheckError):
    """A single check could not be executed against a reachable host."""


class ReportRenderError(FleetcheckError):
    """A renderer failed. The RunReport it was given is still valid."""
