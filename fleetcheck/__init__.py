"""fleetcheck — multi-host system health diagnostics."""

__version__ = "0.1.0"
