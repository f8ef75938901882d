from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FLEETCHECK_",
        "extra": "ignore",
    }

    # Diagnostics agent on each host
    agent_scheme: str = "http"
    agent_port: int = 5985
    agent_token: str = ""

    # Connectivity probe (TCP connect, single attempt)
    probe_port: int | None = None  # defaults to agent_port
    probe_timeout: float = 2.0

    # Per-check remote query timeout (seconds)
    check_timeout: float = 15.0

    # Host-level parallelism; 1 = serial
    max_workers: int = 4

    # Event log trailing window
    event_window_hours: int = 24

    # Services the ServiceState check watches
    watched_services: list[str] = [
        "EventLog",
        "Dnscache",
        "LanmanServer",
        "LanmanWorkstation",
        "W32Time",
        "WinRM",
    ]

    # YAML file with threshold overrides (empty = defaults)
    thresholds_file: str = ""

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8040
    # Finished API runs kept in memory
    keep_finished_runs: int = 20

    # Logging
    log_level: str = "INFO"


settings = Settings()
