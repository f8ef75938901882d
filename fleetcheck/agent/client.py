"""httpx-based client for the diagnostics agent running on each host.

All methods return typed responses or raise AgentUnavailableError /
AgentError. Both are CheckExecutionErrors, so the orchestrator records
them as UNKNOWN checks.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from fleetcheck.agent.models import (
    AdapterInfo,
    DiskInfo,
    EventErrorCounts,
    PendingUpdates,
    ServiceInfo,
    UptimeInfo,
    Utilization,
)
from fleetcheck.errors import CheckExecutionError

logger = logging.getLogger(__name__)


class AgentUnavailableError(CheckExecutionError):
    """Raised when the agent cannot be reached or does not answer in time."""

    def __init__(self, message: str, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(message)


class AgentError(CheckExecutionError):
    """Raised when the agent answers with an error status or a bad payload."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Agent error {status_code}: {detail}")

    @property
    def permission_denied(self) -> bool:
        return self.status_code in (401, 403)


class RemoteQuery(Protocol):
    """What the check executors need from a remote host."""

    def disks(self, host: str) -> list[DiskInfo]: ...

    def services(self, host: str, names: list[str]) -> list[ServiceInfo]: ...

    def event_errors(self, host: str, hours: int) -> EventErrorCounts: ...

    def uptime(self, host: str) -> UptimeInfo: ...

    def pending_updates(self, host: str) -> PendingUpdates: ...

    def utilization(self, host: str) -> Utilization: ...

    def network(self, host: str) -> list[AdapterInfo]: ...


class AgentClient:
    """Synchronous httpx client; one short-lived connection per request."""

    def __init__(
        self,
        port: int = 5985,
        token: str = "",
        timeout: float = 15.0,
        scheme: str = "http",
    ) -> None:
        self._port = port
        self._token = token
        self._timeout = timeout
        self._scheme = scheme

    @property
    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            h["X-Agent-Token"] = self._token
        return h

    def base_url(self, host: str) -> str:
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"  # IPv6 literal
        return f"{self._scheme}://{host}:{self._port}/v1"

    def _get(self, host: str, path: str, params: Any = None) -> Any:
        """Perform a GET against a host's agent and return the decoded JSON."""
        url = f"{self.base_url(host)}{path}"
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.get(url, headers=self._headers, params=params)
        except httpx.TimeoutException:
            raise AgentUnavailableError(f"{host}: agent request timed out", timed_out=True)
        except httpx.ConnectError as e:
            raise AgentUnavailableError(f"{host}: agent unreachable ({e})")
        except httpx.HTTPError as e:
            raise AgentUnavailableError(f"{host}: {type(e).__name__}: {e}")

        if resp.status_code >= 400:
            detail = resp.text
            try:
                detail = resp.json().get("detail", resp.text)
            except Exception:
                pass
            raise AgentError(resp.status_code, str(detail))

        try:
            return resp.json()
        except ValueError:
            raise AgentError(resp.status_code, "response is not JSON")

    def _parse(self, model: Any, data: Any) -> Any:
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as e:
            raise AgentError(200, f"unexpected payload: {e.error_count()} validation error(s)")

    # ── Resources ─────────────────────────────────────────────────────────

    def disks(self, host: str) -> list[DiskInfo]:
        """GET /disks"""
        return self._parse(list[DiskInfo], self._get(host, "/disks"))

    def services(self, host: str, names: list[str]) -> list[ServiceInfo]:
        """GET /services?name=..."""
        params = [("name", n) for n in names]
        return self._parse(list[ServiceInfo], self._get(host, "/services", params=params))

    def event_errors(self, host: str, hours: int) -> EventErrorCounts:
        """GET /events/errors?hours=N"""
        return self._parse(EventErrorCounts, self._get(host, "/events/errors", params={"hours": hours}))

    def uptime(self, host: str) -> UptimeInfo:
        """GET /uptime"""
        return self._parse(UptimeInfo, self._get(host, "/uptime"))

    def pending_updates(self, host: str) -> PendingUpdates:
        """GET /updates"""
        return self._parse(PendingUpdates, self._get(host, "/updates"))

    def utilization(self, host: str) -> Utilization:
        """GET /utilization"""
        return self._parse(Utilization, self._get(host, "/utilization"))

    def network(self, host: str) -> list[AdapterInfo]:
        """GET /network"""
        return self._parse(list[AdapterInfo], self._get(host, "/network"))
