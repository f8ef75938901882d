"""Connectivity probe — one bounded TCP connect per host, no retries."""

from __future__ import annotations

import logging
import socket
import time

logger = logging.getLogger(__name__)


class ConnectivityProbe:
    """Reachability gate run before any check on a host."""

    def __init__(self, port: int, timeout: float = 2.0) -> None:
        self.port = port
        self.timeout = timeout

    def __call__(self, host: str) -> bool:
        return self.probe(host)

    def probe(self, host: str) -> bool:
        """Single connection attempt bounded by ``timeout``. Never raises."""
        t0 = time.perf_counter()
        try:
            sock = socket.create_connection((host, self.port), timeout=self.timeout)
            sock.close()
        except OSError as e:
            logger.debug("Probe %s:%d failed: %s: %s", host, self.port, type(e).__name__, e)
            return False
        latency = (time.perf_counter() - t0) * 1000
        logger.debug("Probe %s:%d ok (%.1fms)", host, self.port, latency)
        return True
