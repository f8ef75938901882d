"""In-process registry for sweeps started through the API.

Each run gets a unique ID, a threading.Event that cancels it, and a slot
for the RunReport once the orchestrator returns. Only the most recent
``keep_finished`` finished runs are retained.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import dataclass, field

from fleetcheck.health.models import RunReport


@dataclass
class RunHandle:
    run_id: str
    stop_event: threading.Event = field(default_factory=threading.Event)
    report: RunReport | None = None
    error: str | None = None

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        return "done" if self.report is not None else "running"


class RunRegistry:
    """Thread-safe map of run_id -> RunHandle."""

    def __init__(self, keep_finished: int = 20) -> None:
        self.keep_finished = keep_finished
        self._runs: dict[str, RunHandle] = {}
        self._finished: deque[str] = deque()
        self._lock = threading.Lock()

    def start_run(self) -> RunHandle:
        """Register a new run and return its handle."""
        handle = RunHandle(run_id=uuid.uuid4().hex[:8])
        with self._lock:
            self._runs[handle.run_id] = handle
        return handle

    def get(self, run_id: str) -> RunHandle | None:
        with self._lock:
            return self._runs.get(run_id)

    def stop_run(self, run_id: str) -> bool:
        """Signal the run to stop. Returns True if the run was found."""
        handle = self.get(run_id)
        if handle:
            handle.stop_event.set()
            return True
        return False

    def finish(self, run_id: str, report: RunReport | None = None, error: str | None = None) -> None:
        """Record the outcome and evict the oldest finished runs past the cap."""
        with self._lock:
            handle = self._runs.get(run_id)
            if not handle:
                return
            handle.report = report
            handle.error = error
            self._finished.append(run_id)
            while len(self._finished) > self.keep_finished:
                self._runs.pop(self._finished.popleft(), None)

    def latest(self) -> RunHandle | None:
        """Most recently finished run that has a report."""
        with self._lock:
            for run_id in reversed(self._finished):
                handle = self._runs[run_id]
                if handle.report is not None:
                    return handle
        return None
