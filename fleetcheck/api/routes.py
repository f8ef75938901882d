"""API routes for starting, inspecting and cancelling health sweeps.

Endpoints:
  GET  /api/health                 — liveness
  POST /api/runs                   — start a sweep in the background
  GET  /api/runs/latest            — most recently finished run with a report
  GET  /api/runs/{run_id}          — run status + report when done
  POST /api/runs/{run_id}/cancel   — cancel a running sweep
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from fleetcheck.errors import ConfigurationError
from fleetcheck.health.models import DepthProfile
from fleetcheck.health.orchestrator import RunOrchestrator, validate_hosts
from fleetcheck.health.profiles import parse_depth

logger = logging.getLogger(__name__)

router = APIRouter()


class RunRequest(BaseModel):
    hosts: list[str]
    depth: str = DepthProfile.STANDARD.value
    workers: int | None = Field(default=None, ge=1)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/runs", status_code=202)
def start_run(req: RunRequest, request: Request) -> dict[str, str]:
    """Validate the request, then run the sweep on a background thread."""
    try:
        depth = parse_depth(req.depth)
        hosts = validate_hosts(req.hosts)
        orchestrator: RunOrchestrator = request.app.state.make_orchestrator(req.workers)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    registry = request.app.state.runs
    handle = registry.start_run()

    def _worker() -> None:
        try:
            report = orchestrator.run(hosts, depth, handle.stop_event)
            registry.finish(handle.run_id, report=report)
        except Exception as e:
            logger.exception("Run %s failed", handle.run_id)
            registry.finish(handle.run_id, error=str(e))

    threading.Thread(target=_worker, name=f"run-{handle.run_id}", daemon=True).start()
    logger.info("Run %s started for %d hosts at depth %s", handle.run_id, len(hosts), depth.value)
    return {"run_id": handle.run_id}


@router.get("/runs/latest")
def latest_run(request: Request) -> dict[str, Any]:
    handle = request.app.state.runs.latest()
    if not handle:
        raise HTTPException(status_code=404, detail="No finished runs yet")
    return {"run_id": handle.run_id, "status": handle.status, "report": handle.report.to_dict()}


@router.get("/runs/{run_id}")
def get_run(run_id: str, request: Request) -> dict[str, Any]:
    handle = request.app.state.runs.get(run_id)
    if not handle:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    body: dict[str, Any] = {"run_id": run_id, "status": handle.status}
    if handle.report is not None:
        body["report"] = handle.report.to_dict()
    if handle.error:
        body["error"] = handle.error
    return body


@router.post("/runs/{run_id}/cancel")
def cancel_run(run_id: str, request: Request) -> dict[str, str]:
    if not request.app.state.runs.stop_run(run_id):
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    logger.info("Run %s cancellation requested", run_id)
    return {"run_id": run_id, "status": "cancelling"}
