"""FastAPI server for triggering and reading health sweeps."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from fleetcheck.api.routes import router
from fleetcheck.api.runs import RunRegistry
from fleetcheck.config import Settings, settings
from fleetcheck.health.orchestrator import RunOrchestrator, build_orchestrator
from fleetcheck.health.thresholds import load_thresholds

logger = logging.getLogger(__name__)


def create_app(cfg: Settings = settings) -> FastAPI:
    """Build the app. Threshold overrides are loaded once, at startup."""
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    thresholds = load_thresholds(cfg.thresholds_file)

    app = FastAPI(title="fleetcheck", version="0.1.0")
    app.state.runs = RunRegistry(keep_finished=max(1, cfg.keep_finished_runs))

    def make_orchestrator(workers: int | None = None) -> RunOrchestrator:
        return build_orchestrator(cfg, thresholds, max_workers=workers)

    app.state.make_orchestrator = make_orchestrator
    app.include_router(router, prefix="/api")
    return app


app = create_app()
