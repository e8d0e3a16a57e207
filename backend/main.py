"""Generation backend — FastAPI application entry point.

All routers are mounted here.  The PerformanceEngine is created by the
lifespan handler, stored on ``app.state.performance_engine`` and stopped on
shutdown.
"""
from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.routers import performance, system
from backend.services.performance.engine import PerformanceEngine
from backend.services.shared.config import DEFAULT_SETTINGS_PATH, SETTINGS_ENV_VAR, get_config
from backend.services.shared.logging import setup_logging

logger = logging.getLogger("genstudio.main")
request_logger = logging.getLogger("genstudio.requests")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config(os.environ.get(SETTINGS_ENV_VAR, str(DEFAULT_SETTINGS_PATH)))
    setup_logging(
        level=config.get("logging.level", "INFO"),
        log_file=str(config.get_path("logging.file")) if config.get("logging.file") else None,
    )
    engine = PerformanceEngine.from_config(config)
    app.state.performance_engine = engine
    engine.start_monitoring()
    logger.info("Backend started with settings from %s", config.path)
    try:
        yield
    finally:
        engine.stop_monitoring()
        logger.info("Backend shut down")


app = FastAPI(
    title="Generation Studio",
    version=system.API_VERSION,
    description="AI music and video generation backend: provider health tracking and routing.",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.environ.get("FRONTEND_URL", "http://localhost:5173")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request logging ───────────────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    request_logger.info(
        "%s %s -> %d (%.0fms)",
        request.method, request.url.path, response.status_code, duration_ms,
    )
    return response


# ── Routers ───────────────────────────────────────────────────────────────────
# Every router module must be mounted here.
app.include_router(performance.router, prefix="/api/performance", tags=["Performance"])
app.include_router(system.router,      prefix="/api/system",      tags=["System"])
