"""Performance router — read-only metrics, history and routing decisions."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from backend.services.performance.engine import PerformanceEngine

logger = logging.getLogger("genstudio.routers.performance")
router = APIRouter()


def get_engine(request: Request) -> PerformanceEngine:
    """Return the engine owned by the app lifespan."""
    return request.app.state.performance_engine


# ── Endpoints ─────────────────────────────────────────────────────────────────


@router.get("/current")
def current_metrics(engine: PerformanceEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Current host and routing health.  Does not add to history."""
    return engine.get_current_metrics().to_dict()


@router.get("/history")
def metrics_history(
    limit: int = Query(50, ge=1, le=1000),
    engine: PerformanceEngine = Depends(get_engine),
) -> Dict[str, Any]:
    """Most recent snapshots, oldest first."""
    snapshots = engine.get_history(limit)
    return {"snapshots": [s.to_dict() for s in snapshots], "total": len(snapshots)}


@router.get("/providers")
def provider_metrics(engine: PerformanceEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Per-provider call counters."""
    metrics = engine.provider_metrics()
    return {"providers": [m.to_dict() for m in metrics.values()], "total": len(metrics)}


@router.get("/route/{category}")
def route_category(category: str, engine: PerformanceEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Provider the router would pick for ``category`` right now, plus the ranking."""
    return {
        "category": category,
        "selected": engine.select_provider(category),
        "ranking": engine.router.rank_providers(category),
        "candidates": engine.router.candidates(category),
    }
