"""System router — health and host resource usage."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from backend.routers.performance import get_engine
from backend.services.performance.engine import PerformanceEngine
from backend.services.shared.hardware_detector import HostUsage

logger = logging.getLogger("genstudio.routers.system")
router = APIRouter()

API_VERSION = "1.0.0"


@router.get("/health")
def health_check(engine: PerformanceEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": API_VERSION,
        "monitoring": engine.is_monitoring,
    }


@router.get("/host")
def host_usage() -> Dict[str, Any]:
    """Current CPU and memory utilisation of this host."""
    return HostUsage.sample().to_dict()
