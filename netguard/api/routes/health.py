"""Health & Readiness Probes - liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 while connectivity is unavailable (readiness)
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from netguard.api.dependencies import get_layer
from netguard.services.resilience_layer import ResilienceLayer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "netguard",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(layer: ResilienceLayer = Depends(get_layer)):
    """Readiness probe: network must be available."""
    if not layer.is_available():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "network_unavailable",
                "pending_replays": len(layer.replay_queue),
            },
        )
    return {"status": "ready", "checks": {"network": "available"}}
