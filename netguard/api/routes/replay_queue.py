"""Replay Queue & Control Routes - inspection of queued work, cancel_all, recent alerts.

Invariants:
    - GET /replay-queue/ lists pending entries without draining them
    - DELETE /replay-queue/{entry_id} drops one entry; an unknown id is a 404 envelope
    - POST /replay-queue/cancel-all signals every in-flight attempt and reports the count
    - GET /alerts/ is empty unless the layer's alert surface records history
"""

from fastapi import APIRouter, Depends

from netguard.api.dependencies import get_layer
from netguard.schemas.connectivity import CancelAllOut, QueueEntryOut
from netguard.services.resilience_layer import ResilienceLayer

router = APIRouter(prefix="/api/v1", tags=["replay"])


@router.get("/replay-queue/", response_model=list[QueueEntryOut])
async def list_pending(layer: ResilienceLayer = Depends(get_layer)):
    return [entry.summary() for entry in layer.pending_replays()]


@router.delete("/replay-queue/{entry_id}", response_model=QueueEntryOut)
async def discard_pending(entry_id: str, layer: ResilienceLayer = Depends(get_layer)):
    return layer.discard_replay(entry_id).summary()


@router.post("/replay-queue/cancel-all", response_model=CancelAllOut)
async def cancel_all(layer: ResilienceLayer = Depends(get_layer)):
    return {"cancelled": layer.cancel_all()}


@router.get("/alerts/")
async def recent_alerts(layer: ResilienceLayer = Depends(get_layer)):
    recent = getattr(layer.alert_surface, "recent", None)
    return {"alerts": recent() if recent else []}
