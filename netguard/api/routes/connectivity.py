"""Connectivity Routes - snapshot, raw-event ingestion and SSE change stream.

Invariants:
    - POST /events is the push entry point for the platform sensor; it returns the state after the event
    - GET /stream emits the current state first, then one event per transition
    - The stream subscribes only once the body is iterated, and unsubscribes when the
      client disconnects or the limit is reached

Design Decisions:
    - SSE adapter built on subscribe_connectivity(); no connectivity logic in the route
    - StreamingResponse for SSE: event_generator yields formatted SSE lines
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from netguard.api.dependencies import get_layer
from netguard.core.domain_types import ConnectivityState
from netguard.schemas.connectivity import ConnectivityStateOut, RawEventIn
from netguard.services.resilience_layer import ResilienceLayer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/connectivity", tags=["connectivity"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


def state_event(state: ConnectivityState) -> dict:
    return {"type": "connectivity", "data": state.to_dict()}


@router.get("/", response_model=ConnectivityStateOut)
async def get_connectivity(layer: ResilienceLayer = Depends(get_layer)):
    return layer.get_connectivity_state().to_dict()


@router.post("/events", response_model=ConnectivityStateOut)
async def ingest_raw_event(
    event: RawEventIn, layer: ResilienceLayer = Depends(get_layer),
):
    """Apply a raw platform report; may trigger notifications and replay."""
    layer.on_raw_event(event)
    return layer.get_connectivity_state().to_dict()


@router.get("/stream")
async def stream_connectivity(
    limit: int | None = Query(None, ge=1),
    layer: ResilienceLayer = Depends(get_layer),
):
    """SSE stream of connectivity states. limit closes the stream after N events."""
    async def event_generator():
        queue: asyncio.Queue[ConnectivityState] = asyncio.Queue()
        unsubscribe = layer.subscribe_connectivity(queue.put_nowait)
        sent = 0
        try:
            while limit is None or sent < limit:
                state = await queue.get()
                yield sse_line(state_event(state))
                sent += 1
        except asyncio.CancelledError:
            logger.info("Client disconnected from connectivity stream")
            return
        finally:
            unsubscribe()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
