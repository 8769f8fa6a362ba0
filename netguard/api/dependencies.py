"""API Dependencies - access to the application-wide ResilienceLayer.

Invariants:
    - The layer is created by the lifespan handler and stored on app.state
    - Routes never construct their own layer
    - A request served before startup completes gets LayerUnavailableError (503)
"""

from fastapi import Request

from netguard.core.errors import LayerUnavailableError
from netguard.services.resilience_layer import ResilienceLayer


def get_layer(request: Request) -> ResilienceLayer:
    layer = getattr(request.app.state, "resilience", None)
    if layer is None:
        raise LayerUnavailableError()
    return layer
