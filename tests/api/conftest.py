"""API test fixtures - app with an injected ResilienceLayer + httpx test client.

Invariants:
    - Every test gets a fresh ResilienceLayer (no state shared between tests)
    - ASGITransport does not run lifespan, so the layer is injected via create_app()
"""

import pytest
from httpx import ASGITransport, AsyncClient

from netguard.config import Settings
from netguard.infrastructure.alert_surface import RecordingAlertSurface
from netguard.main import create_app
from netguard.services.resilience_layer import ResilienceLayer


@pytest.fixture
def layer():
    return ResilienceLayer(
        Settings(jitter=False, default_initial_delay_ms=1),
        alert_surface=RecordingAlertSurface(),
    )


@pytest.fixture
async def client(layer):
    app = create_app(layer)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
