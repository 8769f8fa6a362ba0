"""netguard API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map NetguardError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Exactly one ResilienceLayer per app, on app.state.resilience

Design Decisions:
    - Lifespan over @app.on_event: builds the layer on startup, shuts it down on exit
    - create_app(layer=...) lets tests inject a pre-built layer (ASGITransport skips lifespan)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from netguard.api.error_handlers import register_error_handlers
from netguard.api.routes import connectivity, health, replay_queue
from netguard.config import get_settings
from netguard.infrastructure.alert_surface import RecordingAlertSurface
from netguard.infrastructure.observability import setup_logging
from netguard.services.resilience_layer import ResilienceLayer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if getattr(app.state, "resilience", None) is None:
        app.state.resilience = ResilienceLayer(
            settings,
            alert_surface=RecordingAlertSurface(settings.alert_history_size),
        )
    logger.info("netguard API started")
    yield
    logger.info("netguard API shutting down")
    await app.state.resilience.shutdown()


def create_app(layer: ResilienceLayer | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="netguard API", version="1.0.0", lifespan=lifespan)
    app.state.resilience = layer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(connectivity.router)
    app.include_router(replay_queue.router)

    register_error_handlers(app)
    return app


app = create_app()
