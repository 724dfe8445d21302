"""
External Delights - FastAPI Applications

Two app factories share the same middleware and error handling:

    create_app()           intake service (POST /api/submit)
    create_recorder_app()  reference recorder (POST /api/recorder)

Run with:
    delights serve
    uvicorn --factory delight_relay.main:create_app

Configuration is resolved once here and injected into the services; nothing
below this module reads the environment.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.config import Settings, get_settings
from .core.errors import setup_error_handlers
from .core.middleware import RequestLoggingMiddleware
from .routers.health import router as health_router
from .routers.recorder import router as recorder_router
from .routers.submit import router as submit_router
from .services.intake_service import IntakeService
from .services.recorder import UpstreamRecorder
from .services.relay_client import RelayClient
from .services.sheet_store import CsvSheetStore, SheetStore
from .services.slack_service import SlackService

logger = logging.getLogger(__name__)


def _build_app(settings: Settings, title: str, service_name: str) -> FastAPI:
    app = FastAPI(
        title=title,
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.service_name = service_name

    app.add_middleware(RequestLoggingMiddleware)
    # Added last, so it is the outermost layer
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Delight-Classification"],
    )

    setup_error_handlers(app)
    app.include_router(health_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """Service info."""
        return {"service": service_name, "version": __version__, "status": "running"}

    return app


def create_app(
    settings: Settings | None = None,
    relay_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Intake application factory.

    Args:
        settings: Explicit settings (defaults to the cached environment settings)
        relay_transport: Optional httpx transport for the relay client
    """
    settings = settings or get_settings()
    app = _build_app(settings, "External Delights Intake", "delights-intake")

    relay_client = RelayClient(
        settings.upstream_url,
        timeout=settings.relay_timeout,
        transport=relay_transport,
    )
    app.state.intake_service = IntakeService(relay_client)
    app.include_router(submit_router, prefix="/api")

    if relay_client.is_configured:
        logger.info(f"Intake app created; relaying to upstream (timeout {settings.relay_timeout:g}s)")
    else:
        logger.warning("UPSTREAM_URL not set; submissions will be accepted as queued only")

    return app


def create_recorder_app(
    settings: Settings | None = None,
    store: SheetStore | None = None,
    slack_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Recorder application factory.

    Args:
        settings: Explicit settings (defaults to the cached environment settings)
        store: Row storage (defaults to a CsvSheetStore at SHEET_PATH)
        slack_transport: Optional httpx transport for Slack notifications
    """
    settings = settings or get_settings()
    app = _build_app(settings, "External Delights Recorder", "delights-recorder")

    def slack_factory() -> SlackService:
        return SlackService(
            settings.slack_webhook_url,
            budget_note=settings.SLACK_BUDGET_NOTE,
            transport=slack_transport,
        )

    app.state.recorder = UpstreamRecorder(
        store if store is not None else CsvSheetStore(settings.SHEET_PATH),
        slack_factory=slack_factory,
    )
    app.include_router(recorder_router, prefix="/api")

    logger.info(f"Recorder app created; appending rows to {settings.SHEET_PATH}")
    return app
