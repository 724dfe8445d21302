"""
External Delights - Health Check Router

GET /health - liveness probe. Reports configuration state but never calls out
to the recorder or Slack, so it stays cheap enough for frequent polling.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from .. import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Basic health check response."""

    ok: bool
    service: str
    version: str
    environment: str
    timestamp: str
    upstream_configured: bool | None = None
    slack_configured: bool | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(request: Request) -> HealthResponse:
    state = request.app.state
    settings = state.settings
    intake_service = getattr(state, "intake_service", None)
    recorder = getattr(state, "recorder", None)

    return HealthResponse(
        ok=True,
        service=state.service_name,
        version=__version__,
        environment=settings.DELIGHTS_ENV,
        timestamp=datetime.now(timezone.utc).isoformat(),
        upstream_configured=(
            intake_service.relay_client.is_configured if intake_service is not None else None
        ),
        slack_configured=bool(settings.slack_webhook_url) if recorder is not None else None,
    )
