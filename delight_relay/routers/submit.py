"""
External Delights - Intake Router

POST /api/submit - validate a delight submission and relay it to the recorder.

The body is read raw (not through a pydantic request model) so that missing
fields answer 400 with the field-specific message the form expects instead of
FastAPI's generic 422.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..core.errors import CLASSIFICATION_HEADER
from ..services.intake_service import IntakeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Intake"])


def get_intake_service(request: Request) -> IntakeService:
    """Dependency: the IntakeService built by create_app()."""
    return request.app.state.intake_service


@router.post("/submit")
async def submit_delight(
    request: Request,
    service: IntakeService = Depends(get_intake_service),
) -> JSONResponse:
    """
    Accept one delight submission.

    Responses:
        200 delivered, 202 queued (not confirmed), 400 invalid input,
        502 recorder failure, 500 unexpected error.
    """
    raw_body = await request.body()
    result = await service.submit_raw(raw_body)
    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers={CLASSIFICATION_HEADER: result.classification.value},
    )
