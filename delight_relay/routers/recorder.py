"""
External Delights - Recorder Router

POST /api/recorder - append a submission row and notify Slack.

Always answers 200 with {ok: true, sheetRow} or {ok: false, error}; callers
must inspect the ok flag, not the status code.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..services.recorder import UpstreamRecorder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recorder"])


def get_recorder(request: Request) -> UpstreamRecorder:
    """Dependency: the UpstreamRecorder built by create_recorder_app()."""
    return request.app.state.recorder


@router.post("/recorder")
async def record_delight(
    request: Request,
    recorder: UpstreamRecorder = Depends(get_recorder),
) -> dict[str, Any]:
    raw_body = await request.body()
    try:
        candidate = json.loads(raw_body or b"null")
    except (ValueError, UnicodeDecodeError):
        return {"ok": False, "error": "Invalid JSON body"}
    return await recorder.record(candidate)
