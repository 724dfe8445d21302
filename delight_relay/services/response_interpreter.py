"""
External Delights - Response Interpreter

Classifies the recorder's raw response. Checks run in a fixed order so each
failure is attributed to the earliest distinguishing signal:

    1. non-2xx status                 -> RejectedByUpstream
    2. body not a JSON object         -> MalformedUpstreamResponse
       (parsed regardless of Content-Type; HTML error pages served
       with 200 land here)
    3. ok flag not exactly true       -> UpstreamApplicationError
    4. otherwise                      -> Success
"""

from __future__ import annotations

import json
import logging

from ..core.models import (
    MalformedUpstreamResponse,
    RejectedByUpstream,
    RelayOutcome,
    Success,
    UpstreamApplicationError,
    UpstreamResponse,
    truncate_detail,
)

logger = logging.getLogger(__name__)

DEFAULT_APPLICATION_ERROR = "Upstream reported failure"


def interpret_response(response: UpstreamResponse) -> RelayOutcome:
    """Classify an upstream response into exactly one RelayOutcome."""
    if not 200 <= response.status_code < 300:
        return RejectedByUpstream(
            status=response.status_code,
            detail=truncate_detail(response.body),
        )

    try:
        parsed = json.loads(response.body)
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        logger.warning(
            f"Upstream answered {response.status_code} without a JSON object "
            f"(content-type: {response.content_type})"
        )
        return MalformedUpstreamResponse(raw_body=truncate_detail(response.body))

    if parsed.get("ok") is not True:
        return UpstreamApplicationError(message=_application_message(parsed))

    return Success(payload=parsed)


def _application_message(parsed: dict) -> str:
    for key in ("error", "message"):
        value = parsed.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return DEFAULT_APPLICATION_ERROR
