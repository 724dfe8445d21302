"""
External Delights - Error Handling

Error taxonomy for the intake pipeline and the FastAPI handlers that turn any
exception reaching the framework into the service's JSON error shape:

    {"ok": false, "error": "<message>"}

Taxonomy:
    ClientInputError     400  missing/invalid field or unreadable body
    UpstreamUnavailable  202  not configured or unreachable (accepted, queued)
    UpstreamRejected     502  non-2xx, malformed body, or application failure
    InternalError        500  anything else
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_request_id
from .models import Classification

logger = logging.getLogger(__name__)

CLASSIFICATION_HEADER = "X-Delight-Classification"


# =============================================================================
# Exceptions
# =============================================================================


class DelightError(Exception):
    """Base exception for delight workflow errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    classification: Classification = Classification.INTERNAL_ERROR

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ClientInputError(DelightError):
    """The caller sent something that must be corrected before resubmitting."""

    status_code = status.HTTP_400_BAD_REQUEST
    classification = Classification.CLIENT_ERROR


class SubmissionValidationError(ClientInputError):
    """A submission field failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class UpstreamUnavailable(DelightError):
    """Accepted, but the recorder was not configured or not reachable."""

    status_code = status.HTTP_202_ACCEPTED
    classification = Classification.QUEUED


class UpstreamRejected(DelightError):
    """The recorder was reached but did not confirm the submission."""

    status_code = status.HTTP_502_BAD_GATEWAY
    classification = Classification.RELAY_FAILURE


class InternalError(DelightError):
    """Unexpected fault; treated as a bug signal."""


# =============================================================================
# Exception Handlers
# =============================================================================


def create_error_response(
    status_code: int,
    message: str,
    classification: Classification,
    detail: str | None = None,
) -> JSONResponse:
    """Create a response in the {ok: false, error} shape."""
    content: dict[str, object] = {"ok": False, "error": message}
    if detail:
        content["detail"] = detail
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={CLASSIFICATION_HEADER: classification.value},
    )


async def delight_error_handler(request: Request, exc: DelightError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.url.path}: {exc.message}",
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
    return create_error_response(exc.status_code, exc.message, exc.classification, exc.detail)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Map framework HTTP errors (404, 405, ...) onto the same shape."""
    if isinstance(exc.detail, dict):
        message = str(exc.detail.get("message", exc.detail))
    else:
        message = str(exc.detail)

    classification = (
        Classification.INTERNAL_ERROR if exc.status_code >= 500 else Classification.CLIENT_ERROR
    )
    return create_error_response(exc.status_code, message, classification)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all handler for unhandled exceptions.

    Logs the full traceback and still answers with structured JSON.
    """
    logger.error(
        f"[{get_request_id() or 'unknown'}] Unhandled exception on "
        f"{request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or "Unknown error",
        Classification.INTERNAL_ERROR,
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(DelightError, delight_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Error handlers registered")
