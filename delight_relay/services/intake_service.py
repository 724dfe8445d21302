"""
External Delights - Intake Service

Orchestrates one submission:

    Received -> Validated -> {Unconfigured | Unreachable | Forwarded}
             -> Classified -> Responded

and maps the result onto the caller-facing HTTP contract:

    400  {ok: false, error}                       client input error
    202  {ok: true, queued: true, warning}        accepted, not confirmed
    502  {ok: false, error, detail?}              recorder did not confirm
    200  {ok: true, ...recorder fields}           delivered
    500  {ok: false, error}                       unexpected fault

Nothing is retained between requests. A 202 is NOT confirmed delivery: when
the recorder is unconfigured or unreachable the submission is only logged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from ..core.errors import (
    ClientInputError,
    DelightError,
    InternalError,
    UpstreamRejected,
    UpstreamUnavailable,
)
from ..core.logging import LogContext
from ..core.models import (
    Classification,
    MalformedUpstreamResponse,
    RejectedByUpstream,
    RelayOutcome,
    SubmissionRecord,
    Success,
    Unconfigured,
    Unreachable,
    UpstreamApplicationError,
)
from .relay_client import RelayClient
from .response_interpreter import interpret_response
from .validator import validate_submission

logger = logging.getLogger(__name__)

WARNING_NOT_CONFIGURED = "endpoint not configured"
WARNING_UNREACHABLE = "upstream unreachable"
ERROR_REJECTED = "Upstream rejected submission"
ERROR_MALFORMED = "Malformed upstream response"


@dataclass(frozen=True)
class IntakeResult:
    """Status code, JSON body and classification for one intake request."""

    status_code: int
    body: Dict[str, Any]
    classification: Classification
    outcome: str | None = None


def utc_timestamp() -> str:
    """Receipt time as ISO-8601 UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class IntakeService:
    """Validate, relay and classify delight submissions."""

    def __init__(
        self,
        relay_client: RelayClient,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.relay_client = relay_client
        self._clock = clock

    async def submit_raw(self, raw_body: bytes) -> IntakeResult:
        """
        Handle an undecoded request body.

        This is the outermost boundary: every exception is converted into a
        structured result here.
        """
        try:
            candidate = self._decode(raw_body)
        except ClientInputError as e:
            return self._error_result(e)
        return await self.submit(candidate)

    async def submit(self, candidate: Any) -> IntakeResult:
        """Handle an already-decoded body; never raises."""
        try:
            return await self._process(candidate)
        except DelightError as e:
            return self._error_result(e)
        except Exception as e:
            logger.error(f"Unexpected intake failure: {type(e).__name__}: {e}", exc_info=True)
            return self._error_result(InternalError(str(e) or "Unknown error"))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    @staticmethod
    def _decode(raw_body: bytes) -> Any:
        try:
            return json.loads(raw_body or b"null")
        except (ValueError, UnicodeDecodeError) as e:
            raise ClientInputError("Invalid JSON body") from e

    async def _process(self, candidate: Any) -> IntakeResult:
        if not isinstance(candidate, dict):
            candidate = {}

        record = validate_submission(candidate)
        if record.timestamp is None:
            record = record.with_timestamp(self._clock())

        with LogContext(agent_name=record.agent_name, occasion=record.occasion):
            attempt = await self.relay_client.forward(record)

            if isinstance(attempt, Unconfigured):
                logger.warning(
                    f"Upstream endpoint not configured; submission not delivered: "
                    f"{record.to_payload()}",
                    extra={"outcome": attempt.kind},
                )
                raise UpstreamUnavailable(WARNING_NOT_CONFIGURED)

            if isinstance(attempt, Unreachable):
                logger.warning(
                    f"Upstream unreachable ({attempt.reason}); submission not delivered: "
                    f"{record.to_payload()}",
                    extra={"outcome": attempt.kind},
                )
                raise UpstreamUnavailable(WARNING_UNREACHABLE)

            outcome = interpret_response(attempt)
            return self._classify(record, outcome, upstream_status=attempt.status_code)

    def _classify(
        self,
        record: SubmissionRecord,
        outcome: RelayOutcome,
        upstream_status: int,
    ) -> IntakeResult:
        extra = {"outcome": outcome.kind, "upstream_status": upstream_status}

        if isinstance(outcome, Success):
            logger.info("Submission delivered", extra=extra)
            return IntakeResult(
                status_code=200,
                body={**outcome.payload, "ok": True},
                classification=Classification.DELIVERED,
                outcome=outcome.kind,
            )

        if isinstance(outcome, RejectedByUpstream):
            error = UpstreamRejected(ERROR_REJECTED, detail=outcome.detail)
        elif isinstance(outcome, MalformedUpstreamResponse):
            error = UpstreamRejected(ERROR_MALFORMED, detail=outcome.raw_body)
        elif isinstance(outcome, UpstreamApplicationError):
            error = UpstreamRejected(outcome.message)
        else:
            raise InternalError(f"Unhandled relay outcome: {outcome.kind}")

        logger.error(
            f"Relay failed for submission at {record.timestamp}: {error.message}",
            extra=extra,
        )
        return self._error_result(error, outcome=outcome.kind)

    @staticmethod
    def _error_result(error: DelightError, outcome: str | None = None) -> IntakeResult:
        if isinstance(error, UpstreamUnavailable):
            body: Dict[str, Any] = {"ok": True, "queued": True, "warning": error.message}
        else:
            body = {"ok": False, "error": error.message}
            if error.detail:
                body["detail"] = error.detail
        return IntakeResult(
            status_code=error.status_code,
            body=body,
            classification=error.classification,
            outcome=outcome,
        )
