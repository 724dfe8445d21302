"""
External Delights - Upstream Recorder

The system of record behind the intake relay. One call persists one row and
then notifies Slack:

    validate -> append row -> notify (best-effort)

Columns are written in fixed order:
    timestamp, agentName, occasion, ticketLink, productLink

Notification runs synchronously inside record(), after the append. Its
outcome never changes the response and never rolls the row back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping

from ..core.errors import SubmissionValidationError
from ..core.models import SubmissionRecord
from .intake_service import utc_timestamp
from .sheet_store import SheetStore
from .slack_service import NotificationResult, SlackService
from .validator import validate_submission

logger = logging.getLogger(__name__)


class UpstreamRecorder:
    """Append submissions to a sheet store and announce them on Slack."""

    def __init__(
        self,
        store: SheetStore,
        slack_factory: Callable[[], SlackService] | None = None,
    ):
        """
        Args:
            store: Row storage
            slack_factory: Builds a fresh SlackService per notification
                (None disables notifications)
        """
        self.store = store
        self._slack_factory = slack_factory

    async def record(self, candidate: Any) -> dict[str, Any]:
        """
        Persist one submission.

        Returns:
            {"ok": True, "sheetRow": n} on success,
            {"ok": False, "error": message} when input or storage fails.
        """
        if not isinstance(candidate, Mapping):
            candidate = {}

        try:
            record = validate_submission(candidate)
        except SubmissionValidationError as e:
            logger.warning(f"Recorder rejected submission: {e.message}")
            return {"ok": False, "error": e.message}

        if record.timestamp is None:
            record = record.with_timestamp(utc_timestamp())

        try:
            sheet_row = await asyncio.to_thread(self.store.append, record.to_row())
        except OSError as e:
            logger.error(f"Failed to append submission row: {e}", exc_info=True)
            return {"ok": False, "error": f"Storage failure: {e}"}

        logger.info(f"Recorded delight for {record.agent_name}", extra={"sheet_row": sheet_row})

        # Slack outcome never changes the response
        await self.notify(record)

        return {"ok": True, "sheetRow": sheet_row}

    async def notify(self, record: SubmissionRecord) -> NotificationResult:
        """
        Announce a recorded submission on Slack.

        Never raises. When the announcement fails, an error alert is attempted
        once; its own failure is only logged.
        """
        if self._slack_factory is None:
            return NotificationResult(delivered=False, error="Slack not configured")

        try:
            slack_service = self._slack_factory()
            if not slack_service.is_configured:
                logger.debug("Slack not configured; skipping notification")
                return NotificationResult(delivered=False, error="Slack not configured")

            async with slack_service as slack:
                result = await slack.send_submission(record)
                if not result.delivered:
                    logger.error(f"Error notifying Slack: {result.error}")
                    alert = await slack.send_error(result.error or "notification failed")
                    if not alert.delivered:
                        logger.error(f"Failed to send error to Slack: {alert.error}")
                return result
        except Exception as e:
            logger.error(f"Notification step failed: {type(e).__name__}: {e}", exc_info=True)
            return NotificationResult(delivered=False, error=str(e))
