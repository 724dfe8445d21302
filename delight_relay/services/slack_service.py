"""
External Delights - Slack Notification Service

Posts delight submissions, workflow errors and test messages to a Slack
incoming webhook. Delivery is best-effort: failures are returned as a
NotificationResult and logged, never raised.

Usage:
    async with SlackService(settings.slack_webhook_url) as slack:
        result = await slack.send_submission(record)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from ..core.config import DEFAULT_BUDGET_NOTE
from ..core.models import SubmissionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    """Whether a Slack message was accepted by the webhook."""

    delivered: bool
    error: str | None = None


NOT_CONFIGURED = NotificationResult(delivered=False, error="SLACK_WEBHOOK_URL not configured")


def format_submitted_at(timestamp: str | None) -> str:
    """Human-readable submission time; falls back to the raw value."""
    if not timestamp:
        return "unknown"
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return parsed.strftime("%d %b %Y, %H:%M %Z").strip().rstrip(",")


def build_submission_message(record: SubmissionRecord, budget_note: str = DEFAULT_BUDGET_NOTE) -> dict[str, Any]:
    """Block Kit payload announcing a new delight submission."""
    return {
        "text": "🎉 New External Delight Submission!",
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "🎉 New External Delight Submission"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Agent:* {record.agent_name}"},
                    {"type": "mrkdwn", "text": f"*Occasion:* {record.occasion}"},
                    {"type": "mrkdwn", "text": f"*Submitted:* {format_submitted_at(record.timestamp)}"},
                ],
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f"*Links:*\n• <{record.ticket_link}|View Ticket>\n"
                        f"• <{record.product_link}|View Product>"
                    ),
                },
            },
            {"type": "divider"},
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": budget_note}],
            },
        ],
    }


def build_error_message(error_message: str) -> dict[str, Any]:
    return {
        "text": f"❌ Error in External Delights workflow: {error_message}",
        "color": "danger",
    }


def build_test_message() -> dict[str, Any]:
    return {
        "text": "🧪 Test notification from External Delights workflow",
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        "This is a test notification to verify the Slack "
                        "integration is working correctly."
                    ),
                },
            }
        ],
    }


class SlackService:
    """
    Slack incoming-webhook client.

    Usage:
        async with SlackService(webhook_url) as slack:
            await slack.send_test()
    """

    def __init__(
        self,
        webhook_url: str | None,
        budget_note: str = DEFAULT_BUDGET_NOTE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or None
        self.budget_note = budget_note
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        """Check if Slack webhook is configured."""
        return self.webhook_url is not None

    async def __aenter__(self) -> "SlackService":
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, message: dict[str, Any]) -> NotificationResult:
        """
        Post a raw Slack payload.

        Returns:
            NotificationResult; delivered only when Slack answers 200.
        """
        if not self.is_configured:
            logger.debug("Slack webhook not configured, skipping message")
            return NOT_CONFIGURED

        if self._client is None:
            raise RuntimeError("SlackService not initialized. Use async with.")

        try:
            response = await self._client.post(self.webhook_url, json=message)  # type: ignore[arg-type]
        except httpx.HTTPError as e:
            logger.warning(f"Slack webhook request failed: {type(e).__name__}: {e}")
            return NotificationResult(delivered=False, error=f"{type(e).__name__}: {e}")

        if response.status_code != 200:
            logger.warning(f"Slack webhook failed: {response.status_code}")
            return NotificationResult(
                delivered=False,
                error=f"Slack webhook failed: {response.status_code}",
            )

        logger.debug(f"Slack message sent: {str(message.get('text', ''))[:50]}")
        return NotificationResult(delivered=True)

    async def send_submission(self, record: SubmissionRecord) -> NotificationResult:
        return await self.send(build_submission_message(record, self.budget_note))

    async def send_error(self, error_message: str) -> NotificationResult:
        return await self.send(build_error_message(error_message))

    async def send_test(self) -> NotificationResult:
        return await self.send(build_test_message())
