"""
External Delights - Relay Client

Forwards a validated submission to the recorder endpoint with exactly one
POST. The whole exchange is bounded by a fixed timeout; a timeout or network
failure is reported as Unreachable rather than raised, and a missing endpoint
is reported as Unconfigured.

Usage:
    client = RelayClient(settings.upstream_url, timeout=settings.relay_timeout)
    attempt = await client.forward(record)
    if isinstance(attempt, UpstreamResponse):
        outcome = interpret_response(attempt)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Union

import httpx

from ..core.config import DEFAULT_RELAY_TIMEOUT_SECONDS
from ..core.models import SubmissionRecord, Unconfigured, Unreachable, UpstreamResponse

logger = logging.getLogger(__name__)

RelayAttempt = Union[Unconfigured, Unreachable, UpstreamResponse]


class RelayClient:
    """Single-shot HTTP relay to the recorder."""

    def __init__(
        self,
        endpoint: str | None,
        timeout: float = DEFAULT_RELAY_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            endpoint: Recorder URL. None means relay is not configured.
            timeout: Upper bound in seconds for the complete call.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.endpoint = endpoint or None
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.endpoint is not None

    async def forward(self, record: SubmissionRecord) -> RelayAttempt:
        """
        POST the record to the configured endpoint.

        Returns:
            Unconfigured if no endpoint is set, Unreachable if the call failed
            or timed out, otherwise the captured UpstreamResponse.
        """
        endpoint = self.endpoint
        if endpoint is None:
            return Unconfigured()

        try:
            return await asyncio.wait_for(self._post(endpoint, record), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Relay timed out after {self.timeout:.1f}s")
            return Unreachable(reason=f"timed out after {self.timeout:g}s")
        except httpx.TimeoutException as e:
            logger.warning(f"Relay timed out: {type(e).__name__}")
            return Unreachable(reason=f"timed out ({type(e).__name__})")
        except httpx.TransportError as e:
            logger.warning(f"Relay transport failure: {type(e).__name__}: {e}")
            return Unreachable(reason=f"{type(e).__name__}: {e}")

    async def _post(self, endpoint: str, record: SubmissionRecord) -> UpstreamResponse:
        statuses: list[int] = []

        async def _track_status(response: httpx.Response) -> None:
            statuses.append(response.status_code)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            event_hooks={"response": [_track_status]},
        ) as client:
            try:
                response = await client.post(
                    endpoint,
                    json=record.to_payload(),
                    headers={"Content-Type": "application/json"},
                    # Script-style backends answer POSTs with a redirect to the result
                    follow_redirects=True,
                )
            except httpx.TooManyRedirects as e:
                # Reached but never settled: report the last redirect status
                logger.warning(f"Relay gave up after {len(statuses)} redirects")
                return UpstreamResponse(status_code=statuses[-1], body=str(e))

            logger.debug(f"Relay answered {response.status_code}")
            return UpstreamResponse(
                status_code=response.status_code,
                body=response.text,
                headers=dict(response.headers),
            )
