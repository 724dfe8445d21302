"""
External Delights - Core Data Models

SubmissionRecord is the unit of work that flows from the agent form through
the intake endpoint to the recorder. RelayOutcome variants describe what
happened to a single relay attempt; exactly one holds per attempt.

Usage:
    from delight_relay.core.models import SubmissionRecord, Success

    record = SubmissionRecord(
        ticketLink="https://support.example.com/t/1",
        productLink="https://shop.example.com/p/9",
        occasion="Birthday",
        agentName="Jane Doe",
    )
    record.to_payload()  # camelCase wire dict
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

# Truncation applied to any upstream text echoed back to callers
DETAIL_LIMIT = 500

REQUIRED_FIELDS = ("ticketLink", "productLink", "occasion", "agentName")

# Recorder column order
SHEET_COLUMNS = ("timestamp", "agentName", "occasion", "ticketLink", "productLink")


# =============================================================================
# Enums
# =============================================================================


class Classification(str, Enum):
    """Caller-facing outcome of an intake request."""

    DELIVERED = "delivered"
    QUEUED = "queued"
    CLIENT_ERROR = "client_error"
    RELAY_FAILURE = "relay_failure"
    INTERNAL_ERROR = "internal_error"


# =============================================================================
# Submission
# =============================================================================


class SubmissionRecord(BaseModel):
    """A validated, trimmed delight submission."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ticket_link: str = Field(..., alias="ticketLink")
    product_link: str = Field(..., alias="productLink")
    occasion: str = Field(..., min_length=1)
    agent_name: str = Field(..., alias="agentName", min_length=1)
    timestamp: Optional[str] = None

    def with_timestamp(self, timestamp: str) -> "SubmissionRecord":
        """Return a copy carrying the given timestamp."""
        return self.model_copy(update={"timestamp": timestamp})

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys, timestamp omitted when unset)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_row(self) -> list[str]:
        """Values in recorder column order."""
        payload = self.to_payload()
        return [payload.get(column, "") for column in SHEET_COLUMNS]


# =============================================================================
# Relay
# =============================================================================


@dataclass(frozen=True)
class UpstreamResponse:
    """Raw response captured from the single relay call."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return "unknown"


@dataclass(frozen=True)
class RelayOutcome:
    """Base for the tagged result of one relay attempt."""

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Unconfigured(RelayOutcome):
    """No upstream endpoint is configured."""


@dataclass(frozen=True)
class Unreachable(RelayOutcome):
    """The call did not complete: timeout or transport failure."""

    reason: str = ""


@dataclass(frozen=True)
class RejectedByUpstream(RelayOutcome):
    """Upstream answered with a non-2xx status."""

    status: int
    detail: str = ""


@dataclass(frozen=True)
class MalformedUpstreamResponse(RelayOutcome):
    """2xx response whose body is not a JSON object."""

    raw_body: str = ""


@dataclass(frozen=True)
class UpstreamApplicationError(RelayOutcome):
    """2xx JSON object without an explicit ok=true."""

    message: str


@dataclass(frozen=True)
class Success(RelayOutcome):
    """Upstream confirmed the row was recorded."""

    payload: Dict[str, Any] = field(default_factory=dict)


def truncate_detail(text: str, limit: int = DETAIL_LIMIT) -> str:
    """Clip upstream text before it is echoed or logged."""
    return text[:limit]
