"""
External Delights - Submission Validator

Pure functions that turn a candidate mapping into a SubmissionRecord.
Checks run in a fixed order and stop at the first failure:

    1. ticketLink, productLink, occasion, agentName present and non-blank
    2. ticketLink is an absolute http(s) URL
    3. productLink is an absolute http(s) URL
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Mapping
from urllib.parse import urlsplit

from pydantic import ValidationError

from ..core.errors import SubmissionValidationError
from ..core.models import REQUIRED_FIELDS, SubmissionRecord

ALLOWED_SCHEMES = frozenset({"http", "https"})

# Characters a URL parser refuses in a host
_FORBIDDEN_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`]")


def is_valid_url(value: str) -> bool:
    """True when value is an absolute URL with an http/https scheme and a host."""
    try:
        parts = urlsplit(value)
        # Accessing .port raises ValueError for out-of-range or non-numeric ports
        parts.port
    except ValueError:
        return False
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        return False
    return not _FORBIDDEN_HOST_CHARS.search(parts.hostname)


def normalize_timestamp(value: Any) -> str | None:
    """Keep a client-supplied timestamp only if it parses as ISO-8601."""
    if not isinstance(value, str) or not value.strip():
        return None
    candidate = value.strip()
    try:
        datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        return None
    return candidate


def validate_submission(candidate: Mapping[str, Any]) -> SubmissionRecord:
    """
    Validate and normalize a submission candidate.

    Args:
        candidate: Decoded request body (any missing or non-string field is
            reported as missing)

    Returns:
        SubmissionRecord with all fields trimmed

    Raises:
        SubmissionValidationError: naming the first offending field
    """
    trimmed: dict[str, str] = {}
    for name in REQUIRED_FIELDS:
        value = candidate.get(name)
        if not isinstance(value, str) or not value.strip():
            raise SubmissionValidationError(name, f"Missing field: {name}")
        trimmed[name] = value.strip()

    for name in ("ticketLink", "productLink"):
        if not is_valid_url(trimmed[name]):
            raise SubmissionValidationError(name, f"Invalid {name} URL")

    try:
        return SubmissionRecord(
            ticketLink=trimmed["ticketLink"],
            productLink=trimmed["productLink"],
            occasion=trimmed["occasion"],
            agentName=trimmed["agentName"],
            timestamp=normalize_timestamp(candidate.get("timestamp")),
        )
    except ValidationError as e:
        # Strings the model refuses, such as lone surrogates from JSON escapes
        errors = e.errors()
        name = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else "submission"
        raise SubmissionValidationError(name, f"Invalid {name}") from e
