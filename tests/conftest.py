"""
tests/conftest.py

Shared fixtures for the External Delights test suite.

No test talks to a real network: the recorder endpoint and the Slack webhook
are replaced by httpx.MockTransport handlers injected at construction time.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from delight_relay.core.config import Settings, reset_settings

_ENV_KEYS = (
    "UPSTREAM_URL",
    "GOOGLE_APPS_SCRIPT_URL",
    "SLACK_WEBHOOK_URL",
    "SLACK_BUDGET_NOTE",
    "SHEET_PATH",
    "RELAY_TIMEOUT_SECONDS",
    "DELIGHTS_ENV",
    "DELIGHTS_CORS_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Strip relay/Slack variables and clear the settings cache around each test."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def valid_submission() -> dict[str, str]:
    """Structurally valid form submission."""
    return {
        "ticketLink": "https://a.co/x",
        "productLink": "https://a.co/y",
        "occasion": "Birthday",
        "agentName": "Jane Doe",
    }


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings from keyword overrides only (no .env file)."""

    def _make(**overrides: Any) -> Settings:
        return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: list[httpx.Request] = []

        def _recording(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(_recording)


@pytest.fixture
def recording_transport() -> Callable[[Callable[[httpx.Request], Any]], RecordingTransport]:
    """Factory for a MockTransport that records requests."""
    return RecordingTransport
