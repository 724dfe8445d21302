"""
Tests for delight_relay.core.logging, core.middleware and core.errors.
"""

from __future__ import annotations

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from delight_relay.core.errors import (
    CLASSIFICATION_HEADER,
    UpstreamRejected,
    setup_error_handlers,
)
from delight_relay.core.logging import (
    LogContext,
    StructuredJsonFormatter,
    get_current_context,
    redact_sensitive,
    set_request_id,
)
from delight_relay.core.middleware import RequestLoggingMiddleware


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("delight_relay.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredJsonFormatter:
    def test_includes_context_and_extras(self):
        formatter = StructuredJsonFormatter()
        set_request_id("req-42")

        with LogContext(agent_name="Jane Doe"):
            line = formatter.format(_record("Relaying", classification="queued"))

        payload = json.loads(line)
        assert payload["message"] == "Relaying"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-42"
        assert payload["agent_name"] == "Jane Doe"
        assert payload["classification"] == "queued"

    def test_context_restored_after_block(self):
        before = get_current_context()

        with LogContext(occasion="Birthday"):
            assert get_current_context()["occasion"] == "Birthday"

        assert get_current_context() == before

    def test_redacts_webhook_and_tokens(self):
        data = {"slack_webhook_url": "https://hooks", "nested": [{"api_token": "x"}], "agentName": "J"}

        assert redact_sensitive(data) == {
            "slack_webhook_url": "[REDACTED]",
            "nested": [{"api_token": "[REDACTED]"}],
            "agentName": "J",
        }


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    setup_error_handlers(app)

    @app.get("/ok")
    def ok():
        return {"ok": True}

    @app.get("/rejected")
    def rejected():
        raise UpstreamRejected("Upstream rejected submission", detail="Bad Gateway")

    @app.get("/crash")
    def crash():
        raise ValueError("kaboom")

    return app


class TestErrorHandlers:
    def test_delight_error_rendered(self, app):
        response = TestClient(app).get("/rejected")

        assert response.status_code == 502
        assert response.json() == {
            "ok": False,
            "error": "Upstream rejected submission",
            "detail": "Bad Gateway",
        }
        assert response.headers[CLASSIFICATION_HEADER] == "relay_failure"

    def test_unhandled_exception_is_json_500(self, app):
        response = TestClient(app, raise_server_exceptions=False).get("/crash")

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "kaboom"}

    def test_404_shape(self, app):
        response = TestClient(app).get("/missing")

        assert response.status_code == 404
        assert response.json()["ok"] is False
        assert response.headers[CLASSIFICATION_HEADER] == "client_error"


class TestRequestLoggingMiddleware:
    def test_generates_request_id(self, app):
        response = TestClient(app).get("/ok")

        assert response.headers["X-Request-ID"]

    def test_logs_request_line(self, app, caplog):
        with caplog.at_level(logging.INFO, logger="delight_relay.core.middleware"):
            TestClient(app).get("/ok", headers={"X-Request-ID": "abc"})

        assert any("[abc] GET /ok -> 200" in r.getMessage() for r in caplog.records)
