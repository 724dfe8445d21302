"""
Tests for delight_relay.core.config
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from delight_relay.core.config import Settings, describe_settings, get_settings, reset_settings


class TestEnvironmentLoading:
    def test_defaults(self, make_settings):
        settings = make_settings()

        assert settings.upstream_url is None
        assert settings.relay_timeout == 5.0
        assert settings.slack_webhook_url is None
        assert settings.is_production is False
        assert settings.cors_allowed_origins == []

    def test_upstream_url_from_env(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URL", "https://recorder.example.test/exec")

        assert Settings(_env_file=None).upstream_url == "https://recorder.example.test/exec"

    def test_legacy_alias_accepted(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_APPS_SCRIPT_URL", "https://script.example.test/macros/s/abc/exec")

        assert Settings(_env_file=None).upstream_url == "https://script.example.test/macros/s/abc/exec"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_upstream_is_unconfigured(self, monkeypatch, value):
        monkeypatch.setenv("UPSTREAM_URL", value)

        assert Settings(_env_file=None).upstream_url is None

    def test_invalid_timeout_rejected(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(RELAY_TIMEOUT_SECONDS=0)

    def test_cors_origins_parsed(self, make_settings):
        settings = make_settings(
            DELIGHTS_CORS_ORIGINS="https://delights.example.com/, http://localhost:3000 junk"
        )

        assert settings.cors_allowed_origins == [
            "https://delights.example.com",
            "http://localhost:3000",
        ]

    def test_prod_flag(self, make_settings):
        assert make_settings(DELIGHTS_ENV="prod").is_production is True


class TestSettingsCache:
    def test_cached_until_reset(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("UPSTREAM_URL", "https://recorder.example.test/exec")
        reset_settings()

        assert get_settings() is not first
        assert get_settings().upstream_url == "https://recorder.example.test/exec"


class TestDescribeSettings:
    def test_webhooks_masked(self, make_settings):
        settings = make_settings(
            SLACK_WEBHOOK_URL="https://hooks.slack.example.test/services/T000/B000/SECRET",
        )

        described = describe_settings(settings)

        assert "SECRET" not in str(described["SLACK_WEBHOOK_URL"])
        assert described["UPSTREAM_URL"] is None

    def test_unmasked_on_request(self, make_settings):
        url = "https://hooks.slack.example.test/services/T000/B000/SECRET"
        settings = make_settings(SLACK_WEBHOOK_URL=url)

        assert describe_settings(settings, redact_secrets=False)["SLACK_WEBHOOK_URL"] == url
