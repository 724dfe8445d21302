"""
External Delights - Configuration

Settings are read from the process environment (and an optional .env file)
exactly once, then passed explicitly into the components that need them.
Business logic never reads os.environ directly.

ENVIRONMENT:
------------
    DELIGHTS_ENV           - dev | prod (prod switches logs to JSON)
    LOG_LEVEL              - DEBUG | INFO | WARNING | ERROR
    UPSTREAM_URL           - Recorder endpoint the intake relays to.
                             GOOGLE_APPS_SCRIPT_URL is accepted as an alias.
                             Unset is a valid state: submissions are accepted
                             and reported as queued.
    RELAY_TIMEOUT_SECONDS  - Upper bound for the single relay call (5s)
    SLACK_WEBHOOK_URL      - Incoming webhook used by the recorder
    SLACK_BUDGET_NOTE      - Context line appended to Slack notifications
    SHEET_PATH             - CSV file the recorder appends rows to
    DELIGHTS_CORS_ORIGINS  - Allowed browser origins (comma or space separated)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_RELAY_TIMEOUT_SECONDS = 5.0
DEFAULT_BUDGET_NOTE = (
    "💝 Budget: Up to ₹3,000 (≈ $35) | Review and process this delight request"
)


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # =========================================================================
    # ENVIRONMENT CONTROL
    # =========================================================================

    DELIGHTS_ENV: Literal["dev", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # =========================================================================
    # RELAY
    # =========================================================================

    UPSTREAM_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("UPSTREAM_URL", "GOOGLE_APPS_SCRIPT_URL"),
        description="Recorder endpoint submissions are relayed to",
    )
    RELAY_TIMEOUT_SECONDS: float = Field(
        default=DEFAULT_RELAY_TIMEOUT_SECONDS,
        gt=0,
        description="Bound on the single outbound relay call",
    )

    # =========================================================================
    # RECORDER
    # =========================================================================

    SLACK_WEBHOOK_URL: str | None = Field(default=None)
    SLACK_BUDGET_NOTE: str = Field(default=DEFAULT_BUDGET_NOTE)
    SHEET_PATH: str = Field(default="data/delights.csv")

    # =========================================================================
    # SERVER
    # =========================================================================

    DELIGHTS_CORS_ORIGINS: str | None = Field(default=None)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    RECORDER_PORT: int = Field(default=8001)

    @field_validator("UPSTREAM_URL", "SLACK_WEBHOOK_URL", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # An exported-but-empty variable means "not configured"
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    # =========================================================================
    # PROPERTY ALIASES
    # =========================================================================

    @property
    def upstream_url(self) -> str | None:
        return self.UPSTREAM_URL

    @property
    def relay_timeout(self) -> float:
        return self.RELAY_TIMEOUT_SECONDS

    @property
    def slack_webhook_url(self) -> str | None:
        return self.SLACK_WEBHOOK_URL

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def is_production(self) -> bool:
        return self.DELIGHTS_ENV == "prod"

    @property
    def cors_allowed_origins(self) -> list[str]:
        """
        Parse DELIGHTS_CORS_ORIGINS into a list.

        Missing or empty means [] (deny all cross-origin requests).
        """
        if self.DELIGHTS_CORS_ORIGINS:
            raw = self.DELIGHTS_CORS_ORIGINS.replace(",", " ")
            return [o.strip().rstrip("/") for o in raw.split() if o.strip().startswith("http")]
        return []


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def reset_settings() -> None:
    """Clear the cached settings (for testing or environment switch)."""
    get_settings.cache_clear()


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure application logging based on settings.

    In production, uses structured JSON logging for observability.
    In development, uses colored console output.
    """
    from .logging import configure_structured_logging

    if settings is None:
        settings = get_settings()

    configure_structured_logging(
        level=settings.LOG_LEVEL,
        json_output=settings.is_production,
        service_name="delights",
    )

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def describe_settings(settings: Settings, redact_secrets: bool = True) -> dict[str, Any]:
    """
    Return the effective configuration as a flat dict.

    Webhook URLs embed credentials in their path, so they are masked unless
    redact_secrets is False.
    """

    def _mask(value: str | None) -> str | None:
        if value is None or not redact_secrets:
            return value
        return value[:24] + "…" if len(value) > 24 else "***"

    return {
        "DELIGHTS_ENV": settings.DELIGHTS_ENV,
        "LOG_LEVEL": settings.LOG_LEVEL,
        "UPSTREAM_URL": _mask(settings.UPSTREAM_URL),
        "RELAY_TIMEOUT_SECONDS": settings.RELAY_TIMEOUT_SECONDS,
        "SLACK_WEBHOOK_URL": _mask(settings.SLACK_WEBHOOK_URL),
        "SHEET_PATH": settings.SHEET_PATH,
        "DELIGHTS_CORS_ORIGINS": settings.cors_allowed_origins,
        "HOST": settings.HOST,
        "PORT": settings.PORT,
        "RECORDER_PORT": settings.RECORDER_PORT,
    }


__all__ = [
    "DEFAULT_BUDGET_NOTE",
    "DEFAULT_RELAY_TIMEOUT_SECONDS",
    "Settings",
    "configure_logging",
    "describe_settings",
    "get_settings",
    "reset_settings",
]
