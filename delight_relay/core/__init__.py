"""
External Delights - Core Module

Configuration, structured logging, middleware, error taxonomy and data models.
"""

from .config import Settings, configure_logging, get_settings, reset_settings
from .errors import (
    ClientInputError,
    DelightError,
    InternalError,
    SubmissionValidationError,
    UpstreamRejected,
    UpstreamUnavailable,
    setup_error_handlers,
)
from .middleware import RequestLoggingMiddleware
from .models import Classification, SubmissionRecord

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    # Errors
    "DelightError",
    "ClientInputError",
    "SubmissionValidationError",
    "UpstreamUnavailable",
    "UpstreamRejected",
    "InternalError",
    "setup_error_handlers",
    # Middleware
    "RequestLoggingMiddleware",
    # Models
    "Classification",
    "SubmissionRecord",
]
