"""Common utilities and shared functionality."""

from .token_utils import (
    verify_gitlab_token,
)

from .logging_utils import (
    setup_logging,
    log_server_message,
    log_webhook_request,
    log_error,
)

__all__ = [
    # Token utilities
    "verify_gitlab_token",
    # Logging utilities
    "setup_logging",
    "log_server_message",
    "log_webhook_request",
    "log_error",
]
