# ruff: noqa: D107
"""Push notification pipeline exceptions."""

from typing import Any

from .base import BaseAppException


class AuthenticationError(BaseAppException):
    """Raised when the caller's bearer token is missing or invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_FAILED",
            headers={"WWW-Authenticate": "Bearer"},
        )


class WebhookSecretError(BaseAppException):
    """Raised when the webhook shared secret is missing or wrong."""

    def __init__(self, message: str = "Invalid webhook secret"):
        super().__init__(message=message, status_code=401, error_code="INVALID_WEBHOOK_SECRET")


class AuthorizationError(BaseAppException):
    """Raised when the caller may not notify the requested target."""

    def __init__(self, reason: str = "Forbidden", details: dict[str, Any] | None = None):
        self.reason = reason
        super().__init__(message=reason, status_code=403, error_code="FORBIDDEN", details=details)


class ConfigurationError(BaseAppException):
    """Raised when required server configuration (VAPID keys, secrets) is missing."""

    def __init__(self, message: str = "Server configuration error"):
        super().__init__(message=message, status_code=500, error_code="CONFIGURATION_ERROR")


class DeliveryError(Exception):
    """A single push delivery failed.

    Never rendered as a response: the dispatcher turns it into a removed
    subscription (404/410) or an entry in the error list.
    """

    GONE_STATUS_CODES = frozenset({404, 410})

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_gone(self) -> bool:
        return self.status_code in self.GONE_STATUS_CODES
