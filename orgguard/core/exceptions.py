"""Custom exception types for domain and API layers."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base app exception."""


class ValidationError(AppError):
    """Validation failure for user input or stored reference data."""


class NotFoundError(AppError):
    """Requested record does not exist for the organization."""


class ConfigurationError(AppError):
    """A required secret or setting is missing."""


class IntegrationError(AppError):
    """External integration call failure."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class LimitExceededError(AppError):
    """A gated creation was refused because the organization is at its plan limit."""

    def __init__(self, limit_key: str, limit: int, current: int, message: str):
        super().__init__(message)
        self.limit_key = limit_key
        self.limit = limit
        self.current = current
        self.message = message
