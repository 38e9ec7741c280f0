# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Exception Hierarchy

Structured exceptions for the Tequila handshake.
All exceptions include context via `details` dict.

    TequilaError
    ├── ConfigurationError   fatal, raised before any request is served
    ├── NetworkError         identity server unreachable or timed out
    └── ProtocolError        identity server said no, or said nonsense
"""

from typing import Any


class TequilaError(Exception):
    """
    Base exception for all Tequila errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================


class ConfigurationError(TequilaError):
    """Invalid or missing configuration (e.g. no service name)."""

    def __init__(self, message: str, config_key: str | None = None, **kwargs):
        details = kwargs.get("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details)


# ============================================================
# HANDSHAKE ERRORS
# ============================================================


class NetworkError(TequilaError):
    """The identity server could not be reached, or did not answer in time."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        original_error: Exception | None = None,
        **kwargs,
    ):
        details = kwargs.get("details", {})
        if endpoint:
            details["endpoint"] = endpoint
        if original_error:
            details["original_error"] = type(original_error).__name__
        super().__init__(message, details)
        self.original_error = original_error


class ProtocolError(TequilaError):
    """
    The identity server rejected the call or answered with something unusable.

    Covers an unknown service, an invalid/expired/already used key, a
    malformed response body and a missing mandatory ``user`` attribute.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        **kwargs,
    ):
        details = kwargs.get("details", {})
        if endpoint:
            details["endpoint"] = endpoint
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code


__all__ = [
    "TequilaError",
    "ConfigurationError",
    "NetworkError",
    "ProtocolError",
]
