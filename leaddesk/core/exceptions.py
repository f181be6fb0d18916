# leaddesk/core/exceptions.py
from __future__ import annotations

from typing import Any, Dict, Optional

UNAUTHORIZED_MESSAGE = "Unauthorized. Admin login required."


class BaseAPIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class AuthenticationError(BaseAPIException):
    """Authentication failed. The reason is never part of the message."""
    def __init__(self, message: str = UNAUTHORIZED_MESSAGE, **kwargs):
        super().__init__(message, status_code=401, **kwargs)


class NotFoundError(BaseAPIException):
    """Resource not found."""
    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status_code=404, **kwargs)


class ValidationError(BaseAPIException):
    """Client supplied input that cannot be accepted."""
    def __init__(self, message: str = "Validation error", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class DatabaseError(BaseAPIException):
    """Database error."""
    def __init__(self, message: str = "Database error", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class ConfigurationError(BaseAPIException):
    """Required configuration is missing or invalid."""
    def __init__(self, message: str = "Service is not configured", **kwargs):
        super().__init__(message, status_code=500, **kwargs)
