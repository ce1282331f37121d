# wardrobe/utils/exceptions.py
"""
Central place for all application-specific exceptions.
Every failure the UI can show is one of these.
"""
from __future__ import annotations


class WardrobeError(Exception):
    """Base exception for all app errors, never raised directly."""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload


class ValidationError(WardrobeError):
    """Client-side validation failed. Carries every violated rule in ``errors``."""
    status_code = 400
    message = "Invalid input"

    def __init__(self, errors: list[str] | str | None = None, **payload):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors or [])
        super().__init__(", ".join(self.errors) or None, **payload)


class AuthenticationError(WardrobeError):
    status_code = 401
    message = "Your session has expired, please log in again"


class AuthorizationError(WardrobeError):
    status_code = 403
    message = "You do not have permission to perform this action"


class NotFoundError(WardrobeError):
    status_code = 404
    message = "The requested resource was not found"


class BusinessRuleError(WardrobeError):
    """The backend refused the request; ``message`` is the server's own text."""
    status_code = 409
    message = "The request was rejected"


class ApiError(WardrobeError):
    """Network or HTTP failure talking to the backend."""
    status_code = 502
    message = "Failed to reach the server"
