"""
Custom domain exceptions for consistent error handling.

Every error carries an ErrorKind. ERROR_STATUS is the only place a kind is
turned into an HTTP status; the global exception handler in main.py renders
the response envelope.
"""
from fastapi import HTTPException, status

from domain.enums import ErrorKind


ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.UPSTREAM_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: dict | None = None, headers: dict | None = None):
        super().__init__(status_code=ERROR_STATUS[self.kind], detail=message, headers=headers)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, identifier, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    kind = ErrorKind.CONFLICT


class RateLimitError(DomainError):
    """Local rate limit exceeded (429)."""
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Rate limit exceeded", details: dict | None = None, headers: dict | None = None):
        super().__init__(message, details=details, headers=headers)


class UpstreamRateLimitedError(DomainError):
    """Ticketmaster rejected the request with 429."""
    kind = ErrorKind.UPSTREAM_RATE_LIMITED

    def __init__(self, message: str = "Too many requests, please try again later.", details: dict | None = None):
        super().__init__(message, details=details)


class UpstreamUnavailableError(DomainError):
    """Ticketmaster failed or could not be reached (502)."""
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class ReconcileError(DomainError):
    """A concert insert conflicted but no matching row could be found (500)."""
    kind = ErrorKind.INTERNAL
