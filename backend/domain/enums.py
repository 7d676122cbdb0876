"""
Domain enums.

ErrorKind is the machine-readable error code carried in every error
envelope; domain.errors maps each kind to its HTTP status. Role is the JWT
role claim checked by the guards in deps: ADMIN passes every guard,
SYSTEM only the concert-sync guard, USER none of them.
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL = "internal_server_error"


class Role(str, Enum):
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"
    USER = "USER"
