"""
JWT authentication helpers.

Access tokens are issued by the separate user service; this API only
verifies them. Claims:
    sub  — user id (stringified integer)
    role — "ADMIN" | "SYSTEM" | "USER"
    iss, iat, exp

Routes declare the roles they accept via require_roles(...).
"""
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional, TypedDict

import jwt
from fastapi import Header, HTTPException

from config import settings
from domain.errors import PermissionDeniedError, UnauthorizedError

logger = logging.getLogger(__name__)


class AuthUser(TypedDict):
    id: int
    role: str


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, user_id: int, role: str) -> str:
    """Sign an access token. Used by operator tooling and tests."""
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


async def require_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> AuthUser:
    """Dependency: any caller with a valid bearer token."""
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")

    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid access token subject.")
    return {"id": user_id, "role": str(payload.get("role", "")).upper()}


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.delete("/bands/{band_id}")
        async def delete_band(user: AuthUser = Depends(require_roles("ADMIN"))):
            ...
    """
    allowed = {r.upper() for r in roles}

    async def _check_role(
        authorization: Optional[str] = Header(None, alias="Authorization"),
    ) -> AuthUser:
        user = await require_user(authorization=authorization)
        if user["role"] not in allowed:
            logger.warning(f"User {user['id']} with role {user['role']!r} denied (needs {sorted(allowed)})")
            raise PermissionDeniedError("Insufficient role for this endpoint.")
        return user

    return _check_role
