"""
In-memory rate limiting for the Concert Wishlist API.

Protects routes that call Ticketmaster or mutate wishlists.
Defaults (5 requests / 15 minutes) come from settings.

Uses a simple sliding-window counter per IP address and route.
For multi-worker deployments, replace with a Redis-backed limiter.
"""
import time
import logging
from collections import defaultdict
from typing import Optional

from fastapi import Request

from config import settings
from domain.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.

    Tracks request timestamps per (IP, route) key.
    Not suitable for multi-worker deployments (use Redis instead).
    """

    def __init__(self):
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired timestamps from the window."""
        cutoff = time.time() - window_seconds
        self._requests[key] = [
            ts for ts in self._requests[key] if ts > cutoff
        ]

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Check if a request is allowed under the rate limit.

        Args:
            key: Unique identifier (e.g., "IP:route")
            max_requests: Maximum allowed requests in the window
            window_seconds: Time window in seconds

        Returns:
            True if allowed, False if rate-limited
        """
        self._cleanup(key, window_seconds)

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(time.time())
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        """Get the number of remaining requests in the current window."""
        self._cleanup(key, window_seconds)
        return max(0, max_requests - len(self._requests[key]))

    def reset(self):
        """Forget every tracked request."""
        self._requests.clear()


# Global rate limiter instance
limiter = RateLimiter()


def rate_limit(
    max_requests: Optional[int] = None,
    window_seconds: Optional[int] = None,
    message: str = "Too many requests, please try again later.",
):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.post("/bands/{band_id}/sync-concerts", dependencies=[Depends(rate_limit())])
        async def sync(...):
            ...

    Args:
        max_requests: Maximum requests allowed in the window (default from settings)
        window_seconds: Time window in seconds (default from settings)
        message: Error message returned with the 429
    """
    async def _check_rate_limit(request: Request):
        limit = max_requests or settings.rate_limit_max_requests
        window = window_seconds or settings.rate_limit_window_seconds

        client_ip = request.client.host if request.client else "unknown"
        route_path = request.url.path
        key = f"{client_ip}:{route_path}"

        if not limiter.check(key, limit, window):
            remaining = limiter.remaining(key, limit, window)
            logger.warning(
                f"Rate limit exceeded: {client_ip} on {route_path} "
                f"({limit}/{window}s)"
            )
            raise RateLimitError(
                message,
                details={"limit": limit, "window_seconds": window},
                headers={
                    "Retry-After": str(window),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": str(remaining),
                },
            )

    return _check_rate_limit
