"""
Rate limiting for the unauthenticated credential endpoints.

Login, registration and refresh are limited per client IP in fixed
one-minute windows. Everything else passes through untouched.
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from pricesurvey.config import get_settings
from pricesurvey.logging_config import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60
LIMITED_PATHS = ("/auth/login", "/auth/register", "/auth/refresh")


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class InMemoryRateLimitStore:
    """Fixed-window counters. Key -> (count, window_start)."""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[int, float]] = {}

    def hit(self, key: str, limit: int, window_seconds: int = WINDOW_SECONDS) -> Optional[int]:
        """
        Count one request.

        Returns None when allowed, else the seconds until the window resets.
        """
        now = time.monotonic()
        count, start = self._data.get(key, (0, now))
        if now - start >= window_seconds:
            count, start = 0, now
        if count >= limit:
            return max(1, int(window_seconds - (now - start)))
        self._data[key] = (count + 1, start)
        return None

    def cleanup_old(self, max_age_seconds: int = 2 * WINDOW_SECONDS) -> None:
        now = time.monotonic()
        for key in [k for k, (_, start) in self._data.items() if now - start > max_age_seconds]:
            self._data.pop(key, None)

    def reset(self) -> None:
        self._data.clear()


# Single-process store
_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP limit on POSTs to the credential endpoints."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled or request.method != "POST":
            return await call_next(request)

        path = (request.url.path or "").rstrip("/")
        if path not in {settings.api_v1_prefix + p for p in LIMITED_PATHS}:
            return await call_next(request)

        store = get_store()
        store.cleanup_old()

        ip = _client_ip(request)
        retry_after = store.hit(f"auth:{ip}", settings.rate_limit_auth_per_minute)
        if retry_after is not None:
            logger.warning("Rate limit exceeded", extra={"client_ip": ip, "path": path})
            return Response(
                content='{"detail":"Too many requests. Please try again later."}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
