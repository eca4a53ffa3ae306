"""
Request correlation and access-denial logging.

A client-supplied X-Request-ID is reused only when it is a short token of
safe characters; anything else is replaced, since the value is written into
every log line of the request. Responses that refuse access (401, 403, 429)
are logged so rejected sessions can be traced without logging tokens.
"""

import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pricesurvey.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000
DENIED_STATUSES = frozenset({401, 403, 429})

_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def accept_request_id(candidate: Optional[str]) -> str:
    """Return the client's ID if it is safe to log, else a fresh UUID."""
    if candidate and _SAFE_REQUEST_ID.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation ID; log denials and slow requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
            }
            if response.status_code in DENIED_STATUSES:
                logger.info("Access denied", extra=fields)
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)
            return response
        finally:
            request_id_var.reset(token)
