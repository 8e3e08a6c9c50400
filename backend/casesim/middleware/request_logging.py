"""Per-request access log tagged with the investigation and role a call targets."""

import logging
import re
import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Model calls routinely take several seconds; only flag the really slow ones.
SLOW_REQUEST_MS = 15000

_TARGET_RE = re.compile(
    r"^/api/investigations/(?P<investigation_id>[^/]+)(?:/interrogations/(?P<role>[^/]+))?"
)


def describe_target(path: str) -> str:
    """``investigation=<id> role=<role>`` for investigation routes, else ``""``."""
    match = _TARGET_RE.match(path)
    if not match:
        return ""
    parts = [f"investigation={match.group('investigation_id')}"]
    role: Optional[str] = match.group("role")
    if role:
        parts.append(f"role={role}")
    return " " + " ".join(parts)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each call with a request id, the investigation/role it touches, its
    duration and status. The id goes on ``request.state.request_id`` for the
    error handlers and back to the client as ``X-Request-ID``.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.request_count = 0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        self.request_count += 1
        request_id = f"req_{self.request_count}_{int(time.time() * 1000)}"
        request.state.request_id = request_id
        target = describe_target(request.url.path)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"[{request_id}] {request.method} {request.url.path}{target} failed: {e}", exc_info=True)
            raise

        duration_ms = (time.time() - start_time) * 1000
        status_code = response.status_code
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"[{request_id}] {request.method} {request.url.path}{target} - "
            f"Status: {status_code} - Duration: {duration_ms:.2f}ms"
        )
        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(f"[{request_id}] SLOW model call{target}: {duration_ms:.2f}ms")

        response.headers["X-Request-ID"] = request_id
        return response
