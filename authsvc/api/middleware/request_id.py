"""
Request correlation and timing.

Every request gets an X-Request-ID, either the client's (when it is a short
token of safe characters) or a fresh UUID. The id is echoed on the response
and bound to the logging context for the duration of the request.
"""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from authsvc.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Client ids end up in log lines and response headers
_CLIENT_REQUEST_ID = re.compile(r"[A-Za-z0-9._:\-]{1,128}")

# bcrypt runs on every register/login, so the default is generous
SLOW_REQUEST_MS = 2000


def resolve_request_id(incoming: str | None) -> str:
    """Return the client's request id if acceptable, otherwise a new one."""
    if incoming and _CLIENT_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and report slow or failed ones."""

    def __init__(self, app: ASGIApp, slow_request_ms: float = SLOW_REQUEST_MS):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        ctx_token = request_id_var.set(request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            self._report(request, response.status_code, time.perf_counter() - started)
            return response
        finally:
            request_id_var.reset(ctx_token)

    def _report(self, request: Request, status_code: int, elapsed_s: float) -> None:
        duration_ms = round(elapsed_s * 1000, 1)
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        if duration_ms > self.slow_request_ms:
            logger.warning("Slow request", extra=fields)
        elif status_code >= 500:
            logger.warning("Request failed", extra=fields)
        else:
            logger.debug("Request handled", extra=fields)
