"""Request logging middleware: one log line per request, write requests at INFO."""


import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("scan2go.requests")

# Methods that mutate state
_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency for every request.

    Reads are logged at DEBUG so dashboards polling for stats stay quiet;
    state-changing requests and server errors are always visible.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if response.status_code >= 500:
            level = logging.ERROR
        elif request.method in _WRITE_METHODS:
            level = logging.INFO
        else:
            level = logging.DEBUG

        logger.log(
            level,
            "%s %s -> %d (%dms) from %s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.client.host if request.client else "-",
        )
        return response
