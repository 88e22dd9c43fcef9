"""Access logging for API requests."""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("lan_linkup.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One line per /api request: method, path, status and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not path.startswith("/api") or path == "/api/health":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, "%s %s %d in %.0fms", request.method, path, status, duration_ms)
        return response
