"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency, client IP
and a short request ID for correlation. The request_id is injected into
request.state (routers copy it into ApiResponse) and echoed back in the
X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/awards → 200 (23ms) 10.0.0.7 req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("gc.request")


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s → unhandled error %s",
                request.method,
                request.url.path,
                request.state.request_id,
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "[%s] %s → %d (%.0fms) %s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client_ip(request),
            request.state.request_id,
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
