"""Fixed-window rate limiting backed by Redis.

Counters live in Redis rather than process memory so every instance behind
the load balancer shares one budget per client:

    count = INCR ratelimit:{ip}
    if count == 1: EXPIRE ratelimit:{ip} window
    if count > limit: 429 + Retry-After

Limits come from settings (RATE_LIMIT_MAX requests per RATE_LIMIT_WINDOW_SECONDS).
Responses are written directly: exceptions raised inside BaseHTTPMiddleware
bypass FastAPI's AppError handler.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable

import redis.asyncio as aioredis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.gc_common.errors import RateLimitError
from src.gc_common.redis_client import get_redis
from src.gc_common.response import error_response
from src.gc_gateway.middleware.request_log import client_ip

logger = logging.getLogger("gc.ratelimit")

_KEY_PREFIX = "ratelimit"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        max_requests: int | None = None,
        window_seconds: int | None = None,
        enabled: bool | None = None,
        exempt_paths: Iterable[str] = ("/health",),
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests if max_requests is not None else settings.RATE_LIMIT_MAX
        self.window_seconds = (
            window_seconds if window_seconds is not None else settings.RATE_LIMIT_WINDOW_SECONDS
        )
        self.enabled = enabled if enabled is not None else settings.RATE_LIMIT_ENABLED
        self.exempt_paths = frozenset(exempt_paths)
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled or request.url.path in self.exempt_paths:
            return await call_next(request)

        ip = client_ip(request)
        key = f"{_KEY_PREFIX}:{ip}"
        redis = await self._redis_factory()
        count = int(await redis.incr(key))
        if count == 1:
            await redis.expire(key, self.window_seconds)

        if count > self.max_requests:
            ttl = int(await redis.ttl(key))
            retry_after = ttl if ttl > 0 else self.window_seconds
            logger.warning("Rate limit exceeded for %s (%d/%d)", ip, count, self.max_requests)
            err = RateLimitError()
            body = error_response(
                err.code,
                f"{err.message}: maximum {self.max_requests} requests "
                f"per {self.window_seconds} seconds",
                request,
            )
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
