"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.gc_common.database import engine
from src.gc_common.errors import AppError
from src.gc_common.redis_client import close_redis, ping_redis
from src.gc_common.response import error_response
from src.gc_gateway.api.router import router as employee_router
from src.gc_gateway.middleware.rate_limit import RateLimitMiddleware
from src.gc_gateway.middleware.request_log import RequestLogMiddleware
from src.gc_ledger.api.router import router as account_router
from src.gc_rewards.api.router import router as rewards_router
from src.gc_store.api.router import router as store_router
from src.gc_wellness.api.router import router as wellness_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB (and Redis when rate limiting is on). Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if settings.RATE_LIMIT_ENABLED:
        await ping_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Last added runs first: request logging wraps rate limiting.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(employee_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(rewards_router, prefix="/api/v1")
app.include_router(wellness_router, prefix="/api/v1")
app.include_router(store_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
