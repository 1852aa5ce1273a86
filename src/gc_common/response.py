"""Unified API response envelope.

Every endpoint, success or failure, returns:
{
    "code": 0,           // 0=success, non-0=AppError code
    "message": "success",
    "data": { ... },     // null on error
    "timestamp": "...",
    "request_id": "..."  // same value as the X-Request-ID header
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def _bind(resp: ApiResponse, request: Request | None) -> ApiResponse:
    # RequestLogMiddleware stores the id on request.state; reuse it when present.
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return _bind(ApiResponse(code=0, message="success", data=data), request)


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return _bind(ApiResponse(code=code, message=message, data=None), request)
