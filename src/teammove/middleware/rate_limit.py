# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""
Rate limiting for public endpoints (registration, join, invitation lookup).

In-memory slowapi storage; limits are per client IP unless the request
carries an authenticated organization.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..logging_config import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Organization id when authenticated, client IP otherwise."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"org:{user.organization_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["200/minute"],
    storage_uri="memory://",
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom handler for 429 Too Many Requests responses."""
    limit = getattr(exc, "limit", "unknown")
    logger.warning(
        "rate_limit_exceeded",
        key=get_rate_limit_key(request),
        path=request.url.path,
        method=request.method,
        limit=str(limit),
    )
    retry_after = 60
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": "Too many requests, please retry later",
                "details": {"retry_after": retry_after},
            }
        },
        headers={"Retry-After": str(retry_after)},
    )
