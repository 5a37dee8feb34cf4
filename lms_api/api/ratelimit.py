"""Rate limiting dependency for write routes.

Declared per route rather than as middleware so reads, /health and
/metrics are never limited:

    @router.post("/...", dependencies=[Depends(require_rate_limit())])

Keys use the most specific identity available: ``user:<sub>`` from the
bearer token, otherwise ``ip:<client address>``.
"""

from __future__ import annotations

import logging

import jwt
from fastapi import HTTPException, Request, status

from lms_api.core.metrics import RATE_LIMIT_HITS
from lms_api.services.rate_limiter import RateLimitConfig, RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = RateLimitConfig()


def require_rate_limit(config: RateLimitConfig = _DEFAULT_CONFIG):
    """Dependency factory: count the request against the caller's window."""

    async def _check(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        key = _build_key(request)
        result: RateLimitResult = await limiter.check(key, config)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(
                key_type="user" if key.startswith("user:") else "ip"
            ).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"message": "Rate limit exceeded"},
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _build_key(request: Request) -> str:
    """Key by the token's ``sub`` when present, else by client IP.

    The token is decoded without verification: a forged ``sub`` only
    gets its own counter, and require_user still rejects the request.
    """
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        try:
            claims = jwt.decode(auth_header[7:], options={"verify_signature": False})
        except jwt.InvalidTokenError:
            claims = {}
        sub = claims.get("sub")
        if sub:
            return f"user:{sub}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
