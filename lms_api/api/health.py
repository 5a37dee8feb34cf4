"""Health and readiness endpoints.

  /health (liveness): always 200 while the process can answer; the body
    reports each backing service so dashboards can show "degraded".
  /ready (readiness): 503 while the document store is unreachable, so the
    load balancer stops routing here without restarting the container.

Redis is not part of readiness: rate limiting falls back to in-memory
counters when it is not configured.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response

from lms_api.db.redis import redis_healthy
from lms_api.services.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _store_ok(request: Request) -> bool:
    try:
        await request.app.state.store.ping()
    except StoreError:
        return False
    return True


@router.get("/health")
async def health(request: Request) -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if await _store_ok(request):
        checks["store"] = "ok"
    else:
        checks["store"] = "degraded"
        overall = "degraded"

    redis_client = request.app.state.redis
    if redis_client is None:
        checks["redis"] = "not_configured"
    elif await redis_healthy(redis_client):
        checks["redis"] = "ok"
    else:
        checks["redis"] = "degraded"
        overall = "degraded"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready(request: Request) -> Response:
    if not await _store_ok(request):
        logger.warning("Readiness check failed: document store unreachable")
        return Response(status_code=503)
    return Response(status_code=200)
