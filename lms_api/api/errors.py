"""Translate service errors into HTTP responses at the request boundary.

Every error body has the shape ``{"detail": {"message": ..., "error"?: ...}}``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from lms_api.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: ServiceError) -> int:
    for cls in type(error).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_detail(error: ServiceError) -> dict[str, str]:
    detail = {"message": error.message}
    if isinstance(error, StoreError) and error.detail:
        detail["error"] = error.detail
    return detail


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            getattr(exc, "detail", None),
        )
    return JSONResponse(status_code=code, content={"detail": error_detail(exc)})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
