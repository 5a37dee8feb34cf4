from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms_api.api.categories import router as categories_router
from lms_api.api.courses import router as courses_router
from lms_api.api.errors import install_error_handlers
from lms_api.api.health import router as health_router
from lms_api.api.metrics_endpoint import router as metrics_router
from lms_api.api.progress import router as progress_router
from lms_api.api.quizzes import router as quizzes_router
from lms_api.core.config import SETTINGS, Settings
from lms_api.core.logging import setup_logging
from lms_api.db.engine import build_engine, build_session_factory
from lms_api.db.redis import build_redis_client
from lms_api.middleware.metrics import MetricsMiddleware
from lms_api.middleware.request_context import RequestContextMiddleware
from lms_api.repos.document_store import DocumentStore, InMemoryDocumentStore
from lms_api.repos.pg_document_store import PgDocumentStore
from lms_api.services.identity import build_identity_verifier
from lms_api.services.rate_limiter import InMemoryRateLimiter, RedisRateLimiter
from lms_api.services.upload_service import S3UploadSigner

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


def _build_store(settings: Settings) -> DocumentStore:
    if not settings.database_url:
        logger.info("No DATABASE_URL configured; using the in-memory document store")
        return InMemoryDocumentStore()
    engine = build_engine(settings.database_url)
    return PgDocumentStore(engine, build_session_factory(engine))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build every backing client once per process and close them on shutdown.

    Handlers reach them through the dependencies in lms_api/api/dependencies.py,
    so each app instance (and each test client) gets its own set.
    """
    settings: Settings = app.state.settings

    app.state.store = _build_store(settings)
    app.state.redis = build_redis_client(settings.redis_url)
    app.state.rate_limiter = (
        InMemoryRateLimiter()
        if app.state.redis is None
        else RedisRateLimiter(app.state.redis)
    )
    app.state.identity_verifier = build_identity_verifier(settings)
    app.state.upload_signer = S3UploadSigner(
        settings.s3_bucket_name, settings.aws_region
    )

    try:
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.aclose()
            logger.info("Redis connection pool closed")
        await app.state.store.close()


def create_app(settings: Settings = SETTINGS) -> FastAPI:
    app = FastAPI(
        title="lms-api",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware execution order: last-added runs first (outermost layer).
    # RequestContext (outermost) → Metrics → CORS → route handler
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    install_error_handlers(app)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(progress_router)
    app.include_router(categories_router)
    app.include_router(courses_router)
    app.include_router(quizzes_router)
    return app


app = create_app()

logger.info(
    "lms-api started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
