"""Async SQLAlchemy engine and session factory.

Unlike a module-level engine, these are built by the application
lifespan (see lms_api/main.py) only when DATABASE_URL is configured, and
disposed when the process shuts down.  Without a DATABASE_URL the app
runs on the in-memory document store and never touches SQLAlchemy.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    logger.info("Database engine created: %s", engine.url.render_as_string())
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
