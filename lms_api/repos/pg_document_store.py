"""PostgreSQL implementation of DocumentStore.

Conditional writes map directly onto single SQL statements, so the
compare-and-swap is atomic inside Postgres:

  create   INSERT ... ON CONFLICT DO NOTHING RETURNING version
  replace  UPDATE ... WHERE version = :expected RETURNING version
  upsert   INSERT ... ON CONFLICT DO UPDATE SET version = version + 1

An empty RETURNING means the condition failed -> VersionConflict.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lms_api.core.metrics import STORE_OPERATIONS
from lms_api.db.tables import DocumentRow
from lms_api.repos.document_store import Document, StoredDocument
from lms_api.services.errors import StoreError, VersionConflict

logger = logging.getLogger(__name__)


class PgDocumentStore:
    """Satisfies the DocumentStore Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            STORE_OPERATIONS.labels(operation=operation, result="error").inc()
            logger.exception("Document store %s failed", operation)
            raise StoreError("Document store unavailable", detail=str(e)) from e

    async def get(self, collection: str, key: str) -> StoredDocument | None:
        async with self._transaction("get") as session:
            stmt = select(DocumentRow).where(
                DocumentRow.collection == collection, DocumentRow.key == key
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
        STORE_OPERATIONS.labels(operation="get", result="ok").inc()
        return None if row is None else _row_to_document(row)

    async def scan(
        self, collection: str, where: Document | None = None
    ) -> list[StoredDocument]:
        async with self._transaction("scan") as session:
            stmt = select(DocumentRow).where(DocumentRow.collection == collection)
            if where:
                # JSONB containment (@>) matches top-level field equality
                stmt = stmt.where(DocumentRow.body.contains(where))
            rows = (await session.execute(stmt.order_by(DocumentRow.created_at))).scalars()
            docs = [_row_to_document(row) for row in rows]
        STORE_OPERATIONS.labels(operation="scan", result="ok").inc()
        return docs

    async def put(
        self,
        collection: str,
        key: str,
        body: Document,
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        async with self._transaction("put") as session:
            if expected_version is None:
                insert_stmt = pg_insert(DocumentRow).values(
                    collection=collection, key=key, body=body, version=1
                )
                stmt = insert_stmt.on_conflict_do_update(
                    index_elements=[DocumentRow.collection, DocumentRow.key],
                    set_={
                        "body": insert_stmt.excluded.body,
                        "version": DocumentRow.version + 1,
                        "updated_at": func.now(),
                    },
                ).returning(DocumentRow.version)
            elif expected_version == 0:
                stmt = (
                    pg_insert(DocumentRow)
                    .values(collection=collection, key=key, body=body, version=1)
                    .on_conflict_do_nothing()
                    .returning(DocumentRow.version)
                )
            else:
                stmt = (
                    update(DocumentRow)
                    .where(
                        DocumentRow.collection == collection,
                        DocumentRow.key == key,
                        DocumentRow.version == expected_version,
                    )
                    .values(body=body, version=expected_version + 1)
                    .returning(DocumentRow.version)
                )
            new_version = (await session.execute(stmt)).scalar_one_or_none()

        if new_version is None:
            STORE_OPERATIONS.labels(operation="put", result="conflict").inc()
            raise VersionConflict(collection, key, expected_version)

        STORE_OPERATIONS.labels(operation="put", result="ok").inc()
        return StoredDocument(key=key, body=body, version=new_version)

    async def delete(self, collection: str, key: str) -> bool:
        async with self._transaction("delete") as session:
            stmt = delete(DocumentRow).where(
                DocumentRow.collection == collection, DocumentRow.key == key
            )
            result = await session.execute(stmt)
        STORE_OPERATIONS.labels(operation="delete", result="ok").inc()
        return result.rowcount > 0

    async def ping(self) -> None:
        async with self._transaction("ping") as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Database engine disposed")


def _row_to_document(row: DocumentRow) -> StoredDocument:
    return StoredDocument(key=row.key, body=dict(row.body), version=row.version)
