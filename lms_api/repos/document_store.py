"""Document store contract and the in-memory implementation.

Every record in the system (progress records, categories, courses,
quizzes) is a JSON document addressed by ``(collection, key)``.  Writes
replace the whole document; there are no partial updates.

OPTIMISTIC CONCURRENCY
----------------------
Each document carries a ``version`` that the store increments on every
write.  ``put(..., expected_version=N)`` only succeeds if the stored
version is still N:

    expected_version=None  unconditional overwrite (last write wins)
    expected_version=0     create; fails if the key already exists
    expected_version=N     replace; fails unless the stored version is N

A failed condition raises VersionConflict and leaves the store untouched.
Read-modify-write callers re-read and retry, so two concurrent appends
to the same student's record can no longer silently drop one another.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from lms_api.core.metrics import STORE_OPERATIONS
from lms_api.services.errors import VersionConflict

Document = dict[str, Any]


@dataclass(frozen=True, slots=True)
class StoredDocument:
    key: str
    body: Document
    version: int


@runtime_checkable
class DocumentStore(Protocol):
    async def get(self, collection: str, key: str) -> StoredDocument | None:
        """Exact-key lookup.  Returns None when absent."""
        ...

    async def scan(
        self, collection: str, where: Document | None = None
    ) -> list[StoredDocument]:
        """All documents in a collection whose top-level fields equal ``where``."""
        ...

    async def put(
        self,
        collection: str,
        key: str,
        body: Document,
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        """Write the whole document; see module docstring for the condition."""
        ...

    async def delete(self, collection: str, key: str) -> bool:
        """Remove a document.  Returns False when it did not exist."""
        ...

    async def ping(self) -> None:
        """Raise StoreError if the backing store is unreachable."""
        ...

    async def close(self) -> None: ...


def _matches(body: Document, where: Document | None) -> bool:
    if not where:
        return True
    return all(body.get(field) == value for field, value in where.items())


class InMemoryDocumentStore:
    """Process-local store for dev and tests.

    Bodies are deep-copied on the way in and out so callers can never
    mutate stored state by accident.  A fresh instance is built per app
    lifespan, which gives every test an empty store.
    """

    def __init__(self) -> None:
        self._docs: dict[tuple[str, str], StoredDocument] = {}

    async def get(self, collection: str, key: str) -> StoredDocument | None:
        STORE_OPERATIONS.labels(operation="get", result="ok").inc()
        doc = self._docs.get((collection, key))
        return None if doc is None else _copy(doc)

    async def scan(
        self, collection: str, where: Document | None = None
    ) -> list[StoredDocument]:
        STORE_OPERATIONS.labels(operation="scan", result="ok").inc()
        return [
            _copy(doc)
            for (coll, _key), doc in self._docs.items()
            if coll == collection and _matches(doc.body, where)
        ]

    async def put(
        self,
        collection: str,
        key: str,
        body: Document,
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        current = self._docs.get((collection, key))
        current_version = 0 if current is None else current.version

        if expected_version is not None and expected_version != current_version:
            STORE_OPERATIONS.labels(operation="put", result="conflict").inc()
            raise VersionConflict(collection, key, expected_version)

        stored = StoredDocument(
            key=key, body=copy.deepcopy(body), version=current_version + 1
        )
        self._docs[(collection, key)] = stored
        STORE_OPERATIONS.labels(operation="put", result="ok").inc()
        return _copy(stored)

    async def delete(self, collection: str, key: str) -> bool:
        STORE_OPERATIONS.labels(operation="delete", result="ok").inc()
        return self._docs.pop((collection, key), None) is not None

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._docs.clear()


def _copy(doc: StoredDocument) -> StoredDocument:
    return StoredDocument(key=doc.key, body=copy.deepcopy(doc.body), version=doc.version)
