from __future__ import annotations

from dataclasses import replace
from typing import Any

from lms_api.core.clock import from_iso, to_iso
from lms_api.models.category import Category
from lms_api.repos.document_store import DocumentStore

COLLECTION = "categories"


class CategoryRepo:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, category_id: str) -> Category | None:
        doc = await self._store.get(COLLECTION, category_id)
        if doc is None:
            return None
        return replace(category_from_document(doc.body), version=doc.version)

    async def list_all(self) -> list[Category]:
        docs = await self._store.scan(COLLECTION)
        return [replace(category_from_document(d.body), version=d.version) for d in docs]

    async def find_by_slug(self, slug: str) -> Category | None:
        docs = await self._store.scan(COLLECTION, {"slug": slug})
        if not docs:
            return None
        return replace(category_from_document(docs[0].body), version=docs[0].version)

    async def save(self, category: Category) -> Category:
        stored = await self._store.put(
            COLLECTION,
            category.category_id,
            category_to_document(category),
            expected_version=category.version,
        )
        return replace(category, version=stored.version)

    async def delete(self, category_id: str) -> bool:
        return await self._store.delete(COLLECTION, category_id)


def category_to_document(category: Category) -> dict[str, Any]:
    return {
        "categoryId": category.category_id,
        "name": category.name,
        "description": category.description,
        "slug": category.slug,
        "isActive": category.is_active,
        "order": category.order,
        "createdAt": to_iso(category.created_at),
        "updatedAt": to_iso(category.updated_at),
    }


def category_from_document(body: dict[str, Any]) -> Category:
    return Category(
        category_id=body["categoryId"],
        name=body["name"],
        slug=body["slug"],
        created_at=from_iso(body["createdAt"]),
        updated_at=from_iso(body["updatedAt"]),
        description=body.get("description", ""),
        is_active=body.get("isActive", True),
        order=body.get("order", 0),
    )
