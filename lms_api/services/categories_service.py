from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from lms_api.core.clock import Clock, utc_now
from lms_api.models.category import Category
from lms_api.repos.category_repo import (
    CategoryRepo,
    category_from_document,
    category_to_document,
)
from lms_api.services.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    VersionConflict,
)

logger = logging.getLogger(__name__)

_SLUG_TAKEN = "A category with this slug already exists"


class CategoryService:
    def __init__(self, repo: CategoryRepo, *, clock: Clock = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    async def list_categories(self) -> list[Category]:
        categories = await self._repo.list_all()
        return sorted(categories, key=lambda c: (c.order, c.name.lower()))

    async def get_category(self, category_id: str) -> Category:
        category = await self._repo.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def create_category(
        self,
        *,
        name: str | None,
        slug: str | None,
        description: str | None = None,
        is_active: bool | None = None,
        order: int | None = None,
    ) -> Category:
        if not name or not name.strip() or not slug or not slug.strip():
            raise ValidationError("Name and slug are required")

        if await self._repo.find_by_slug(slug) is not None:
            logger.warning("Rejected duplicate category slug=%s", slug)
            raise ValidationError(_SLUG_TAKEN)

        category = Category.new(
            name=name.strip(),
            slug=slug.strip(),
            now=self._clock(),
            description=description or "",
            is_active=True if is_active is None else is_active,
            order=order or 0,
        )
        saved = await self._save(category)
        logger.info("Created category id=%s slug=%s", saved.category_id, saved.slug)
        return saved

    async def update_category(
        self, category_id: str, changes: dict[str, Any]
    ) -> Category:
        """Apply a partial update given in wire (camelCase) field names."""
        category = await self.get_category(category_id)

        for required in ("name", "slug"):
            if required in changes and not (changes[required] or "").strip():
                raise ValidationError(f"{required} must not be empty")

        new_slug = changes.get("slug")
        if new_slug and new_slug != category.slug:
            holder = await self._repo.find_by_slug(new_slug)
            if holder is not None and holder.category_id != category_id:
                logger.warning("Rejected slug change to taken slug=%s", new_slug)
                raise ValidationError(_SLUG_TAKEN)

        merged = {**category_to_document(category), **changes}
        updated = replace(
            category_from_document(merged),
            category_id=category.category_id,
            created_at=category.created_at,
            updated_at=self._clock(),
            version=category.version,
        )
        return await self._save(updated)

    async def delete_category(self, category_id: str) -> Category:
        category = await self.get_category(category_id)
        await self._repo.delete(category_id)
        logger.info("Deleted category id=%s", category_id)
        return category

    async def _save(self, category: Category) -> Category:
        try:
            return await self._repo.save(category)
        except VersionConflict:
            raise ConflictError(
                "Category was modified concurrently; retry the request"
            ) from None
