from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from lms_api.api.dependencies import CurrentUser, get_category_service
from lms_api.api.ratelimit import require_rate_limit
from lms_api.repos.category_repo import category_to_document
from lms_api.services.categories_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])

Categories = Annotated[CategoryService, Depends(get_category_service)]


class CategoryIn(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    isActive: bool | None = None
    order: int | None = None


@router.get("")
async def list_categories(categories: Categories) -> dict:
    found = await categories.list_categories()
    return {
        "message": "Categories retrieved successfully",
        "data": [category_to_document(c) for c in found],
    }


@router.get("/{category_id}")
async def get_category(category_id: str, categories: Categories) -> dict:
    category = await categories.get_category(category_id)
    return {
        "message": "Category retrieved successfully",
        "data": category_to_document(category),
    }


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit())],
)
async def create_category(
    payload: CategoryIn,
    _principal: CurrentUser,
    categories: Categories,
) -> dict:
    category = await categories.create_category(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        is_active=payload.isActive,
        order=payload.order,
    )
    return {
        "message": "Category created successfully",
        "data": category_to_document(category),
    }


@router.put("/{category_id}", dependencies=[Depends(require_rate_limit())])
async def update_category(
    category_id: str,
    payload: CategoryIn,
    _principal: CurrentUser,
    categories: Categories,
) -> dict:
    category = await categories.update_category(
        category_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Category updated successfully",
        "data": category_to_document(category),
    }


@router.delete("/{category_id}", dependencies=[Depends(require_rate_limit())])
async def delete_category(
    category_id: str,
    _principal: CurrentUser,
    categories: Categories,
) -> dict:
    category = await categories.delete_category(category_id)
    return {
        "message": "Category deleted successfully",
        "data": category_to_document(category),
    }
