from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Category:
    category_id: str
    name: str
    slug: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    is_active: bool = True
    order: int = 0
    version: int = field(default=0, compare=False)

    @staticmethod
    def new(
        *,
        name: str,
        slug: str,
        now: datetime,
        description: str = "",
        is_active: bool = True,
        order: int = 0,
    ) -> Category:
        return Category(
            category_id=str(uuid4()),
            name=name,
            slug=slug,
            created_at=now,
            updated_at=now,
            description=description,
            is_active=is_active,
            order=order,
        )
