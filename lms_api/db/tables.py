"""SQLAlchemy table definitions.

The service stores schemaless JSON documents, so there is a single
table: one row per ``(collection, key)`` with a JSONB body and the
version counter used for conditional writes.  Repos convert between
these bodies and the frozen dataclasses in lms_api/models/.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lms_api.db.engine import Base


class DocumentRow(Base):
    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_body", "body", postgresql_using="gin"),)

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    body: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
