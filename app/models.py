"""SQLAlchemy ORM models for the URL shortener application.

This module defines the database schema for persisted mappings. The unique
index on ``code`` is what makes a claim atomic: two concurrent inserts of the
same code cannot both commit.

Data Model Layout
=================
::
    shortened_urls table
    ├─ id (UUID PRIMARY KEY)
    ├─ code (VARCHAR(7) UNIQUE, INDEXED)
    ├─ long_url (TEXT NOT NULL)
    ├─ short_url (TEXT NOT NULL)
    └─ created_at (TIMESTAMPTZ NOT NULL)

How to Use
===========
**Step 1 — Import**::
    from app.models import ShortenedURL

**Step 2 — Persist a mapping**::
    db.add(ShortenedURL.from_mapping(mapping))
    await db.commit()

**Step 3 — Query by code**::
    result = await db.execute(select(ShortenedURL).where(ShortenedURL.code == "abc1234"))
    record = result.scalar_one_or_none()

Key Behaviours
===============
- Rows are append-only; nothing in the service updates or deletes them.
- created_at is written by the application at claim time, not by the server.

Classes:
    ShortenedURL:  Persisted long ↔ short mapping.
"""

import datetime
import uuid

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.codegen import CODE_LENGTH
from app.database import Base
from app.mapping import Mapping

__all__ = ["ShortenedURL"]


class ShortenedURL(Base):
    __tablename__ = "shortened_urls"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(CODE_LENGTH), unique=True, index=True, nullable=False)
    long_url: Mapped[str] = mapped_column(Text, nullable=False)
    short_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "ShortenedURL":
        return cls(
            id=mapping.id,
            code=mapping.code,
            long_url=mapping.long_url,
            short_url=mapping.short_url,
            created_at=mapping.created_at,
        )

    def __repr__(self) -> str:
        return f"<ShortenedURL(id={self.id}, code='{self.code}')>"
