"""
Declarative base, portable column types and timestamp columns.

Tables must run on PostgreSQL in production and on SQLite in tests, so
JSON and UUID columns use types that map to both.

Convention:
    - One table per file under `app/db/models/`
    - Row timestamps come from `TimestampMixin` (UTC, timezone-aware)
    - `__init__.py` re-exports every model for Alembic autogenerate
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class TimestampMixin:
    """``created_at`` (indexed, set once) and ``updated_at`` (touched on update)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
