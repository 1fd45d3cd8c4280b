"""SQLAlchemy base classes and common mixins.

Defines the declarative base and reusable mixins for timestamp tracking.
Column types are chosen to work on PostgreSQL (production) and SQLite
(test runs): generic Uuid, and JSON lists that become JSONB on PostgreSQL.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONList = JSON().with_variant(JSONB(), "postgresql")
"""Column type for string arrays (subjects, tags, interests, grades)."""


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class CreatedAtMixin:
    """Mixin that adds a created_at column.

    Attributes:
        created_at: Timestamp when the record was created. Set automatically
            by the database on insert.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin that adds created_at and updated_at columns.

    Attributes:
        updated_at: Timestamp when the record was last modified. Updated
            automatically on each ORM update.
    """

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
