"""
Shared declarative base, column mixins and column types.

Tables mix in `UUIDPrimaryKeyMixin` for their key and `TimestampMixin`
for UTC `created_at` / `updated_at`.  Rows that belong to one client
company mix in `CompanyScopedMixin`; its `company_id` is the column
every tenant-scoped query filters on.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


def enum_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Named database enum storing member values, not member names."""
    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _utc_column(**kwargs) -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, **kwargs
    )


class Base(DeclarativeBase):
    pass


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = _utc_column()
    updated_at: Mapped[datetime] = _utc_column(onupdate=utcnow)


class CompanyScopedMixin:
    @declared_attr
    def company_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
