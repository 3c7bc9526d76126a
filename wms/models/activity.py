from __future__ import annotations

"""
Audit trail tables.

- `ClientActivityLog`: one row per notable action taken on behalf of a
  company (by its users or by staff).
- `AdminSession`: one row per "view as client" period.  An open row
  (`session_end IS NULL`) narrows the admin's data scope to the viewed
  company.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from wms.models.company import Company


class ClientActivityLog(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "client_activity_logs"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    activity_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # `metadata` is reserved on declarative classes.
    details: Mapped[dict] = mapped_column("metadata", JSONType, default=dict, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    def __repr__(self) -> str:
        return f"<ClientActivityLog {self.activity_type}>"


class AdminSession(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "admin_sessions"

    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewed_company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    session_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    viewed_company: Mapped["Company"] = relationship(lazy="selectin")  # noqa: F821

    @property
    def is_open(self) -> bool:
        return self.session_end is None

    def __repr__(self) -> str:
        return f"<AdminSession admin={self.admin_user_id} company={self.viewed_company_id}>"
