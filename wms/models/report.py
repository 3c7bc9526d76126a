from __future__ import annotations

"""
ReconciliationReport: a saved stock reconciliation.

`report_data` holds the computed rows (see
`wms.domain.reconciliation.ReconciliationRow`) with any actual counts
entered by staff.
"""

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wms.models.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class ReconciliationReport(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "reconciliation_reports"

    report_name: Mapped[str] = mapped_column(String(256), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    report_data: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    items_with_variance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ReconciliationReport {self.report_name}>"
