from __future__ import annotations

"""
Check-in / check-out requests.

Clients ask for goods to be received (check-in) or released
(check-out); warehouse staff review each request.  Line items are
stored as JSON:

- check-in `requested_products`: `[{product_id?, name, sku?, quantity,
  variants: [...nested tree...], ...}]`.  Staff may amend the list on
  approval; the amended copy goes to `amended_products` and
  `was_amended` is set.
- check-out `requested_items`: `[{product_id, product_name,
  variant_attribute?, variant_value?, quantity}]`.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import (
    Base,
    CompanyScopedMixin,
    JSONType,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_type,
)

if TYPE_CHECKING:
    from wms.models.company import Company


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CheckInRequest(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "check_in_requests"

    request_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[RequestStatus] = mapped_column(
        enum_type(RequestStatus, "check_in_status"),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    requested_products: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    amended_products: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    was_amended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    amendment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    requested_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    company: Mapped["Company"] = relationship(lazy="selectin")  # noqa: F821

    @property
    def effective_products(self) -> list:
        """The products that count toward stock: the amended list when there is one."""
        if self.was_amended and self.amended_products is not None:
            return self.amended_products
        return self.requested_products or []

    def __repr__(self) -> str:
        return f"<CheckInRequest {self.request_number} {self.status.value}>"


class CheckOutRequest(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "check_out_requests"

    request_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[RequestStatus] = mapped_column(
        enum_type(RequestStatus, "check_out_status"),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    requested_items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    company: Mapped["Company"] = relationship(lazy="selectin")  # noqa: F821

    def __repr__(self) -> str:
        return f"<CheckOutRequest {self.request_number} {self.status.value}>"
