from __future__ import annotations

"""
Client orders: a tenant's fulfilment order and its line items.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import (
    Base,
    CompanyScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_type,
)

if TYPE_CHECKING:
    from wms.models.product import ClientProduct


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ClientOrder(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "client_orders"

    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    order_type: Mapped[str] = mapped_column(String(32), default="outbound", nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        enum_type(OrderStatus, "client_order_status"),
        default=OrderStatus.PENDING,
        nullable=False,
    )
    requested_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    items: Mapped[list["ClientOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<ClientOrder {self.order_number}>"


class ClientOrderItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "client_order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("client_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("client_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    order: Mapped["ClientOrder"] = relationship(back_populates="items")
    product: Mapped["ClientProduct"] = relationship(lazy="selectin")  # noqa: F821
