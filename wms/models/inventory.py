from __future__ import annotations

"""
Stock of one product at one location.

A product may be split over several rows (different bins, or one row
per variant value).  `movement_type` / `last_movement_date` record the
last thing that touched the row.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import Base, CompanyScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from wms.models.product import ClientProduct


class InventoryItem(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "inventory_items"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("client_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    location_zone: Mapped[str | None] = mapped_column(String(8), nullable=True)
    location_row: Mapped[str | None] = mapped_column(String(8), nullable=True)
    location_bin: Mapped[str | None] = mapped_column(String(8), nullable=True)
    location_code: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)

    variant_attribute: Mapped[str | None] = mapped_column(String(128), nullable=True)
    variant_value: Mapped[str | None] = mapped_column(String(128), nullable=True)

    movement_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    last_movement_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    product: Mapped["ClientProduct"] = relationship(lazy="selectin")  # noqa: F821

    def __repr__(self) -> str:
        return f"<InventoryItem product={self.product_id} qty={self.quantity}>"
