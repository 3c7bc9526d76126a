from __future__ import annotations

"""
Company model: a client tenant.

Profiles, products, inventory, orders, requests, messages and activity
logs all hang off a company.  A company may be assigned one storage
location: a whole floor zone or a single shelf row, per `location_type`.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type

if TYPE_CHECKING:
    from wms.models.location import WarehouseRow, WarehouseZone
    from wms.models.user import Profile


class LocationType(str, enum.Enum):
    FLOOR_ZONE = "floor_zone"
    SHELF_ROW = "shelf_row"


class Company(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    client_code: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(256), nullable=True)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    billing_address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    storage_plan: Mapped[str | None] = mapped_column(String(64), nullable=True)
    max_storage_cubic_feet: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    monthly_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    contract_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    location_type: Mapped[LocationType | None] = mapped_column(
        enum_type(LocationType, "company_location_type"),
        nullable=True,
    )
    assigned_floor_zone_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("warehouse_zones.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_row_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("warehouse_rows.id", ondelete="SET NULL"),
        nullable=True,
    )

    # ── Relationships ────────────────────────────────────────────────
    profiles: Mapped[list["Profile"]] = relationship(  # noqa: F821
        back_populates="company",
        lazy="raise",
    )
    assigned_floor_zone: Mapped["WarehouseZone | None"] = relationship(  # noqa: F821
        foreign_keys=[assigned_floor_zone_id],
        lazy="selectin",
    )
    assigned_row: Mapped["WarehouseRow | None"] = relationship(  # noqa: F821
        foreign_keys=[assigned_row_id],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
