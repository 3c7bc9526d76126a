from __future__ import annotations

"""
Warehouse location hierarchy: zone → row → bin.

Floor zones (A–G) are addressed as a whole and carry a
`LOC-ZONE-<letter>` barcode.  The shelf zone (Z) is split into rows
with `LOC-ZONE-Z-ROW-<nn>` barcodes.  Bins are the finest unit and
carry `LOC-<row code>-<bin>` barcodes.  Deleting a zone or a row
cascades to everything below it.
"""

import enum
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type


class ZoneType(str, enum.Enum):
    FLOOR = "floor"
    SHELF = "shelf"


class WarehouseZone(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "warehouse_zones"

    code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    zone_type: Mapped[ZoneType] = mapped_column(
        enum_type(ZoneType, "zone_type"),
        default=ZoneType.FLOOR,
        nullable=False,
    )
    barcode: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    total_capacity: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    used_capacity: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rows: Mapped[list["WarehouseRow"]] = relationship(
        back_populates="zone",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="WarehouseRow.row_number",
    )

    def __repr__(self) -> str:
        return f"<WarehouseZone {self.code}>"


class WarehouseRow(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "warehouse_rows"
    __table_args__ = (UniqueConstraint("zone_id", "row_number", name="uq_warehouse_rows_zone_number"),)

    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("warehouse_zones.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    row_number: Mapped[str] = mapped_column(String(8), nullable=False)
    row_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    barcode: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    max_bins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    capacity: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    used_capacity: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    zone: Mapped["WarehouseZone"] = relationship(back_populates="rows", lazy="selectin")
    bins: Mapped[list["Bin"]] = relationship(
        back_populates="row",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="Bin.bin_number",
    )

    def __repr__(self) -> str:
        return f"<WarehouseRow {self.row_code}>"


class Bin(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "bins"
    __table_args__ = (UniqueConstraint("row_id", "bin_number", name="uq_bins_row_number"),)

    row_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("warehouse_rows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bin_number: Mapped[str] = mapped_column(String(8), nullable=False)
    location_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    capacity_cubic_feet: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    is_occupied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    row: Mapped["WarehouseRow"] = relationship(back_populates="bins", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Bin {self.location_code}>"
