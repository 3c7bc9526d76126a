from __future__ import annotations

"""
ClientAllocation: assignment of warehouse space to a tenant.

An allocation names a zone and one of three shapes: the whole zone, an
inclusive range of rows (by row code), or an explicit list of bins.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Numeric, String
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
    from wms.models.location import WarehouseZone


class AllocationType(str, enum.Enum):
    ZONE = "zone"
    ROW_RANGE = "row_range"
    SPECIFIC_BINS = "specific_bins"


class ClientAllocation(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "client_allocations"

    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("warehouse_zones.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    allocation_type: Mapped[AllocationType] = mapped_column(
        enum_type(AllocationType, "allocation_type"),
        nullable=False,
    )
    start_row_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    end_row_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    specific_bin_ids: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    allocated_cubic_feet: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    allocation_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company: Mapped["Company"] = relationship(lazy="selectin")  # noqa: F821
    zone: Mapped["WarehouseZone"] = relationship(lazy="selectin")  # noqa: F821

    def __repr__(self) -> str:
        return f"<ClientAllocation {self.allocation_type.value} zone={self.zone_id}>"
