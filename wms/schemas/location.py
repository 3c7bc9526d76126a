"""
Warehouse layout schemas: zones, rows, bins, lookups and allocations.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from wms.domain.barcodes import BarcodeKind
from wms.models.allocation import AllocationType
from wms.models.location import ZoneType


# ── Zones ────────────────────────────────────────────────────────────
class CreateZoneRequest(BaseModel):
    code: str = Field(min_length=1, max_length=8)
    name: str | None = None
    description: str | None = None
    zone_type: ZoneType = ZoneType.FLOOR
    barcode: str | None = None
    total_capacity: Decimal | None = None


class UpdateZoneRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    zone_type: ZoneType | None = None
    barcode: str | None = None
    total_capacity: Decimal | None = None
    used_capacity: Decimal | None = None
    is_active: bool | None = None


class ZoneOut(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    description: str | None = None
    zone_type: ZoneType
    barcode: str | None = None
    total_capacity: Decimal
    used_capacity: Decimal
    is_active: bool

    model_config = {"from_attributes": True}


# ── Rows ─────────────────────────────────────────────────────────────
class CreateRowRequest(BaseModel):
    row_number: str = Field(min_length=1, max_length=8)
    row_code: str | None = None
    barcode: str | None = None
    max_bins: int | None = Field(default=None, ge=0)
    capacity: Decimal | None = None


class UpdateRowRequest(BaseModel):
    row_number: str | None = None
    row_code: str | None = None
    barcode: str | None = None
    max_bins: int | None = Field(default=None, ge=0)
    capacity: Decimal | None = None
    used_capacity: Decimal | None = None
    is_active: bool | None = None


class RowOut(BaseModel):
    id: uuid.UUID
    zone_id: uuid.UUID
    row_number: str
    row_code: str
    barcode: str | None = None
    max_bins: int
    capacity: Decimal
    used_capacity: Decimal
    is_active: bool

    model_config = {"from_attributes": True}


# ── Bins ─────────────────────────────────────────────────────────────
class CreateBinRequest(BaseModel):
    bin_number: str = Field(min_length=1, max_length=8)
    location_code: str | None = None
    barcode: str | None = None
    capacity_cubic_feet: Decimal | None = None
    is_occupied: bool = False


class UpdateBinRequest(BaseModel):
    bin_number: str | None = None
    location_code: str | None = None
    barcode: str | None = None
    capacity_cubic_feet: Decimal | None = None
    is_occupied: bool | None = None
    is_active: bool | None = None


class BinOut(BaseModel):
    id: uuid.UUID
    row_id: uuid.UUID
    bin_number: str
    location_code: str
    barcode: str | None = None
    capacity_cubic_feet: Decimal
    is_occupied: bool
    is_active: bool

    model_config = {"from_attributes": True}


# ── Lookups ──────────────────────────────────────────────────────────
class SearchResultOut(BaseModel):
    zones: list[ZoneOut] = []
    rows: list[RowOut] = []
    bins: list[BinOut] = []

    model_config = {"from_attributes": True}


class BarcodeLookupOut(BaseModel):
    kind: BarcodeKind
    barcode: str
    zone: ZoneOut | None = None
    row: RowOut | None = None
    bin: BinOut | None = None

    model_config = {"from_attributes": True}


class LocationStatsOut(BaseModel):
    total_zones: int
    total_rows: int
    total_bins: int
    occupied_bins: int
    available_bins: int
    occupancy_rate: float
    total_capacity: float
    used_capacity: float

    model_config = {"from_attributes": True}


class CubicFeetOut(BaseModel):
    cubic_feet: Decimal


class SeedLayoutOut(BaseModel):
    zones_created: int
    rows_created: int


# ── Allocations ──────────────────────────────────────────────────────
class CreateAllocationRequest(BaseModel):
    company_id: uuid.UUID
    zone_id: uuid.UUID
    allocation_type: AllocationType
    start_row_code: str | None = None
    end_row_code: str | None = None
    specific_bin_ids: list[uuid.UUID] = []
    allocated_cubic_feet: Decimal | None = None
    allocation_date: date | None = None


class AllocationOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    zone_id: uuid.UUID
    allocation_type: AllocationType
    start_row_code: str | None = None
    end_row_code: str | None = None
    specific_bin_ids: list[str] = []
    allocated_cubic_feet: Decimal
    allocation_date: date
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AllocationResultOut(BaseModel):
    allocation: AllocationOut
    unchecked: bool = False
    warning: str | None = None

    model_config = {"from_attributes": True}
