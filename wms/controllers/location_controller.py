"""
Location controller: warehouse layout (zones → rows → bins), barcode
lookup and client space allocations.
"""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.domain.locations import calculate_cubic_feet
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.common import CountResponse, MessageResponse
from wms.schemas.location import (
    AllocationOut,
    AllocationResultOut,
    BarcodeLookupOut,
    BinOut,
    CreateAllocationRequest,
    CreateBinRequest,
    CreateRowRequest,
    CreateZoneRequest,
    CubicFeetOut,
    LocationStatsOut,
    RowOut,
    SearchResultOut,
    SeedLayoutOut,
    UpdateBinRequest,
    UpdateRowRequest,
    UpdateZoneRequest,
    ZoneOut,
)
from wms.services import allocation_service, location_service

router = APIRouter(prefix="/api/locations", tags=["Locations"])


# ── Browse ───────────────────────────────────────────────────────────
@router.get("/zones", response_model=list[ZoneOut])
async def list_zones(
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
    include_inactive: bool = Query(False),
):
    return [ZoneOut.model_validate(z) for z in await location_service.list_zones(db, include_inactive)]


@router.get("/zones/{zone_id}/rows", response_model=list[RowOut])
async def list_rows(
    zone_id: uuid.UUID,
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
    include_inactive: bool = Query(False),
):
    return [RowOut.model_validate(r) for r in await location_service.list_rows(zone_id, db, include_inactive)]


@router.get("/rows/{row_id}/bins", response_model=list[BinOut])
async def list_bins(
    row_id: uuid.UUID,
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
    include_inactive: bool = Query(False),
):
    return [BinOut.model_validate(b) for b in await location_service.list_bins(row_id, db, include_inactive)]


@router.get("/search", response_model=SearchResultOut)
async def search(
    q: str = Query(..., min_length=1),
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive match on codes, names and barcodes at every level."""
    return SearchResultOut.model_validate(await location_service.search_locations(q, db))


@router.get("/barcode/{barcode}", response_model=BarcodeLookupOut)
async def lookup_barcode(
    barcode: str,
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
):
    return BarcodeLookupOut.model_validate(await location_service.lookup_barcode(barcode, db))


@router.get("/stats", response_model=LocationStatsOut)
async def stats(
    user: Profile = Depends(require_permission("location.view")),
    db: AsyncSession = Depends(get_db),
):
    return LocationStatsOut.model_validate(await location_service.get_stats(db))


@router.get("/cubic-feet", response_model=CubicFeetOut)
async def cubic_feet(
    length: Decimal = Query(...),
    width: Decimal = Query(...),
    height: Decimal = Query(...),
    user: Profile = Depends(require_permission("location.view")),
):
    """Volume in cubic feet from dimensions in inches."""
    return CubicFeetOut(cubic_feet=calculate_cubic_feet(length, width, height))


# ── Zones ────────────────────────────────────────────────────────────
@router.post("/zones", response_model=ZoneOut, status_code=201)
async def create_zone(
    body: CreateZoneRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    return ZoneOut.model_validate(await location_service.create_zone(body.model_dump(exclude_none=True), db))


@router.patch("/zones/{zone_id}", response_model=ZoneOut)
async def update_zone(
    zone_id: uuid.UUID,
    body: UpdateZoneRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    zone = await location_service.update_zone(zone_id, body.model_dump(exclude_none=True), db)
    return ZoneOut.model_validate(zone)


@router.delete("/zones/{zone_id}", response_model=MessageResponse)
async def delete_zone(
    zone_id: uuid.UUID,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    await location_service.delete_zone(zone_id, db)
    return MessageResponse(detail="Zone deleted")


# ── Rows ─────────────────────────────────────────────────────────────
@router.post("/zones/{zone_id}/rows", response_model=RowOut, status_code=201)
async def create_row(
    zone_id: uuid.UUID,
    body: CreateRowRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    row = await location_service.create_row(zone_id, body.model_dump(exclude_none=True), db)
    return RowOut.model_validate(row)


@router.patch("/rows/{row_id}", response_model=RowOut)
async def update_row(
    row_id: uuid.UUID,
    body: UpdateRowRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    row = await location_service.update_row(row_id, body.model_dump(exclude_none=True), db)
    return RowOut.model_validate(row)


@router.delete("/rows/{row_id}", response_model=MessageResponse)
async def delete_row(
    row_id: uuid.UUID,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    await location_service.delete_row(row_id, db)
    return MessageResponse(detail="Row deleted")


# ── Bins ─────────────────────────────────────────────────────────────
@router.post("/rows/{row_id}/bins", response_model=BinOut, status_code=201)
async def create_bin(
    row_id: uuid.UUID,
    body: CreateBinRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    bin_ = await location_service.create_bin(row_id, body.model_dump(exclude_none=True), db)
    return BinOut.model_validate(bin_)


@router.patch("/bins/{bin_id}", response_model=BinOut)
async def update_bin(
    bin_id: uuid.UUID,
    body: UpdateBinRequest,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    bin_ = await location_service.update_bin(bin_id, body.model_dump(exclude_none=True), db)
    return BinOut.model_validate(bin_)


@router.delete("/bins/{bin_id}", response_model=MessageResponse)
async def delete_bin(
    bin_id: uuid.UUID,
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    await location_service.delete_bin(bin_id, db)
    return MessageResponse(detail="Bin deleted")


# ── Maintenance ──────────────────────────────────────────────────────
@router.post("/bins/regenerate-barcodes", response_model=CountResponse)
async def regenerate_barcodes(
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    return CountResponse(count=await location_service.regenerate_bin_barcodes(db))


@router.post("/seed", response_model=SeedLayoutOut)
async def seed_layout(
    user: Profile = Depends(require_permission("location.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Create the default floor zones and shelf rows that do not exist yet."""
    return await location_service.seed_default_layout(db)


# ── Allocations ──────────────────────────────────────────────────────
@router.get("/allocations", response_model=list[AllocationOut])
async def list_allocations(
    user: Profile = Depends(require_permission("allocation.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    zone_id: uuid.UUID | None = Query(None),
    include_inactive: bool = Query(False),
):
    scope = await resolve_data_scope(user, db)
    allocations = await allocation_service.list_allocations(db, scope, company_id, zone_id, include_inactive)
    return [AllocationOut.model_validate(a) for a in allocations]


@router.post("/allocations", response_model=AllocationResultOut, status_code=201)
async def create_allocation(
    body: CreateAllocationRequest,
    user: Profile = Depends(require_permission("allocation.manage")),
    db: AsyncSession = Depends(get_db),
):
    """
    Zone and row-range allocations are refused with 409 when they overlap
    an active allocation; bin-set allocations come back with a warning.
    """
    result = await allocation_service.create_allocation(
        body.company_id,
        body.zone_id,
        body.allocation_type,
        db,
        start_row_code=body.start_row_code,
        end_row_code=body.end_row_code,
        specific_bin_ids=body.specific_bin_ids,
        allocated_cubic_feet=body.allocated_cubic_feet,
        allocation_date=body.allocation_date,
    )
    return AllocationResultOut.model_validate(result)


@router.post("/allocations/{allocation_id}/release", response_model=AllocationOut)
async def release_allocation(
    allocation_id: uuid.UUID,
    user: Profile = Depends(require_permission("allocation.manage")),
    db: AsyncSession = Depends(get_db),
):
    return AllocationOut.model_validate(await allocation_service.release_allocation(allocation_id, db))
