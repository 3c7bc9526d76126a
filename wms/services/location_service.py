"""
Location service: the warehouse zone → row → bin hierarchy.

Handles:
- Browsing (zones, a zone's rows, a row's bins)
- Free-text search and barcode lookup
- Occupancy statistics
- CRUD with cascade delete
- Bin barcode regeneration and seeding of the default layout

Locations are warehouse-wide; tenant scoping does not apply here.
Write access is gated at the controller by `location.manage`.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.barcodes import (
    BarcodeKind,
    InvalidBarcodeError,
    bin_barcode,
    is_valid_bin_barcode,
    require_barcode,
    shelf_row_barcode,
    zone_barcode,
)
from wms.domain.locations import (
    LocationStats,
    bin_matches,
    compute_location_stats,
    default_floor_zones,
    default_shelf_rows,
    default_shelf_zone,
    row_matches,
    zone_matches,
)
from wms.models.location import Bin, WarehouseRow, WarehouseZone, ZoneType

logger = logging.getLogger(__name__)

_ZONE_FIELDS = {"name", "description", "zone_type", "barcode", "total_capacity", "used_capacity", "is_active"}
_ROW_FIELDS = {"row_number", "row_code", "barcode", "max_bins", "capacity", "used_capacity", "is_active"}
_BIN_FIELDS = {"bin_number", "location_code", "barcode", "capacity_cubic_feet", "is_occupied", "is_active"}


def _apply(obj: Any, changes: dict[str, Any], allowed: set[str]) -> None:
    for key, value in changes.items():
        if key in allowed and value is not None:
            setattr(obj, key, value)


# ── Browse ───────────────────────────────────────────────────────────
async def list_zones(db: AsyncSession, include_inactive: bool = False) -> list[WarehouseZone]:
    stmt = select(WarehouseZone).order_by(WarehouseZone.code)
    if not include_inactive:
        stmt = stmt.where(WarehouseZone.is_active == True)  # noqa: E712
    return list((await db.execute(stmt)).scalars().all())


async def get_zone(zone_id: uuid.UUID, db: AsyncSession) -> WarehouseZone:
    zone = await db.get(WarehouseZone, zone_id)
    if zone is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Zone not found")
    return zone


async def list_rows(zone_id: uuid.UUID, db: AsyncSession, include_inactive: bool = False) -> list[WarehouseRow]:
    await get_zone(zone_id, db)
    stmt = select(WarehouseRow).where(WarehouseRow.zone_id == zone_id).order_by(WarehouseRow.row_number)
    if not include_inactive:
        stmt = stmt.where(WarehouseRow.is_active == True)  # noqa: E712
    return list((await db.execute(stmt)).scalars().all())


async def get_row(row_id: uuid.UUID, db: AsyncSession) -> WarehouseRow:
    row = await db.get(WarehouseRow, row_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Row not found")
    return row


async def list_bins(row_id: uuid.UUID, db: AsyncSession, include_inactive: bool = False) -> list[Bin]:
    await get_row(row_id, db)
    stmt = select(Bin).where(Bin.row_id == row_id).order_by(Bin.bin_number)
    if not include_inactive:
        stmt = stmt.where(Bin.is_active == True)  # noqa: E712
    return list((await db.execute(stmt)).scalars().all())


async def get_bin(bin_id: uuid.UUID, db: AsyncSession) -> Bin:
    bin_ = await db.get(Bin, bin_id)
    if bin_ is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bin not found")
    return bin_


async def _all(db: AsyncSession) -> tuple[list[WarehouseZone], list[WarehouseRow], list[Bin]]:
    zones = list((await db.execute(select(WarehouseZone).order_by(WarehouseZone.code))).scalars().all())
    rows = list((await db.execute(select(WarehouseRow).order_by(WarehouseRow.row_code))).scalars().all())
    bins = list((await db.execute(select(Bin).order_by(Bin.location_code))).scalars().all())
    return zones, rows, bins


# ── Search / lookup / stats ──────────────────────────────────────────
async def search_locations(query: str, db: AsyncSession) -> dict[str, list]:
    """Case-insensitive substring search over zones, rows and bins."""
    query = (query or "").strip()
    if not query:
        return {"zones": [], "rows": [], "bins": []}

    zones, rows, bins = await _all(db)
    return {
        "zones": [z for z in zones if zone_matches(z, query)],
        "rows": [r for r in rows if row_matches(r, query)],
        "bins": [b for b in bins if bin_matches(b, query)],
    }


async def lookup_barcode(barcode: str, db: AsyncSession) -> dict[str, Any]:
    """
    Resolve a scanned barcode.

    400 if the text is not a location barcode at all, 404 if it is
    well-formed but nothing carries it.
    """
    try:
        kind = require_barcode(barcode)
    except InvalidBarcodeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    text = barcode.strip().upper()
    result: dict[str, Any] = {"kind": kind, "barcode": text, "zone": None, "row": None, "bin": None}

    if kind == BarcodeKind.FLOOR_ZONE:
        stmt = select(WarehouseZone).where(WarehouseZone.barcode == text)
        result["zone"] = (await db.execute(stmt)).scalar_one_or_none()
        found = result["zone"]
    elif kind == BarcodeKind.SHELF_ROW:
        stmt = select(WarehouseRow).where(WarehouseRow.barcode == text)
        row = (await db.execute(stmt)).scalar_one_or_none()
        result["row"] = row
        result["zone"] = row.zone if row is not None else None
        found = row
    else:
        stmt = select(Bin).where(Bin.barcode == text).limit(1)
        bin_ = (await db.execute(stmt)).scalar_one_or_none()
        result["bin"] = bin_
        if bin_ is not None:
            result["row"] = bin_.row
            result["zone"] = bin_.row.zone
        found = bin_

    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No location found for this barcode")
    return result


async def get_stats(db: AsyncSession) -> LocationStats:
    zones, rows, bins = await _all(db)
    return compute_location_stats(zones, rows, bins)


# ── Zones ────────────────────────────────────────────────────────────
async def create_zone(data: dict[str, Any], db: AsyncSession) -> WarehouseZone:
    code = (data.get("code") or "").strip().upper()
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Zone code is required")
    existing = (await db.execute(select(WarehouseZone).where(WarehouseZone.code == code))).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Zone {code} already exists")

    zone = WarehouseZone(
        id=uuid.uuid4(),
        code=code,
        name=data.get("name") or f"Zone {code}",
        description=data.get("description"),
        zone_type=data.get("zone_type") or ZoneType.FLOOR,
        barcode=data.get("barcode") or zone_barcode(code),
        total_capacity=data.get("total_capacity") or Decimal(0),
        used_capacity=Decimal(0),
        is_active=True,
    )
    db.add(zone)
    await db.flush()
    return zone


async def update_zone(zone_id: uuid.UUID, changes: dict[str, Any], db: AsyncSession) -> WarehouseZone:
    zone = await get_zone(zone_id, db)
    _apply(zone, changes, _ZONE_FIELDS)
    await db.flush()
    return zone


async def delete_zone(zone_id: uuid.UUID, db: AsyncSession) -> None:
    """Delete a zone with all of its rows and bins."""
    zone = await get_zone(zone_id, db)
    await db.delete(zone)
    await db.flush()
    logger.info("Zone %s deleted", zone.code)


# ── Rows ─────────────────────────────────────────────────────────────
async def create_row(zone_id: uuid.UUID, data: dict[str, Any], db: AsyncSession) -> WarehouseRow:
    zone = await get_zone(zone_id, db)
    row_number = str(data.get("row_number") or "").strip()
    if not row_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Row number is required")

    row_code = (data.get("row_code") or f"{zone.code}{row_number}").strip().upper()
    barcode = data.get("barcode")
    if barcode is None and zone.zone_type == ZoneType.SHELF and row_number.isdigit():
        barcode = shelf_row_barcode(row_number)

    row = WarehouseRow(
        id=uuid.uuid4(),
        zone_id=zone.id,
        row_number=row_number,
        row_code=row_code,
        barcode=barcode,
        max_bins=data.get("max_bins") or 0,
        capacity=data.get("capacity") or Decimal(0),
        used_capacity=Decimal(0),
        is_active=True,
    )
    db.add(row)
    await db.flush()
    return row


async def update_row(row_id: uuid.UUID, changes: dict[str, Any], db: AsyncSession) -> WarehouseRow:
    row = await get_row(row_id, db)
    _apply(row, changes, _ROW_FIELDS)
    await db.flush()
    return row


async def delete_row(row_id: uuid.UUID, db: AsyncSession) -> None:
    """Delete a row with all of its bins."""
    row = await get_row(row_id, db)
    await db.delete(row)
    await db.flush()
    logger.info("Row %s deleted", row.row_code)


# ── Bins ─────────────────────────────────────────────────────────────
async def create_bin(row_id: uuid.UUID, data: dict[str, Any], db: AsyncSession) -> Bin:
    row = await get_row(row_id, db)
    bin_number = str(data.get("bin_number") or "").strip()
    if not bin_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bin number is required")

    location_code = (data.get("location_code") or f"{row.row_code}-{bin_number}").strip().upper()
    bin_ = Bin(
        id=uuid.uuid4(),
        row_id=row.id,
        bin_number=bin_number,
        location_code=location_code,
        barcode=data.get("barcode") or bin_barcode(location_code),
        capacity_cubic_feet=data.get("capacity_cubic_feet") or Decimal(0),
        is_occupied=bool(data.get("is_occupied", False)),
        is_active=True,
    )
    db.add(bin_)
    await db.flush()
    return bin_


async def update_bin(bin_id: uuid.UUID, changes: dict[str, Any], db: AsyncSession) -> Bin:
    bin_ = await get_bin(bin_id, db)
    _apply(bin_, changes, _BIN_FIELDS)
    await db.flush()
    return bin_


async def delete_bin(bin_id: uuid.UUID, db: AsyncSession) -> None:
    bin_ = await get_bin(bin_id, db)
    await db.delete(bin_)
    await db.flush()


# ── Maintenance ──────────────────────────────────────────────────────
async def regenerate_bin_barcodes(db: AsyncSession) -> int:
    """Give every bin with a missing or malformed barcode the one derived from its location code."""
    bins = list((await db.execute(select(Bin))).scalars().all())
    fixed = 0
    for bin_ in bins:
        if is_valid_bin_barcode(bin_.barcode):
            continue
        candidate = bin_barcode(bin_.location_code)
        if candidate != bin_.barcode:
            bin_.barcode = candidate
            fixed += 1
    if fixed:
        await db.flush()
    logger.info("Regenerated %d bin barcodes", fixed)
    return fixed


async def seed_default_layout(db: AsyncSession) -> dict[str, int]:
    """
    Create floor zones A–G and shelf zone Z with rows 01–05.

    Idempotent: zones and rows that already exist (by code) are left
    alone.
    """
    existing_zones = {z.code: z for z in (await db.execute(select(WarehouseZone))).scalars().all()}
    created_zones = 0
    created_rows = 0

    for layout in [*default_floor_zones(), default_shelf_zone()]:
        if layout["code"] in existing_zones:
            continue
        zone = WarehouseZone(
            id=uuid.uuid4(),
            code=layout["code"],
            name=layout["name"],
            description=layout["description"],
            zone_type=ZoneType(layout["zone_type"]),
            barcode=layout["barcode"],
            total_capacity=layout["total_capacity"],
            used_capacity=Decimal(0),
            is_active=True,
        )
        db.add(zone)
        existing_zones[zone.code] = zone
        created_zones += 1

    await db.flush()

    shelf = existing_zones[default_shelf_zone()["code"]]
    existing_rows = {
        r.row_code
        for r in (await db.execute(select(WarehouseRow).where(WarehouseRow.zone_id == shelf.id))).scalars().all()
    }
    for layout in default_shelf_rows():
        if layout["row_code"] in existing_rows:
            continue
        db.add(
            WarehouseRow(
                id=uuid.uuid4(),
                zone_id=shelf.id,
                row_number=layout["row_number"],
                row_code=layout["row_code"],
                barcode=layout["barcode"],
                max_bins=0,
                capacity=layout["capacity"],
                used_capacity=Decimal(0),
                is_active=True,
            )
        )
        created_rows += 1

    await db.flush()
    logger.info("Default layout seeded: %d zones, %d rows", created_zones, created_rows)
    return {"zones_created": created_zones, "rows_created": created_rows}
