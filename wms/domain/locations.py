"""
Location statistics, free-text matching, the default warehouse
layout and cubic-footage arithmetic.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from wms.domain.barcodes import shelf_row_barcode, zone_barcode

CUBIC_INCHES_PER_CUBIC_FOOT = Decimal(1728)

FLOOR_ZONE_CODES = ("A", "B", "C", "D", "E", "F", "G")
FLOOR_ZONE_CAPACITY = Decimal(500)
SHELF_ZONE_CODE = "Z"
SHELF_ROW_COUNT = 5
SHELF_ROW_CAPACITY = Decimal(100)


@dataclass
class LocationStats:
    total_zones: int = 0
    total_rows: int = 0
    total_bins: int = 0
    occupied_bins: int = 0
    available_bins: int = 0
    occupancy_rate: float = 0.0
    total_capacity: float = 0.0
    used_capacity: float = 0.0


def calculate_cubic_feet(length, width, height) -> Decimal:
    """Volume in cubic feet from inch dimensions, two decimals; 0 if any side is not positive."""
    try:
        dims = [Decimal(str(d)) for d in (length, width, height)]
    except (ArithmeticError, TypeError, ValueError):
        return Decimal("0.00")
    if any(d <= 0 for d in dims):
        return Decimal("0.00")
    volume = dims[0] * dims[1] * dims[2] / CUBIC_INCHES_PER_CUBIC_FOOT
    return volume.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def compute_location_stats(zones: Iterable, rows: Iterable, bins: Iterable) -> LocationStats:
    active_bins = [b for b in bins if b.is_active]
    occupied = [b for b in active_bins if b.is_occupied]
    total_bins = len(active_bins)

    return LocationStats(
        total_zones=sum(1 for z in zones if z.is_active),
        total_rows=sum(1 for r in rows if r.is_active),
        total_bins=total_bins,
        occupied_bins=len(occupied),
        available_bins=total_bins - len(occupied),
        occupancy_rate=round(len(occupied) / total_bins * 100, 2) if total_bins else 0.0,
        total_capacity=float(sum((Decimal(b.capacity_cubic_feet or 0) for b in active_bins), Decimal(0))),
        used_capacity=float(sum((Decimal(b.capacity_cubic_feet or 0) for b in occupied), Decimal(0))),
    )


def _contains(needle: str, *haystack: str | None) -> bool:
    return any(needle in (h or "").lower() for h in haystack)


def zone_matches(zone, query: str) -> bool:
    return _contains(query.lower(), zone.code, zone.name, zone.description)


def row_matches(row, query: str) -> bool:
    return _contains(query.lower(), row.row_code, row.row_number, row.barcode)


def bin_matches(bin_, query: str) -> bool:
    return _contains(query.lower(), bin_.location_code, bin_.barcode, bin_.bin_number)


# ── Default layout ───────────────────────────────────────────────────
def default_floor_zones() -> list[dict]:
    return [
        {
            "code": code,
            "name": f"Floor Zone {code}",
            "description": f"Floor storage zone {code}",
            "zone_type": "floor",
            "barcode": zone_barcode(code),
            "total_capacity": FLOOR_ZONE_CAPACITY,
        }
        for code in FLOOR_ZONE_CODES
    ]


def default_shelf_zone() -> dict:
    return {
        "code": SHELF_ZONE_CODE,
        "name": "Shelf Zone Z",
        "description": "Shelving rows for small-item storage",
        "zone_type": "shelf",
        "barcode": zone_barcode(SHELF_ZONE_CODE),
        "total_capacity": SHELF_ROW_CAPACITY * SHELF_ROW_COUNT,
    }


def default_shelf_rows() -> list[dict]:
    rows = []
    for n in range(1, SHELF_ROW_COUNT + 1):
        number = f"{n:02d}"
        rows.append(
            {
                "row_number": number,
                "row_code": f"ZONE-Z-ROW-{number}",
                "barcode": shelf_row_barcode(n),
                "capacity": SHELF_ROW_CAPACITY,
            }
        )
    return rows
