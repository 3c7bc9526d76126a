"""Barcodes, cubic footage, layout defaults and allocation overlap."""
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from wms.domain.allocation import (
    AllocationRequest,
    check_allocation_conflict,
    is_unchecked,
    ranges_overlap,
    row_sort_key,
)
from wms.domain.barcodes import (
    BarcodeKind,
    InvalidBarcodeError,
    bin_barcode,
    classify_barcode,
    is_valid_bin_barcode,
    require_barcode,
    shelf_row_barcode,
    zone_barcode,
)
from wms.domain.locations import (
    calculate_cubic_feet,
    compute_location_stats,
    default_floor_zones,
    default_shelf_rows,
    default_shelf_zone,
    zone_matches,
)
from wms.models import Base, Company, Permission, Role, WarehouseRow, WarehouseZone
from wms.models.allocation import AllocationType

ZONE = uuid.uuid4()


def _existing(allocation_type, start=None, end=None, zone_id=ZONE, is_active=True):
    return SimpleNamespace(
        zone_id=zone_id,
        allocation_type=allocation_type,
        start_row_code=start,
        end_row_code=end,
        is_active=is_active,
    )


# ── Barcodes ─────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "barcode, kind",
    [
        ("LOC-ZONE-A", BarcodeKind.FLOOR_ZONE),
        ("loc-zone-z-row-05", BarcodeKind.SHELF_ROW),
        ("LOC-A01-03", BarcodeKind.BIN),
        ("LOC-ZONE-AB", None),
        ("A01-03", None),
        ("LOC-A-5", None),
        ("", None),
    ],
)
def test_classify_barcode(barcode, kind):
    assert classify_barcode(barcode) == kind


def test_require_barcode_rejects_unknown_format():
    with pytest.raises(InvalidBarcodeError):
        require_barcode("SKU-123")


def test_barcode_builders_round_trip_through_classifier():
    assert classify_barcode(zone_barcode("c")) == BarcodeKind.FLOOR_ZONE
    assert shelf_row_barcode(3) == "LOC-ZONE-Z-ROW-03"
    assert bin_barcode("B02-07") == "LOC-B02-07"
    assert is_valid_bin_barcode("LOC-B02-07")
    assert not is_valid_bin_barcode(None)


# ── Arithmetic & stats ───────────────────────────────────────────────
def test_cubic_feet_from_inches():
    assert calculate_cubic_feet(12, 12, 12) == Decimal("1.00")
    assert calculate_cubic_feet("24", "12", "6") == Decimal("1.00")
    assert calculate_cubic_feet(10, 10, 10) == Decimal("0.58")


def test_cubic_feet_is_zero_for_missing_or_negative_sides():
    assert calculate_cubic_feet(0, 10, 10) == Decimal("0.00")
    assert calculate_cubic_feet(-1, 10, 10) == Decimal("0.00")
    assert calculate_cubic_feet(None, 10, 10) == Decimal("0.00")


def test_location_stats_ignore_inactive_bins():
    zones = [SimpleNamespace(is_active=True), SimpleNamespace(is_active=False)]
    rows = [SimpleNamespace(is_active=True)]
    bins = [
        SimpleNamespace(is_active=True, is_occupied=True, capacity_cubic_feet=Decimal("10")),
        SimpleNamespace(is_active=True, is_occupied=False, capacity_cubic_feet=Decimal("30")),
        SimpleNamespace(is_active=False, is_occupied=True, capacity_cubic_feet=Decimal("99")),
    ]
    stats = compute_location_stats(zones, rows, bins)
    assert (stats.total_zones, stats.total_rows, stats.total_bins) == (1, 1, 2)
    assert stats.occupied_bins == 1
    assert stats.available_bins == 1
    assert stats.occupancy_rate == 50.0
    assert stats.total_capacity == 40.0
    assert stats.used_capacity == 10.0


def test_empty_warehouse_has_zero_occupancy():
    assert compute_location_stats([], [], []).occupancy_rate == 0.0


def test_default_layout():
    floors = default_floor_zones()
    assert [z["code"] for z in floors] == list("ABCDEFG")
    assert default_shelf_zone()["barcode"] == "LOC-ZONE-Z"
    rows = default_shelf_rows()
    assert [r["row_code"] for r in rows][-1] == "ZONE-Z-ROW-05"
    assert all(classify_barcode(r["barcode"]) == BarcodeKind.SHELF_ROW for r in rows)


def test_zone_search_is_case_insensitive():
    zone = SimpleNamespace(code="A", name="Floor Zone A", description=None)
    assert zone_matches(zone, "floor")
    assert not zone_matches(zone, "shelf")


# ── Allocations ──────────────────────────────────────────────────────
def test_row_codes_sort_numerically():
    assert sorted(["B10", "B2", "A7"], key=row_sort_key) == ["A7", "B2", "B10"]


def test_ranges_overlap_is_inclusive_and_order_free():
    assert ranges_overlap("A01", "A05", "A05", "A09")
    assert ranges_overlap("A05", "A01", "A03", "A03")
    assert not ranges_overlap("A01", "A04", "A05", "A09")


def test_zone_allocation_conflicts_with_anything_active_in_zone():
    request = AllocationRequest(ZONE, AllocationType.ZONE)
    assert check_allocation_conflict(request, [_existing(AllocationType.ROW_RANGE, "A01", "A02")])
    assert not check_allocation_conflict(request, [_existing(AllocationType.ZONE, is_active=False)])
    assert not check_allocation_conflict(request, [_existing(AllocationType.ZONE, zone_id=uuid.uuid4())])


def test_row_range_conflicts():
    request = AllocationRequest(ZONE, AllocationType.ROW_RANGE, "A03", "A06")
    assert check_allocation_conflict(request, [_existing(AllocationType.ZONE)])
    assert check_allocation_conflict(request, [_existing(AllocationType.ROW_RANGE, "A06", "A08")])
    assert not check_allocation_conflict(request, [_existing(AllocationType.ROW_RANGE, "A07", "A08")])
    assert not check_allocation_conflict(request, [_existing(AllocationType.SPECIFIC_BINS)])


def test_specific_bins_are_blocked_only_by_a_whole_zone():
    request = AllocationRequest(ZONE, AllocationType.SPECIFIC_BINS)
    assert check_allocation_conflict(request, [_existing(AllocationType.ZONE)])
    assert not check_allocation_conflict(request, [_existing(AllocationType.ZONE, is_active=False)])
    assert not check_allocation_conflict(request, [_existing(AllocationType.ROW_RANGE, "A01", "A09")])
    assert not check_allocation_conflict(request, [_existing(AllocationType.SPECIFIC_BINS)])
    assert is_unchecked(AllocationType.SPECIFIC_BINS)
    assert not is_unchecked(AllocationType.ZONE)


def test_row_ranges_in_zone_b():
    assert ranges_overlap("B01", "B07", "B05", "B10")
    assert not ranges_overlap("B01", "B04", "B05", "B10")


def test_large_collections_refuse_implicit_loads():
    Base.registry.configure()
    assert WarehouseZone.rows.property.lazy == "raise"
    assert WarehouseRow.bins.property.lazy == "raise"
    assert Company.profiles.property.lazy == "raise"
    assert Role.profiles.property.lazy == "raise"
    assert Permission.roles.property.lazy == "raise"
    silent = [
        f"{mapper.class_.__name__}.{rel.key}"
        for mapper in Base.registry.mappers
        for rel in mapper.relationships
        if rel.lazy == "noload"
    ]
    assert silent == []
