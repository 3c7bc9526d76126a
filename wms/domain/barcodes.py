"""
Location barcode formats.

    LOC-ZONE-A          floor zone (whole zone)
    LOC-ZONE-Z-ROW-05   shelf row
    LOC-A01-03          bin (row A01, bin 03)
"""

import enum
import re

FLOOR_ZONE_PATTERN = re.compile(r"^LOC-ZONE-[A-Z]$")
SHELF_ROW_PATTERN = re.compile(r"^LOC-ZONE-Z-ROW-\d{2}$")
BIN_PATTERN = re.compile(r"^LOC-[A-Z]\d{2}-\d{2}$")


class BarcodeKind(str, enum.Enum):
    FLOOR_ZONE = "floor_zone"
    SHELF_ROW = "shelf_row"
    BIN = "bin"


class InvalidBarcodeError(ValueError):
    """The scanned text matches none of the location barcode formats."""


def classify_barcode(barcode: str) -> BarcodeKind | None:
    text = (barcode or "").strip().upper()
    if SHELF_ROW_PATTERN.match(text):
        return BarcodeKind.SHELF_ROW
    if FLOOR_ZONE_PATTERN.match(text):
        return BarcodeKind.FLOOR_ZONE
    if BIN_PATTERN.match(text):
        return BarcodeKind.BIN
    return None


def require_barcode(barcode: str) -> BarcodeKind:
    kind = classify_barcode(barcode)
    if kind is None:
        raise InvalidBarcodeError(f"Invalid location barcode: {barcode!r}")
    return kind


def is_valid_bin_barcode(barcode: str | None) -> bool:
    return bool(barcode) and BIN_PATTERN.match(barcode) is not None


def zone_barcode(zone_code: str) -> str:
    return f"LOC-ZONE-{zone_code.upper()}"


def shelf_row_barcode(row_number: int | str) -> str:
    return f"LOC-ZONE-Z-ROW-{int(row_number):02d}"


def bin_barcode(location_code: str) -> str:
    return f"LOC-{location_code}"
