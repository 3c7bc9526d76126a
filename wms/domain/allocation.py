"""
Allocation overlap rules.

Only active allocations in the same zone are compared.  Explicit bin
lists are checked against whole-zone allocations only, never against
row ranges or other bin lists; callers surface that as a
warning rather than assuming the allocation is safe.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from wms.models.allocation import AllocationType

_ROW_CODE = re.compile(r"^(?P<prefix>.*?)(?P<number>\d+)$")


@dataclass(frozen=True)
class AllocationRequest:
    zone_id: object
    allocation_type: AllocationType
    start_row_code: str | None = None
    end_row_code: str | None = None


def row_sort_key(code: str) -> tuple[str, int, str]:
    """Order row codes by prefix, then numerically: B2 < B10."""
    text = code.strip().upper()
    match = _ROW_CODE.match(text)
    if match is None:
        return (text, -1, text)
    return (match.group("prefix"), int(match.group("number")), text)


def _bounds(start: str | None, end: str | None) -> tuple[tuple, tuple] | None:
    if not start or not end:
        return None
    low, high = row_sort_key(start), row_sort_key(end)
    return (low, high) if low <= high else (high, low)


def ranges_overlap(start: str, end: str, other_start: str, other_end: str) -> bool:
    """Closed-interval overlap of two row ranges."""
    a = _bounds(start, end)
    b = _bounds(other_start, other_end)
    if a is None or b is None:
        return False
    return not (a[1] < b[0] or a[0] > b[1])


def check_allocation_conflict(request: AllocationRequest, existing: Iterable) -> bool:
    """
    Return True when `request` would overlap an allocation in `existing`.

    `existing` items need `zone_id`, `allocation_type`, `start_row_code`,
    `end_row_code` and `is_active`; inactive ones and other zones are
    ignored.  A whole-zone allocation blocks every later request in its
    zone.  Bin lists are only ever blocked that way.
    """
    for other in existing:
        if not other.is_active or other.zone_id != request.zone_id:
            continue
        if AllocationType.ZONE in (request.allocation_type, other.allocation_type):
            return True
        if (
            request.allocation_type == AllocationType.ROW_RANGE
            and other.allocation_type == AllocationType.ROW_RANGE
            and ranges_overlap(
                request.start_row_code,
                request.end_row_code,
                other.start_row_code,
                other.end_row_code,
            )
        ):
            return True
    return False


def is_unchecked(allocation_type: AllocationType) -> bool:
    """Allocation shapes checked only against whole-zone allocations."""
    return allocation_type == AllocationType.SPECIFIC_BINS
