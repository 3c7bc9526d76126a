"""
Stock reconciliation arithmetic.

For each product of a company, and for each top-level variant value of
that product:

    starting = approved check-ins before the period − approved check-outs before it
    expected = starting + check-ins in the period − check-outs in the period

Staff then enter the counted (actual) quantity; the variance is
`actual − expected`.  Requests are placed in time by `reviewed_at`.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable

from wms.domain.variants import calculate_nested_variant_quantity, parse_variants, sum_variant_value


@dataclass
class ReconciliationRow:
    product_id: str
    product_name: str
    starting_quantity: int
    check_ins: int
    check_outs: int
    expected_quantity: int
    variant_attribute: str | None = None
    variant_value: str | None = None
    variant_label: str | None = None
    actual_quantity: int | None = None
    variance: int | None = None

    @property
    def is_variant(self) -> bool:
        return self.variant_value is not None

    @property
    def has_movement(self) -> bool:
        return any((self.starting_quantity, self.check_ins, self.check_outs, self.expected_quantity))

    def record_actual(self, actual: int | None) -> None:
        self.actual_quantity = actual
        self.variance = None if actual is None else actual - self.expected_quantity

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _in_window(moment: datetime | None, start: datetime | None, end: datetime) -> bool:
    """Half-open window `[start, end)`; an absent start means "since forever"."""
    if moment is None:
        return False
    if start is not None and moment < start:
        return False
    return moment < end


def check_in_quantity(
    check_ins: Iterable,
    product_name: str,
    variant_value: str | None,
    start: datetime | None,
    end: datetime,
) -> int:
    total = 0
    for request in check_ins:
        if not _in_window(request.reviewed_at, start, end):
            continue
        for item in request.effective_products or []:
            if not isinstance(item, dict) or item.get("name") != product_name:
                continue
            variants = parse_variants(item.get("variants"))
            if variant_value is not None:
                total += sum_variant_value(variants, variant_value)
            else:
                total += calculate_nested_variant_quantity(variants, int(item.get("quantity") or 0))
    return total


def check_out_quantity(
    check_outs: Iterable,
    product_name: str,
    variant_value: str | None,
    start: datetime | None,
    end: datetime,
) -> int:
    total = 0
    for request in check_outs:
        if not _in_window(request.reviewed_at, start, end):
            continue
        for item in request.requested_items or []:
            if not isinstance(item, dict) or item.get("product_name") != product_name:
                continue
            item_value = item.get("variant_value") or None
            if item_value == variant_value:
                total += int(item.get("quantity") or 0)
    return total


def _row(product, check_ins, check_outs, start, end, attribute=None, value=None) -> ReconciliationRow:
    starting = check_in_quantity(check_ins, product.name, value, None, start) - check_out_quantity(
        check_outs, product.name, value, None, start
    )
    ins = check_in_quantity(check_ins, product.name, value, start, end)
    outs = check_out_quantity(check_outs, product.name, value, start, end)
    label = None
    if value is not None:
        label = f"{attribute}: {value}" if attribute else value
    return ReconciliationRow(
        product_id=str(product.id),
        product_name=product.name,
        starting_quantity=starting,
        check_ins=ins,
        check_outs=outs,
        expected_quantity=starting + ins - outs,
        variant_attribute=attribute,
        variant_value=value,
        variant_label=label,
    )


def build_reconciliation_rows(
    products: Iterable,
    check_ins: Iterable,
    check_outs: Iterable,
    start: datetime,
    end: datetime,
) -> list[ReconciliationRow]:
    """
    Rows for one company over `[start, end)`.  Base rows without any
    movement are dropped; variant rows are always kept so they can be
    counted.
    """
    check_ins = list(check_ins)
    check_outs = list(check_outs)
    rows: list[ReconciliationRow] = []

    for product in products:
        base = _row(product, check_ins, check_outs, start, end)
        if base.has_movement:
            rows.append(base)
        for variant in parse_variants(product.variants):
            for val in variant.values:
                rows.append(_row(product, check_ins, check_outs, start, end, variant.attribute, val.value))

    return rows


def apply_actual_counts(rows: list[ReconciliationRow], actuals: dict[int, int | None]) -> int:
    """Record counted quantities by row index; return how many rows now show a variance."""
    for index, actual in actuals.items():
        if 0 <= index < len(rows):
            rows[index].record_actual(actual)
    return sum(1 for r in rows if r.variance not in (None, 0))
