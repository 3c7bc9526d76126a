"""
Low-stock detection.

A product is low when its stock is at or below its `minimum_quantity`;
a variant leaf is low when its stock is at or below the leaf's own
minimum.  Stock comes from inventory rows first and falls back to the
quantities stored in the variant tree.  An item is critical when it is
empty or below half of its minimum.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from wms.domain.variants import calculate_nested_variant_quantity, iter_leaves, parse_variants


@dataclass
class LowStockItem:
    product_id: str
    product_name: str
    sku: str | None
    variant_path: str | None
    current_stock: int
    minimum_quantity: int

    @property
    def is_critical(self) -> bool:
        return self.current_stock == 0 or self.current_stock < self.minimum_quantity * 0.5


def _inventory_map(items: Iterable) -> dict[tuple, int]:
    totals: dict[tuple, int] = defaultdict(int)
    for item in items:
        if item.variant_attribute and item.variant_value:
            key = (str(item.product_id), item.variant_attribute, item.variant_value)
        else:
            key = (str(item.product_id),)
        totals[key] += item.quantity or 0
    return totals


def find_low_stock(products: Iterable, inventory_items: Iterable) -> list[LowStockItem]:
    stock = _inventory_map(inventory_items)
    found: list[LowStockItem] = []

    for product in products:
        pid = str(product.id)
        variants = parse_variants(product.variants)

        minimum = product.minimum_quantity or 0
        if minimum > 0:
            total = stock.get((pid,), 0) or calculate_nested_variant_quantity(variants, product.quantity or 0)
            if total <= minimum:
                found.append(LowStockItem(pid, product.name, product.sku, None, total, minimum))

        for path, attribute, val in iter_leaves(variants):
            leaf_minimum = val.minimum_quantity or 0
            if leaf_minimum <= 0:
                continue
            current = stock.get((pid, attribute, val.value), 0) or val.content.quantity
            if current <= leaf_minimum:
                found.append(LowStockItem(pid, product.name, product.sku, path, current, leaf_minimum))

    return found
