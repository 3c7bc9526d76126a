"""
Nested product variants.

A product's variants form a small tree:

    Size ── S ── Color ── Red   (qty 3)
         │            └── Blue  (qty 2)
         └─ M                   (qty 5)

Each `VariantValue` is either a `Leaf` carrying a quantity or a `Node`
carrying further variants.  The tree is at most `MAX_VARIANT_DEPTH`
variant levels deep; building anything deeper raises
`VariantDepthError`.

Stored JSON uses snake_case keys (`sub_variants`, `minimum_quantity`);
`parse_variants` also accepts the older camelCase keys and bare string
values.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

MAX_VARIANT_DEPTH = 3


class VariantDepthError(ValueError):
    """Raised when a variant tree is nested deeper than allowed."""


@dataclass(frozen=True)
class Leaf:
    quantity: int = 0


@dataclass
class Node:
    children: list["Variant"]


@dataclass
class VariantValue:
    value: str
    content: Leaf | Node = field(default_factory=Leaf)
    minimum_quantity: int | None = None

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.content, Leaf)


@dataclass
class Variant:
    attribute: str
    values: list[VariantValue] = field(default_factory=list)
    sku: str | None = None

    def __post_init__(self) -> None:
        if self.depth > MAX_VARIANT_DEPTH:
            raise VariantDepthError(
                f"Variant '{self.attribute}' is nested {self.depth} levels deep "
                f"(maximum {MAX_VARIANT_DEPTH})"
            )

    @property
    def depth(self) -> int:
        deepest = 0
        for val in self.values:
            if isinstance(val.content, Node):
                for child in val.content.children:
                    deepest = max(deepest, child.depth)
        return 1 + deepest


# ── Parsing / serialisation ──────────────────────────────────────────
def _to_int(raw: Any) -> int:
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _parse_value(raw: Any) -> VariantValue | None:
    if isinstance(raw, str):
        return VariantValue(value=raw) if raw else None
    if not isinstance(raw, dict) or not raw.get("value"):
        return None

    minimum = raw.get("minimum_quantity", raw.get("minimumQuantity"))
    children = parse_variants(raw.get("sub_variants", raw.get("subVariants")))
    content: Leaf | Node = Node(children) if children else Leaf(_to_int(raw.get("quantity")))
    return VariantValue(
        value=str(raw["value"]),
        content=content,
        minimum_quantity=_to_int(minimum) if minimum is not None else None,
    )


def parse_variants(raw: Any) -> list[Variant]:
    """Build a variant tree from stored JSON, skipping malformed entries."""
    if not isinstance(raw, list):
        return []

    variants: list[Variant] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("attribute"):
            continue
        values = [v for v in (_parse_value(item) for item in entry.get("values") or []) if v is not None]
        variants.append(Variant(attribute=str(entry["attribute"]), values=values, sku=entry.get("sku")))
    return variants


def variants_to_json(variants: Iterable[Variant]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for variant in variants:
        values = []
        for val in variant.values:
            item: dict[str, Any] = {"value": val.value}
            if isinstance(val.content, Node):
                item["quantity"] = calculate_nested_variant_quantity(val.content.children)
                item["sub_variants"] = variants_to_json(val.content.children)
            else:
                item["quantity"] = val.content.quantity
                item["sub_variants"] = []
            if val.minimum_quantity is not None:
                item["minimum_quantity"] = val.minimum_quantity
            values.append(item)
        entry: dict[str, Any] = {"attribute": variant.attribute, "values": values}
        if variant.sku:
            entry["sku"] = variant.sku
        out.append(entry)
    return out


# ── Quantities ───────────────────────────────────────────────────────
def _values_total(values: Iterable[VariantValue]) -> int:
    total = 0
    for val in values:
        if isinstance(val.content, Node):
            for child in val.content.children:
                total += _values_total(child.values)
        else:
            total += val.content.quantity
    return total


def calculate_nested_variant_quantity(variants: list[Variant], flat_quantity: int = 0) -> int:
    """
    Total unit count of a product.

    A value with sub-variants contributes the sum of its leaves; its own
    quantity is not counted.  With no variants the flat quantity applies.
    """
    if not variants:
        return flat_quantity
    return sum(_values_total(variant.values) for variant in variants)


def get_variant_breakdown(variants: list[Variant]) -> dict[str, int]:
    """
    Flatten the tree into `label → quantity` for every leaf above zero.

    Top-level labels read `"Size: M"`; nested ones extend the path, e.g.
    `"Size: S → Color / Red"`.
    """
    breakdown: dict[str, int] = {}

    def walk(values: list[VariantValue], parent: str) -> None:
        for val in values:
            path = f"{parent} / {val.value}"
            if isinstance(val.content, Node):
                for child in val.content.children:
                    walk(child.values, f"{path} - {child.attribute}")
            elif val.content.quantity > 0:
                breakdown[path] = val.content.quantity

    for variant in variants:
        for val in variant.values:
            path = f"{variant.attribute}: {val.value}"
            if isinstance(val.content, Node):
                for child in val.content.children:
                    walk(child.values, f"{path} → {child.attribute}")
            elif val.content.quantity > 0:
                breakdown[path] = val.content.quantity

    return breakdown


def sum_variant_value(variants: list[Variant], value: str) -> int:
    """Sum the quantities of every leaf, at any depth, named `value`."""
    total = 0

    def walk(values: list[VariantValue]) -> None:
        nonlocal total
        for val in values:
            if isinstance(val.content, Node):
                for child in val.content.children:
                    walk(child.values)
            elif val.value == value:
                total += val.content.quantity

    for variant in variants:
        walk(variant.values)
    return total


def has_nested_variants(variants: list[Variant]) -> bool:
    return any(not val.is_leaf for variant in variants for val in variant.values)


def iter_leaves(variants: list[Variant], parent: str | None = None) -> Iterator[tuple[str, str, VariantValue]]:
    """Yield `(path, attribute, value)` for every leaf; paths read `"Size: S → Color: Red"`."""
    for variant in variants:
        for val in variant.values:
            label = f"{variant.attribute}: {val.value}"
            path = f"{parent} → {label}" if parent else label
            if isinstance(val.content, Node):
                yield from iter_leaves(val.content.children, path)
            else:
                yield path, variant.attribute, val


def clone_with_zero_quantity(variants: list[Variant]) -> list[Variant]:
    """Copy the tree's shape with every leaf reset to zero."""
    cloned: list[Variant] = []
    for variant in variants:
        values = []
        for val in variant.values:
            if isinstance(val.content, Node):
                content: Leaf | Node = Node(clone_with_zero_quantity(val.content.children))
            else:
                content = Leaf(0)
            values.append(VariantValue(val.value, content, val.minimum_quantity))
        cloned.append(Variant(variant.attribute, values, variant.sku))
    return cloned


# ── Merging ──────────────────────────────────────────────────────────
def _key(text: str) -> str:
    return text.strip().lower()


def _merge_value(existing: VariantValue, incoming: VariantValue) -> None:
    if isinstance(incoming.content, Node):
        current = existing.content.children if isinstance(existing.content, Node) else []
        existing.content = Node(merge_variants(current, incoming.content.children))
    elif isinstance(existing.content, Leaf):
        existing.content = Leaf(existing.content.quantity + incoming.content.quantity)
    # A leaf arriving for a value that already has sub-variants adds nothing countable.


def merge_variants(existing: list[Variant], incoming: list[Variant]) -> list[Variant]:
    """
    Merge `incoming` into a copy of `existing`.

    Attributes and values match case- and whitespace-insensitively.
    Matching leaf quantities add up and matching sub-variants merge
    recursively; anything unmatched is appended.  Neither input is
    modified.
    """
    merged = copy.deepcopy(existing)
    for new_variant in incoming:
        target = next((v for v in merged if _key(v.attribute) == _key(new_variant.attribute)), None)
        if target is None:
            merged.append(copy.deepcopy(new_variant))
            continue
        for new_value in new_variant.values:
            match = next((v for v in target.values if _key(v.value) == _key(new_value.value)), None)
            if match is None:
                target.values.append(copy.deepcopy(new_value))
            else:
                _merge_value(match, new_value)
    return merged
