"""
Product payload validation.

`validate_product` collects every problem rather than stopping at the
first, and returns a cleaned copy of the variants (trimmed names,
empty entries dropped) for saving.
"""

from dataclasses import dataclass, field
from typing import Any

MAX_NAME_LENGTH = 200
MAX_ATTRIBUTE_LENGTH = 50
MAX_VALUE_LENGTH = 100


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    cleaned_variants: list[dict[str, Any]] = field(default_factory=list)


def _clean_values(attribute: str, raw_values: Any, errors: list[str]) -> list[dict[str, Any]]:
    cleaned: list[dict[str, Any]] = []
    for j, val in enumerate(raw_values if isinstance(raw_values, list) else [], start=1):
        if not val:
            continue
        if isinstance(val, str):
            text = val.strip()
        elif isinstance(val, dict):
            text = str(val.get("value") or "").strip()
        else:
            text = ""
        if not text:
            errors.append(f'Variant "{attribute}": Value {j} cannot be empty')
            continue
        if len(text) > MAX_VALUE_LENGTH:
            errors.append(f'Variant "{attribute}": Value {j} is too long')
            continue

        quantity = 0
        subs: list = []
        if isinstance(val, dict):
            quantity = val.get("quantity") or 0
            subs = val.get("sub_variants", val.get("subVariants")) or []
            if not isinstance(quantity, (int, float)) or quantity < 0:
                errors.append(f'Variant "{attribute}": Quantity for "{text}" must be 0 or greater')
                continue
        entry: dict[str, Any] = {"value": text, "quantity": int(quantity), "sub_variants": subs}
        if isinstance(val, dict) and val.get("minimum_quantity", val.get("minimumQuantity")) is not None:
            entry["minimum_quantity"] = val.get("minimum_quantity", val.get("minimumQuantity"))
        cleaned.append(entry)
    return cleaned


def validate_product(name: str | None, variants: Any = None, quantity: int | None = None) -> ValidationResult:
    errors: list[str] = []

    if not name or not name.strip():
        errors.append("Product name is required and cannot be empty")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Product name must be less than {MAX_NAME_LENGTH} characters")

    if quantity is not None and quantity < 0:
        errors.append("Quantity must be 0 or greater")

    cleaned: list[dict[str, Any]] = []
    for i, variant in enumerate(variants if isinstance(variants, list) else [], start=1):
        if not isinstance(variant, dict):
            continue
        attribute = str(variant.get("attribute") or "").strip()
        raw_values = variant.get("values") or []

        # Entirely blank rows are editor leftovers.
        if not attribute and not raw_values:
            continue
        if not attribute:
            errors.append(f"Variant {i}: Attribute name is required")
            continue
        if len(attribute) > MAX_ATTRIBUTE_LENGTH:
            errors.append(f"Variant {i}: Attribute name too long")
            continue

        values = _clean_values(attribute, raw_values, errors)
        if not values:
            errors.append(f'Variant "{attribute}": At least one value is required')
            continue

        entry: dict[str, Any] = {"attribute": attribute, "values": values}
        if variant.get("sku"):
            entry["sku"] = variant["sku"]
        cleaned.append(entry)

    return ValidationResult(valid=not errors, errors=errors, cleaned_variants=cleaned)
