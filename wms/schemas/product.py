"""
Product and inventory schemas.

Variant trees travel as plain JSON: a list of
`{attribute, values: [{value, quantity?, minimumQuantity?, subVariants?}]}`;
the domain layer parses and validates them.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class CreateProductRequest(BaseModel):
    company_id: uuid.UUID
    name: str = Field(min_length=1, max_length=200)
    sku: str | None = None
    description: str | None = None
    category: str | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    weight: Decimal | None = None
    unit_value: Decimal | None = None
    minimum_quantity: int = Field(default=0, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    variants: list[dict[str, Any]] = []


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    sku: str | None = None
    description: str | None = None
    category: str | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    weight: Decimal | None = None
    unit_value: Decimal | None = None
    minimum_quantity: int | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    variants: list[dict[str, Any]] | None = None
    is_active: bool | None = None


class ProductOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    sku: str | None = None
    description: str | None = None
    category: str | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    weight: Decimal | None = None
    unit_value: Decimal | None = None
    minimum_quantity: int
    quantity: int
    variants: list[dict[str, Any]] = []
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductDetailOut(BaseModel):
    product: ProductOut
    total_quantity: int
    breakdown: dict[str, int] = {}

    model_config = {"from_attributes": True}


# ── Inventory ────────────────────────────────────────────────────────
class InventoryItemOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    location_zone: str | None = None
    location_row: str | None = None
    location_bin: str | None = None
    location_code: str | None = None
    variant_attribute: str | None = None
    variant_value: str | None = None
    movement_type: str | None = None
    last_movement_date: datetime | None = None

    model_config = {"from_attributes": True}


class AdjustInventoryRequest(BaseModel):
    delta: int


class MoveInventoryRequest(BaseModel):
    location_zone: str | None = None
    location_row: str | None = None
    location_bin: str | None = None
    location_code: str | None = None


class LowStockOut(BaseModel):
    product_id: str
    product_name: str
    sku: str | None = None
    variant_path: str | None = None
    current_stock: int
    minimum_quantity: int
    is_critical: bool

    model_config = {"from_attributes": True}
