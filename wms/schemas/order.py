"""
Client order, check-in / check-out request and shipment schemas.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from wms.models.order import OrderStatus
from wms.models.requests import RequestStatus
from wms.models.shipment import ShipmentStatus


# ── Orders ───────────────────────────────────────────────────────────
class OrderItemIn(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)
    unit_value: Decimal | None = None
    notes: str | None = None


class CreateOrderRequest(BaseModel):
    company_id: uuid.UUID
    order_type: str = "outbound"
    requested_date: date | None = None
    notes: str | None = None
    items: list[OrderItemIn] = Field(min_length=1)


class OrderItemOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_value: Decimal | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    order_number: str
    order_type: str
    status: OrderStatus
    requested_date: date | None = None
    completed_date: date | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    items: list[OrderItemOut] = []

    model_config = {"from_attributes": True}


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# ── Check-in ─────────────────────────────────────────────────────────
class CheckInProductIn(BaseModel):
    product_id: uuid.UUID | None = None
    name: str = Field(min_length=1, max_length=200)
    sku: str | None = None
    description: str | None = None
    quantity: int = Field(default=0, ge=0)
    variants: list[dict[str, Any]] = []

    model_config = {"extra": "allow"}


class CreateCheckInRequest(BaseModel):
    company_id: uuid.UUID
    products: list[CheckInProductIn] = Field(min_length=1)
    requested_date: date | None = None
    notes: str | None = None


class AmendCheckInRequest(BaseModel):
    products: list[CheckInProductIn] = Field(min_length=1)
    amendment_notes: str | None = None


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)


class CheckInOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    request_number: str
    requested_by: uuid.UUID | None = None
    status: RequestStatus
    requested_products: list[dict[str, Any]] = []
    amended_products: list[dict[str, Any]] | None = None
    was_amended: bool
    amendment_notes: str | None = None
    rejection_reason: str | None = None
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    requested_date: date | None = None
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Check-out ────────────────────────────────────────────────────────
class CheckOutItemIn(BaseModel):
    product_id: uuid.UUID
    variant_attribute: str | None = None
    variant_value: str | None = None
    quantity: int = Field(gt=0)


class CreateCheckOutRequest(BaseModel):
    company_id: uuid.UUID
    items: list[CheckOutItemIn] = Field(min_length=1)
    delivery_date: date | None = None
    shipping_address: str | None = None
    notes: str | None = None


class CheckOutOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    request_number: str
    requested_by: uuid.UUID | None = None
    status: RequestStatus
    requested_items: list[dict[str, Any]] = []
    delivery_date: date | None = None
    shipping_address: str | None = None
    rejection_reason: str | None = None
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Shipments ────────────────────────────────────────────────────────
class ShipmentItemIn(BaseModel):
    product_id: uuid.UUID | None = None
    product_name: str | None = None
    variant_attribute: str | None = None
    variant_value: str | None = None
    quantity: int = Field(gt=0)


class CreateShipmentRequest(BaseModel):
    company_id: uuid.UUID
    items: list[ShipmentItemIn] = Field(min_length=1)
    carrier: str | None = None
    tracking_number: str | None = None
    destination: str | None = None
    shipment_date: date | None = None
    notes: str | None = None


class ShipmentStatusUpdate(BaseModel):
    status: ShipmentStatus
    tracking_number: str | None = None
    carrier: str | None = None


class ShipmentItemOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID | None = None
    product_name: str
    variant_attribute: str | None = None
    variant_value: str | None = None
    quantity: int

    model_config = {"from_attributes": True}


class ShipmentOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    shipment_number: str
    status: ShipmentStatus
    carrier: str | None = None
    tracking_number: str | None = None
    destination: str | None = None
    shipment_date: date | None = None
    notes: str | None = None
    created_at: datetime
    items: list[ShipmentItemOut] = []

    model_config = {"from_attributes": True}
