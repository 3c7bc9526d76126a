"""
Delivery, financial and report schemas.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from wms.models.delivery import (
    CarrierType,
    DeliveryOrderStatus,
    DeliverySource,
    DeliveryType,
    DriverStatus,
    PickStatus,
)
from wms.models.financial import TransactionCategory, TransactionType


# ── Carriers ─────────────────────────────────────────────────────────
class CarrierIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    code: str = Field(min_length=1, max_length=32)
    carrier_type: CarrierType = CarrierType.DOMESTIC
    contact_name: str | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    base_rate: Decimal | None = None
    per_kg_rate: Decimal | None = None
    estimated_days_domestic: int | None = None
    estimated_days_international: int | None = None


class CarrierUpdate(BaseModel):
    name: str | None = None
    carrier_type: CarrierType | None = None
    contact_name: str | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    base_rate: Decimal | None = None
    per_kg_rate: Decimal | None = None
    estimated_days_domestic: int | None = None
    estimated_days_international: int | None = None
    is_active: bool | None = None


class CarrierOut(BaseModel):
    id: uuid.UUID
    name: str
    code: str
    carrier_type: CarrierType
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    base_rate: Decimal
    per_kg_rate: Decimal
    estimated_days_domestic: int
    estimated_days_international: int
    is_active: bool

    model_config = {"from_attributes": True}


# ── Drivers ──────────────────────────────────────────────────────────
class DriverIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=256)
    phone: str = Field(min_length=1, max_length=32)
    carrier_id: uuid.UUID | None = None
    email: EmailStr | None = None
    vehicle_type: str | None = None
    vehicle_plate: str | None = None


class DriverUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    carrier_id: uuid.UUID | None = None
    email: EmailStr | None = None
    vehicle_type: str | None = None
    vehicle_plate: str | None = None
    is_active: bool | None = None


class DriverStatusUpdate(BaseModel):
    status: DriverStatus


class DriverOut(BaseModel):
    id: uuid.UUID
    carrier_id: uuid.UUID | None = None
    full_name: str
    email: str | None = None
    phone: str
    vehicle_type: str | None = None
    vehicle_plate: str | None = None
    status: DriverStatus
    total_deliveries: int
    successful_deliveries: int
    average_rating: Decimal
    is_active: bool

    model_config = {"from_attributes": True}


# ── Delivery orders ──────────────────────────────────────────────────
class DeliveryItemIn(BaseModel):
    product_id: uuid.UUID | None = None
    product_name: str = Field(min_length=1, max_length=200)
    product_sku: str | None = None
    variant_attribute: str | None = None
    variant_value: str | None = None
    quantity_ordered: int = Field(gt=0)
    unit_price: Decimal | None = None
    unit_cost: Decimal | None = None
    line_total: Decimal | None = None
    bin_location: str | None = None


class CreateDeliveryOrderRequest(BaseModel):
    company_id: uuid.UUID
    source: DeliverySource = DeliverySource.MANUAL
    check_out_request_id: uuid.UUID | None = None
    recipient_name: str = Field(min_length=1, max_length=256)
    recipient_email: EmailStr | None = None
    recipient_phone: str | None = None
    shipping_address_line1: str = Field(min_length=1)
    shipping_address_line2: str | None = None
    shipping_city: str = Field(min_length=1)
    shipping_state: str | None = None
    shipping_postal_code: str | None = None
    shipping_country: str = Field(min_length=1)
    delivery_type: DeliveryType = DeliveryType.STANDARD
    scheduled_date: date | None = None
    scheduled_time_slot: str | None = None
    delivery_instructions: str | None = None
    subtotal: Decimal | None = None
    shipping_cost: Decimal | None = None
    tax_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    total_amount: Decimal | None = None
    currency: str = "USD"
    fulfillment_cost: Decimal | None = None
    carrier_cost: Decimal | None = None
    packaging_cost: Decimal | None = None
    notes: str | None = None
    internal_notes: str | None = None
    items: list[DeliveryItemIn] = []


class DeliveryStatusUpdate(BaseModel):
    status: DeliveryOrderStatus
    note: str | None = None


class AssignCarrierRequest(BaseModel):
    carrier_id: uuid.UUID


class AssignDriverRequest(BaseModel):
    driver_id: uuid.UUID


class TrackingUpdate(BaseModel):
    tracking_number: str = Field(min_length=1, max_length=128)
    tracking_url: str | None = None


class TrackingEventIn(BaseModel):
    event_type: str = Field(min_length=1, max_length=32)
    description: str = Field(min_length=1)
    event_status: str | None = None
    location_address: str | None = None
    details: dict[str, Any] = {}


class DeliveryItemOut(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID | None = None
    product_name: str
    product_sku: str | None = None
    variant_attribute: str | None = None
    variant_value: str | None = None
    quantity_ordered: int
    quantity_picked: int
    quantity_packed: int
    quantity_shipped: int
    unit_price: Decimal
    unit_cost: Decimal
    line_total: Decimal
    bin_location: str | None = None
    pick_status: PickStatus

    model_config = {"from_attributes": True}


class DeliveryOrderOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    order_number: str
    source: DeliverySource
    check_out_request_id: uuid.UUID | None = None
    recipient_name: str
    recipient_email: str | None = None
    recipient_phone: str | None = None
    shipping_address_line1: str
    shipping_address_line2: str | None = None
    shipping_city: str
    shipping_state: str | None = None
    shipping_postal_code: str | None = None
    shipping_country: str
    delivery_type: DeliveryType
    scheduled_date: date | None = None
    scheduled_time_slot: str | None = None
    delivery_instructions: str | None = None
    status: DeliveryOrderStatus
    status_history: list[dict[str, Any]] = []
    carrier_id: uuid.UUID | None = None
    driver_id: uuid.UUID | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    fulfillment_cost: Decimal
    carrier_cost: Decimal
    packaging_cost: Decimal
    total_cost: Decimal
    confirmed_at: datetime | None = None
    picked_at: datetime | None = None
    packed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    notes: str | None = None
    internal_notes: str | None = None
    created_at: datetime
    items: list[DeliveryItemOut] = []

    model_config = {"from_attributes": True}


class TrackingEventOut(BaseModel):
    id: uuid.UUID
    delivery_order_id: uuid.UUID
    event_type: str
    event_status: str | None = None
    event_description: str
    location_address: str | None = None
    performed_by: uuid.UUID | None = None
    performer_name: str | None = None
    performer_role: str | None = None
    details: dict[str, Any] = {}
    created_at: datetime

    model_config = {"from_attributes": True}


class DeliveryMetricsOut(BaseModel):
    orders_today: int
    orders_in_transit: int
    pending_fulfillment: int
    delivery_success_rate: int
    total_revenue: float
    total_costs: float
    gross_profit: float
    profit_margin: float

    model_config = {"from_attributes": True}


# ── Financials ───────────────────────────────────────────────────────
class CreateTransactionRequest(BaseModel):
    transaction_type: TransactionType
    category: TransactionCategory
    amount: Decimal = Field(ge=0)
    currency: str = "USD"
    company_id: uuid.UUID | None = None
    delivery_order_id: uuid.UUID | None = None
    description: str | None = None
    reference_number: str | None = None
    transaction_date: date | None = None


class TransactionOut(BaseModel):
    id: uuid.UUID
    transaction_type: TransactionType
    category: TransactionCategory
    amount: Decimal
    currency: str
    company_id: uuid.UUID | None = None
    delivery_order_id: uuid.UUID | None = None
    description: str | None = None
    reference_number: str | None = None
    transaction_date: date
    is_reconciled: bool
    reconciled_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class FinancialMetricsOut(BaseModel):
    total_revenue: float
    total_costs: float
    gross_profit: float
    profit_margin: float
    orders_processed: int
    average_order_value: float

    model_config = {"from_attributes": True}


# ── Reconciliation reports ───────────────────────────────────────────
class ReconciliationRowOut(BaseModel):
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

    model_config = {"from_attributes": True}


class SaveReconciliationRequest(BaseModel):
    company_id: uuid.UUID
    start_date: date
    end_date: date
    report_name: str | None = None
    actuals: dict[int, int | None] = {}
    notes: str | None = None


class UpdateActualsRequest(BaseModel):
    actuals: dict[int, int | None]
    notes: str | None = None


class ReconciliationReportOut(BaseModel):
    id: uuid.UUID
    report_name: str
    start_date: date
    end_date: date
    company_id: uuid.UUID | None = None
    report_data: list[dict[str, Any]] = []
    total_items: int
    items_with_variance: int
    notes: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
