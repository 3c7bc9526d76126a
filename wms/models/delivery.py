from __future__ import annotations

"""
Delivery management: carriers, drivers, delivery orders, order items
and the tracking event log.

A delivery order moves through

    pending → confirmed → processing → picked → packed → shipped
            → in_transit → out_for_delivery → delivered

with `failed`, `returned` and `cancelled` as exits.  Every status
change appends to `status_history` and writes a `DeliveryTrackingEvent`.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import (
    Base,
    CompanyScopedMixin,
    JSONType,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_type,
)

if TYPE_CHECKING:
    from wms.models.company import Company


class CarrierType(str, enum.Enum):
    INTERNATIONAL = "international"
    DOMESTIC = "domestic"
    LOCAL = "local"
    IN_HOUSE = "in_house"


class DriverStatus(str, enum.Enum):
    AVAILABLE = "available"
    ON_DELIVERY = "on_delivery"
    OFF_DUTY = "off_duty"
    INACTIVE = "inactive"


class DeliveryOrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PICKED = "picked"
    PACKED = "packed"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class DeliverySource(str, enum.Enum):
    MANUAL = "manual"
    API = "api"
    B2B_PORTAL = "b2b_portal"
    B2C_PORTAL = "b2c_portal"


class DeliveryType(str, enum.Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    SAME_DAY = "same_day"
    SCHEDULED = "scheduled"
    PICKUP = "pickup"


class PickStatus(str, enum.Enum):
    PENDING = "pending"
    PICKED = "picked"
    PARTIAL = "partial"
    OUT_OF_STOCK = "out_of_stock"


# ── Carriers & drivers ───────────────────────────────────────────────
class DeliveryCarrier(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "delivery_carriers"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    carrier_type: Mapped[CarrierType] = mapped_column(
        enum_type(CarrierType, "carrier_type"),
        default=CarrierType.DOMESTIC,
        nullable=False,
    )
    contact_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    per_kg_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    estimated_days_domestic: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    estimated_days_international: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<DeliveryCarrier {self.code}>"


class DeliveryDriver(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "delivery_drivers"

    carrier_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("delivery_carriers.id", ondelete="SET NULL"),
        nullable=True,
    )
    full_name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    vehicle_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vehicle_plate: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[DriverStatus] = mapped_column(
        enum_type(DriverStatus, "driver_status"),
        default=DriverStatus.AVAILABLE,
        nullable=False,
    )
    total_deliveries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    successful_deliveries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    carrier: Mapped["DeliveryCarrier | None"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<DeliveryDriver {self.full_name}>"


# ── Orders ───────────────────────────────────────────────────────────
class DeliveryOrder(Base, UUIDPrimaryKeyMixin, TimestampMixin, CompanyScopedMixin):
    __tablename__ = "delivery_orders"

    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    check_out_request_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("check_out_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    source: Mapped[DeliverySource] = mapped_column(
        enum_type(DeliverySource, "delivery_source"),
        default=DeliverySource.MANUAL,
        nullable=False,
    )

    recipient_name: Mapped[str] = mapped_column(String(256), nullable=False)
    recipient_email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    recipient_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    shipping_address_line1: Mapped[str] = mapped_column(String(256), nullable=False)
    shipping_address_line2: Mapped[str | None] = mapped_column(String(256), nullable=True)
    shipping_city: Mapped[str] = mapped_column(String(128), nullable=False)
    shipping_state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    shipping_postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    shipping_country: Mapped[str] = mapped_column(String(64), nullable=False)

    delivery_type: Mapped[DeliveryType] = mapped_column(
        enum_type(DeliveryType, "delivery_type"),
        default=DeliveryType.STANDARD,
        nullable=False,
    )
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    scheduled_time_slot: Mapped[str | None] = mapped_column(String(64), nullable=True)
    delivery_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[DeliveryOrderStatus] = mapped_column(
        enum_type(DeliveryOrderStatus, "delivery_order_status"),
        default=DeliveryOrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    status_history: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    carrier_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("delivery_carriers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    driver_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("delivery_drivers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tracking_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    tracking_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # ── Money ────────────────────────────────────────────────────────
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    fulfillment_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    carrier_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    packaging_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    # ── Milestones ───────────────────────────────────────────────────
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    packed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    company: Mapped["Company"] = relationship(lazy="selectin")  # noqa: F821
    carrier: Mapped["DeliveryCarrier | None"] = relationship(lazy="selectin")
    driver: Mapped["DeliveryDriver | None"] = relationship(lazy="selectin")
    items: Mapped[list["DeliveryOrderItem"]] = relationship(
        back_populates="delivery_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<DeliveryOrder {self.order_number} {self.status.value}>"


class DeliveryOrderItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "delivery_order_items"

    delivery_order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("delivery_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("client_products.id", ondelete="SET NULL"),
        nullable=True,
    )
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    product_sku: Mapped[str | None] = mapped_column(String(64), nullable=True)
    variant_attribute: Mapped[str | None] = mapped_column(String(128), nullable=True)
    variant_value: Mapped[str | None] = mapped_column(String(128), nullable=True)
    quantity_ordered: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_picked: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_packed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_shipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    bin_location: Mapped[str | None] = mapped_column(String(32), nullable=True)
    pick_status: Mapped[PickStatus] = mapped_column(
        enum_type(PickStatus, "pick_status"),
        default=PickStatus.PENDING,
        nullable=False,
    )

    delivery_order: Mapped["DeliveryOrder"] = relationship(back_populates="items")


class DeliveryTrackingEvent(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "delivery_tracking_events"

    delivery_order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("delivery_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    event_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    event_description: Mapped[str] = mapped_column(Text, nullable=False)
    location_address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    performed_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    performer_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    performer_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[dict] = mapped_column("metadata", JSONType, default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<DeliveryTrackingEvent {self.event_type} {self.event_status}>"
