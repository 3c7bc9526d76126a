"""
Delivery service: carriers, drivers and delivery orders.

Status changes on a delivery order:
- append `{status, timestamp, note?}` to `status_history`;
- stamp the matching milestone (`confirmed_at` … `delivered_at`);
- write a `status_change` tracking event;
- on a finished delivery, update the assigned driver's counters.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.codes import DELIVERY_PREFIX, document_number
from wms.domain.metrics import UNSUCCESSFUL_STATUSES, DeliveryMetrics, compute_delivery_metrics
from wms.models.company import Company
from wms.models.delivery import (
    DeliveryCarrier,
    DeliveryDriver,
    DeliveryOrder,
    DeliveryOrderItem,
    DeliveryOrderStatus,
    DeliverySource,
    DeliveryTrackingEvent,
    DriverStatus,
)
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope
from wms.services import activity_service

logger = logging.getLogger(__name__)

MILESTONES: dict[DeliveryOrderStatus, str] = {
    DeliveryOrderStatus.CONFIRMED: "confirmed_at",
    DeliveryOrderStatus.PICKED: "picked_at",
    DeliveryOrderStatus.PACKED: "packed_at",
    DeliveryOrderStatus.SHIPPED: "shipped_at",
    DeliveryOrderStatus.DELIVERED: "delivered_at",
}

FINAL_STATUSES = frozenset(
    {
        DeliveryOrderStatus.DELIVERED,
        DeliveryOrderStatus.FAILED,
        DeliveryOrderStatus.RETURNED,
        DeliveryOrderStatus.CANCELLED,
    }
)

_CARRIER_FIELDS = {
    "name",
    "carrier_type",
    "contact_name",
    "contact_email",
    "contact_phone",
    "base_rate",
    "per_kg_rate",
    "estimated_days_domestic",
    "estimated_days_international",
    "is_active",
}
_DRIVER_FIELDS = {"carrier_id", "full_name", "email", "phone", "vehicle_type", "vehicle_plate", "status", "is_active"}
_ORDER_FIELDS = {
    "recipient_name",
    "recipient_email",
    "recipient_phone",
    "shipping_address_line1",
    "shipping_address_line2",
    "shipping_city",
    "shipping_state",
    "shipping_postal_code",
    "shipping_country",
    "delivery_type",
    "scheduled_date",
    "scheduled_time_slot",
    "delivery_instructions",
    "shipping_cost",
    "tax_amount",
    "discount_amount",
    "currency",
    "fulfillment_cost",
    "carrier_cost",
    "packaging_cost",
    "notes",
    "internal_notes",
}
_MONEY = Decimal("0.01")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(_MONEY)


# ── Carriers ─────────────────────────────────────────────────────────
async def list_carriers(db: AsyncSession, active_only: bool = False) -> list[DeliveryCarrier]:
    stmt = select(DeliveryCarrier).order_by(DeliveryCarrier.name)
    if active_only:
        stmt = stmt.where(DeliveryCarrier.is_active == True)  # noqa: E712
    return list((await db.execute(stmt)).scalars().all())


async def get_carrier(carrier_id: uuid.UUID, db: AsyncSession) -> DeliveryCarrier:
    carrier = await db.get(DeliveryCarrier, carrier_id)
    if carrier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carrier not found")
    return carrier


async def create_carrier(data: dict[str, Any], db: AsyncSession) -> DeliveryCarrier:
    code = (data.get("code") or "").strip().upper()
    if not code or not data.get("name"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Carrier name and code are required")
    taken = (await db.execute(select(DeliveryCarrier.id).where(DeliveryCarrier.code == code))).scalar_one_or_none()
    if taken is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Carrier code {code} already exists")

    carrier = DeliveryCarrier(id=uuid.uuid4(), code=code)
    for key, value in data.items():
        if key in _CARRIER_FIELDS and value is not None:
            setattr(carrier, key, value)
    db.add(carrier)
    await db.flush()
    return carrier


async def update_carrier(carrier_id: uuid.UUID, changes: dict[str, Any], db: AsyncSession) -> DeliveryCarrier:
    carrier = await get_carrier(carrier_id, db)
    for key, value in changes.items():
        if key in _CARRIER_FIELDS and value is not None:
            setattr(carrier, key, value)
    await db.flush()
    return carrier


async def toggle_carrier(carrier_id: uuid.UUID, db: AsyncSession) -> DeliveryCarrier:
    carrier = await get_carrier(carrier_id, db)
    carrier.is_active = not carrier.is_active
    await db.flush()
    return carrier


async def delete_carrier(carrier_id: uuid.UUID, db: AsyncSession) -> None:
    carrier = await get_carrier(carrier_id, db)
    await db.delete(carrier)
    await db.flush()


# ── Drivers ──────────────────────────────────────────────────────────
async def list_drivers(
    db: AsyncSession,
    carrier_id: uuid.UUID | None = None,
    driver_status: DriverStatus | None = None,
) -> list[DeliveryDriver]:
    stmt = select(DeliveryDriver).order_by(DeliveryDriver.full_name)
    if carrier_id is not None:
        stmt = stmt.where(DeliveryDriver.carrier_id == carrier_id)
    if driver_status is not None:
        stmt = stmt.where(DeliveryDriver.status == driver_status)
    return list((await db.execute(stmt)).scalars().all())


async def get_driver(driver_id: uuid.UUID, db: AsyncSession) -> DeliveryDriver:
    driver = await db.get(DeliveryDriver, driver_id)
    if driver is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return driver


async def create_driver(data: dict[str, Any], db: AsyncSession) -> DeliveryDriver:
    if not data.get("full_name") or not data.get("phone"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Driver name and phone are required")
    if data.get("carrier_id") is not None:
        await get_carrier(data["carrier_id"], db)

    driver = DeliveryDriver(id=uuid.uuid4())
    for key, value in data.items():
        if key in _DRIVER_FIELDS and value is not None:
            setattr(driver, key, value)
    db.add(driver)
    await db.flush()
    return driver


async def update_driver(driver_id: uuid.UUID, changes: dict[str, Any], db: AsyncSession) -> DeliveryDriver:
    driver = await get_driver(driver_id, db)
    for key, value in changes.items():
        if key in _DRIVER_FIELDS and value is not None:
            setattr(driver, key, value)
    await db.flush()
    return driver


async def set_driver_status(driver_id: uuid.UUID, new_status: DriverStatus, db: AsyncSession) -> DeliveryDriver:
    driver = await get_driver(driver_id, db)
    driver.status = new_status
    await db.flush()
    return driver


# ── Orders ───────────────────────────────────────────────────────────
async def create_order(
    company_id: uuid.UUID,
    data: dict[str, Any],
    items: list[dict[str, Any]],
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
) -> DeliveryOrder:
    scope.ensure_company(company_id)
    if await db.get(Company, company_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    for required in ("recipient_name", "shipping_address_line1", "shipping_city", "shipping_country"):
        if not data.get(required):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{required} is required")

    now = _now()
    order = DeliveryOrder(
        id=uuid.uuid4(),
        company_id=company_id,
        order_number=document_number(DELIVERY_PREFIX, now),
        source=data.get("source") or DeliverySource.MANUAL,
        check_out_request_id=data.get("check_out_request_id"),
        status=DeliveryOrderStatus.PENDING,
        status_history=[{"status": DeliveryOrderStatus.PENDING.value, "timestamp": now.isoformat()}],
        created_by=actor.id,
    )
    for key, value in data.items():
        if key in _ORDER_FIELDS and value is not None:
            setattr(order, key, value)

    subtotal = Decimal(0)
    for line in items:
        quantity = int(line.get("quantity_ordered") or 0)
        if quantity <= 0 or not line.get("product_name"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Each item needs a product name and a positive quantity")
        unit_price = _money(line.get("unit_price"))
        line_total = _money(line["line_total"]) if line.get("line_total") is not None else unit_price * quantity
        subtotal += line_total
        order.items.append(
            DeliveryOrderItem(
                id=uuid.uuid4(),
                product_id=line.get("product_id"),
                product_name=line["product_name"],
                product_sku=line.get("product_sku"),
                variant_attribute=line.get("variant_attribute"),
                variant_value=line.get("variant_value"),
                quantity_ordered=quantity,
                unit_price=unit_price,
                unit_cost=_money(line.get("unit_cost")),
                line_total=line_total,
                bin_location=line.get("bin_location"),
            )
        )

    order.subtotal = _money(data["subtotal"]) if data.get("subtotal") is not None else subtotal
    if data.get("total_amount") is not None:
        order.total_amount = _money(data["total_amount"])
    else:
        order.total_amount = (
            order.subtotal
            + _money(data.get("shipping_cost"))
            + _money(data.get("tax_amount"))
            - _money(data.get("discount_amount"))
        )
    order.total_cost = (
        _money(data.get("fulfillment_cost")) + _money(data.get("carrier_cost")) + _money(data.get("packaging_cost"))
    )

    db.add(order)
    await db.flush()
    await activity_service.log_activity(
        db,
        "delivery_order_created",
        f"Delivery order {order.order_number} created",
        user_id=actor.id,
        company_id=company_id,
        details={"delivery_order_id": str(order.id)},
    )
    logger.info("Delivery order %s created", order.order_number)
    return order


async def get_order(order_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> DeliveryOrder:
    order = await db.get(DeliveryOrder, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery order not found")
    scope.ensure_company(order.company_id)
    return order


async def list_orders(
    db: AsyncSession,
    scope: DataScope,
    statuses: list[DeliveryOrderStatus] | None = None,
    sources: list[DeliverySource] | None = None,
    company_id: uuid.UUID | None = None,
    carrier_id: uuid.UUID | None = None,
    driver_id: uuid.UUID | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[DeliveryOrder]:
    stmt = select(DeliveryOrder).order_by(DeliveryOrder.created_at.desc())

    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(DeliveryOrder.company_id == company_filter)
    if statuses:
        stmt = stmt.where(DeliveryOrder.status.in_(statuses))
    if sources:
        stmt = stmt.where(DeliveryOrder.source.in_(sources))
    if carrier_id is not None:
        stmt = stmt.where(DeliveryOrder.carrier_id == carrier_id)
    if driver_id is not None:
        stmt = stmt.where(DeliveryOrder.driver_id == driver_id)
    if date_from is not None:
        stmt = stmt.where(DeliveryOrder.created_at >= date_from)
    if date_to is not None:
        stmt = stmt.where(DeliveryOrder.created_at <= date_to)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(DeliveryOrder.order_number.ilike(pattern), DeliveryOrder.recipient_name.ilike(pattern))
        )

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def add_tracking_event(
    order: DeliveryOrder,
    event_type: str,
    description: str,
    db: AsyncSession,
    actor: Profile | None = None,
    event_status: str | None = None,
    location_address: str | None = None,
    details: dict[str, Any] | None = None,
) -> DeliveryTrackingEvent:
    role = actor.primary_role if actor is not None else None
    event = DeliveryTrackingEvent(
        id=uuid.uuid4(),
        delivery_order_id=order.id,
        event_type=event_type,
        event_status=event_status,
        event_description=description,
        location_address=location_address,
        performed_by=actor.id if actor is not None else None,
        performer_name=actor.display_name if actor is not None else None,
        performer_role=role.value if role is not None else None,
        details=details or {},
    )
    db.add(event)
    await db.flush()
    return event


async def list_tracking_events(order_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> list[DeliveryTrackingEvent]:
    await get_order(order_id, db, scope)
    stmt = (
        select(DeliveryTrackingEvent)
        .where(DeliveryTrackingEvent.delivery_order_id == order_id)
        .order_by(DeliveryTrackingEvent.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def _record_driver_outcome(order: DeliveryOrder, new_status: DeliveryOrderStatus, db: AsyncSession) -> None:
    if order.driver_id is None:
        return
    driver = await db.get(DeliveryDriver, order.driver_id)
    if driver is None:
        return
    if new_status == DeliveryOrderStatus.DELIVERED:
        driver.total_deliveries += 1
        driver.successful_deliveries += 1
    elif new_status in UNSUCCESSFUL_STATUSES:
        driver.total_deliveries += 1
    if driver.status == DriverStatus.ON_DELIVERY:
        driver.status = DriverStatus.AVAILABLE


async def update_status(
    order_id: uuid.UUID,
    new_status: DeliveryOrderStatus,
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    note: str | None = None,
) -> DeliveryOrder:
    order = await get_order(order_id, db, scope)
    if order.status in FINAL_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Delivery order is already {order.status.value}",
        )

    now = _now()
    entry: dict[str, Any] = {"status": new_status.value, "timestamp": now.isoformat()}
    if note:
        entry["note"] = note
    # Reassign so the JSON column is flagged as changed.
    order.status_history = [*(order.status_history or []), entry]
    order.status = new_status

    milestone = MILESTONES.get(new_status)
    if milestone is not None:
        setattr(order, milestone, now)

    if new_status in FINAL_STATUSES:
        await _record_driver_outcome(order, new_status, db)

    description = f"Order status changed to {new_status.value}"
    if note:
        description = f"{description}: {note}"
    await add_tracking_event(order, "status_change", description, db, actor=actor, event_status=new_status.value)
    await db.flush()
    logger.info("Delivery order %s → %s", order.order_number, new_status.value)
    return order


async def assign_carrier(order_id: uuid.UUID, carrier_id: uuid.UUID, actor: Profile, db: AsyncSession, scope: DataScope) -> DeliveryOrder:
    order = await get_order(order_id, db, scope)
    carrier = await get_carrier(carrier_id, db)
    if not carrier.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Carrier is not active")
    order.carrier_id = carrier.id
    await add_tracking_event(order, "carrier_assigned", f"Carrier {carrier.name} assigned", db, actor=actor)
    await db.flush()
    return order


async def assign_driver(order_id: uuid.UUID, driver_id: uuid.UUID, actor: Profile, db: AsyncSession, scope: DataScope) -> DeliveryOrder:
    order = await get_order(order_id, db, scope)
    if order.status in FINAL_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Delivery order is already {order.status.value}",
        )
    driver = await get_driver(driver_id, db)
    if not driver.is_active or driver.status == DriverStatus.INACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Driver is not active")

    if order.driver_id is not None and order.driver_id != driver.id:
        previous = await db.get(DeliveryDriver, order.driver_id)
        if previous is not None and previous.status == DriverStatus.ON_DELIVERY:
            previous.status = DriverStatus.AVAILABLE
    order.driver_id = driver.id
    driver.status = DriverStatus.ON_DELIVERY
    await add_tracking_event(order, "driver_assigned", f"Driver {driver.full_name} assigned", db, actor=actor)
    await db.flush()
    return order


async def update_tracking(
    order_id: uuid.UUID,
    tracking_number: str,
    db: AsyncSession,
    scope: DataScope,
    tracking_url: str | None = None,
) -> DeliveryOrder:
    order = await get_order(order_id, db, scope)
    order.tracking_number = tracking_number
    order.tracking_url = tracking_url
    await db.flush()
    return order


async def get_metrics(db: AsyncSession, scope: DataScope, company_id: uuid.UUID | None = None) -> DeliveryMetrics:
    stmt = select(DeliveryOrder)
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(DeliveryOrder.company_id == company_filter)
    orders = (await db.execute(stmt)).scalars().all()
    return compute_delivery_metrics(orders)
