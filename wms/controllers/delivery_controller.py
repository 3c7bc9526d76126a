"""
Delivery controller: carriers, drivers, delivery orders, tracking
events and delivery KPIs.

Carrier and driver routes are staff-only through `delivery.manage`;
order reads are tenant-scoped through the data scope.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.delivery import DeliveryOrderStatus, DeliverySource, DriverStatus
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.common import MessageResponse
from wms.schemas.delivery import (
    AssignCarrierRequest,
    AssignDriverRequest,
    CarrierIn,
    CarrierOut,
    CarrierUpdate,
    CreateDeliveryOrderRequest,
    DeliveryMetricsOut,
    DeliveryOrderOut,
    DeliveryStatusUpdate,
    DriverIn,
    DriverOut,
    DriverStatusUpdate,
    DriverUpdate,
    TrackingEventIn,
    TrackingEventOut,
    TrackingUpdate,
)
from wms.services import delivery_service

router = APIRouter(prefix="/api/delivery", tags=["Delivery"])


# ── Carriers ─────────────────────────────────────────────────────────
@router.get("/carriers", response_model=list[CarrierOut])
async def list_carriers(
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(False),
):
    return [CarrierOut.model_validate(c) for c in await delivery_service.list_carriers(db, active_only)]


@router.post("/carriers", response_model=CarrierOut, status_code=201)
async def create_carrier(
    body: CarrierIn,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    return CarrierOut.model_validate(await delivery_service.create_carrier(body.model_dump(), db))


@router.patch("/carriers/{carrier_id}", response_model=CarrierOut)
async def update_carrier(
    carrier_id: uuid.UUID,
    body: CarrierUpdate,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    carrier = await delivery_service.update_carrier(carrier_id, body.model_dump(exclude_unset=True), db)
    return CarrierOut.model_validate(carrier)


@router.post("/carriers/{carrier_id}/toggle", response_model=CarrierOut)
async def toggle_carrier(
    carrier_id: uuid.UUID,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    return CarrierOut.model_validate(await delivery_service.toggle_carrier(carrier_id, db))


@router.delete("/carriers/{carrier_id}", response_model=MessageResponse)
async def delete_carrier(
    carrier_id: uuid.UUID,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    await delivery_service.delete_carrier(carrier_id, db)
    return MessageResponse(detail="Carrier deleted")


# ── Drivers ──────────────────────────────────────────────────────────
@router.get("/drivers", response_model=list[DriverOut])
async def list_drivers(
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
    carrier_id: uuid.UUID | None = Query(None),
    status: DriverStatus | None = Query(None),
):
    return [DriverOut.model_validate(d) for d in await delivery_service.list_drivers(db, carrier_id, status)]


@router.post("/drivers", response_model=DriverOut, status_code=201)
async def create_driver(
    body: DriverIn,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    return DriverOut.model_validate(await delivery_service.create_driver(body.model_dump(), db))


@router.patch("/drivers/{driver_id}", response_model=DriverOut)
async def update_driver(
    driver_id: uuid.UUID,
    body: DriverUpdate,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    driver = await delivery_service.update_driver(driver_id, body.model_dump(exclude_unset=True), db)
    return DriverOut.model_validate(driver)


@router.patch("/drivers/{driver_id}/status", response_model=DriverOut)
async def set_driver_status(
    driver_id: uuid.UUID,
    body: DriverStatusUpdate,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    return DriverOut.model_validate(await delivery_service.set_driver_status(driver_id, body.status, db))


# ── Orders ───────────────────────────────────────────────────────────
@router.get("/orders", response_model=list[DeliveryOrderOut])
async def list_orders(
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
    status: list[DeliveryOrderStatus] | None = Query(None),
    source: list[DeliverySource] | None = Query(None),
    company_id: uuid.UUID | None = Query(None),
    carrier_id: uuid.UUID | None = Query(None),
    driver_id: uuid.UUID | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    search: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    """Filter by any combination of statuses, sources, carrier, driver and creation window."""
    scope = await resolve_data_scope(user, db)
    orders = await delivery_service.list_orders(
        db,
        scope,
        statuses=status,
        sources=source,
        company_id=company_id,
        carrier_id=carrier_id,
        driver_id=driver_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        skip=skip,
        limit=limit,
    )
    return [DeliveryOrderOut.model_validate(o) for o in orders]


@router.post("/orders", response_model=DeliveryOrderOut, status_code=201)
async def create_order(
    body: CreateDeliveryOrderRequest,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    data = body.model_dump(exclude={"company_id", "items"})
    items = [item.model_dump() for item in body.items]
    order = await delivery_service.create_order(body.company_id, data, items, user, db, scope)
    return DeliveryOrderOut.model_validate(order)


@router.get("/orders/{order_id}", response_model=DeliveryOrderOut)
async def get_order(
    order_id: uuid.UUID,
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return DeliveryOrderOut.model_validate(await delivery_service.get_order(order_id, db, scope))


@router.patch("/orders/{order_id}/status", response_model=DeliveryOrderOut)
async def update_status(
    order_id: uuid.UUID,
    body: DeliveryStatusUpdate,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Appends to the status history, stamps the milestone and records a tracking event."""
    scope = await resolve_data_scope(user, db)
    order = await delivery_service.update_status(order_id, body.status, user, db, scope, note=body.note)
    return DeliveryOrderOut.model_validate(order)


@router.post("/orders/{order_id}/carrier", response_model=DeliveryOrderOut)
async def assign_carrier(
    order_id: uuid.UUID,
    body: AssignCarrierRequest,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    order = await delivery_service.assign_carrier(order_id, body.carrier_id, user, db, scope)
    return DeliveryOrderOut.model_validate(order)


@router.post("/orders/{order_id}/driver", response_model=DeliveryOrderOut)
async def assign_driver(
    order_id: uuid.UUID,
    body: AssignDriverRequest,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    order = await delivery_service.assign_driver(order_id, body.driver_id, user, db, scope)
    return DeliveryOrderOut.model_validate(order)


@router.patch("/orders/{order_id}/tracking", response_model=DeliveryOrderOut)
async def update_tracking(
    order_id: uuid.UUID,
    body: TrackingUpdate,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    order = await delivery_service.update_tracking(
        order_id, body.tracking_number, db, scope, tracking_url=body.tracking_url
    )
    return DeliveryOrderOut.model_validate(order)


# ── Tracking events ──────────────────────────────────────────────────
@router.get("/orders/{order_id}/events", response_model=list[TrackingEventOut])
async def list_events(
    order_id: uuid.UUID,
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    events = await delivery_service.list_tracking_events(order_id, db, scope)
    return [TrackingEventOut.model_validate(e) for e in events]


@router.post("/orders/{order_id}/events", response_model=TrackingEventOut, status_code=201)
async def add_event(
    order_id: uuid.UUID,
    body: TrackingEventIn,
    user: Profile = Depends(require_permission("delivery.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    order = await delivery_service.get_order(order_id, db, scope)
    event = await delivery_service.add_tracking_event(
        order,
        body.event_type,
        body.description,
        db,
        actor=user,
        event_status=body.event_status,
        location_address=body.location_address,
        details=body.details,
    )
    return TrackingEventOut.model_validate(event)


# ── Metrics ──────────────────────────────────────────────────────────
@router.get("/metrics", response_model=DeliveryMetricsOut)
async def metrics(
    user: Profile = Depends(require_permission("delivery.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
):
    scope = await resolve_data_scope(user, db)
    return DeliveryMetricsOut.model_validate(await delivery_service.get_metrics(db, scope, company_id))
