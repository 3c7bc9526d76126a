"""
Order controller: client orders, check-in / check-out requests and
shipments.

Clients create orders and requests for their own company; staff with
`request.review` approve, amend or reject them.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.order import OrderStatus
from wms.models.requests import RequestStatus
from wms.models.shipment import ShipmentStatus
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.order import (
    AmendCheckInRequest,
    CheckInOut,
    CheckOutOut,
    CreateCheckInRequest,
    CreateCheckOutRequest,
    CreateOrderRequest,
    CreateShipmentRequest,
    OrderOut,
    OrderStatusUpdate,
    RejectRequest,
    ShipmentOut,
    ShipmentStatusUpdate,
)
from wms.services import order_service, request_service, shipment_service

router = APIRouter(prefix="/api", tags=["Orders"])


# ── Orders ───────────────────────────────────────────────────────────
@router.post("/orders", response_model=OrderOut, status_code=201)
async def create_order(
    body: CreateOrderRequest,
    user: Profile = Depends(require_permission("order.create")),
    db: AsyncSession = Depends(get_db),
):
    """Header and items are stored together or not at all."""
    scope = await resolve_data_scope(user, db)
    order = await order_service.create_order(
        body.company_id,
        [item.model_dump(exclude_none=True) for item in body.items],
        user,
        db,
        scope,
        order_type=body.order_type,
        requested_date=body.requested_date,
        notes=body.notes,
    )
    return OrderOut.model_validate(order)


@router.get("/orders", response_model=list[OrderOut])
async def list_orders(
    user: Profile = Depends(require_permission("order.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    status: OrderStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    orders = await order_service.list_orders(db, scope, company_id, status, skip, limit)
    return [OrderOut.model_validate(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderOut)
async def get_order(
    order_id: uuid.UUID,
    user: Profile = Depends(require_permission("order.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return OrderOut.model_validate(await order_service.get_order(order_id, db, scope))


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    user: Profile = Depends(require_permission("order.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return OrderOut.model_validate(await order_service.update_status(order_id, body.status, db, scope))


# ── Check-in requests ────────────────────────────────────────────────
@router.post("/check-ins", response_model=CheckInOut, status_code=201)
async def create_check_in(
    body: CreateCheckInRequest,
    user: Profile = Depends(require_permission("request.create")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    request = await request_service.create_check_in(
        body.company_id,
        [p.model_dump(mode="json", exclude_none=True) for p in body.products],
        user,
        db,
        scope,
        requested_date=body.requested_date,
        notes=body.notes,
    )
    return CheckInOut.model_validate(request)


@router.get("/check-ins", response_model=list[CheckInOut])
async def list_check_ins(
    user: Profile = Depends(require_permission("request.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    status: RequestStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    requests = await request_service.list_check_ins(db, scope, company_id, status, skip, limit)
    return [CheckInOut.model_validate(r) for r in requests]


@router.get("/check-ins/{request_id}", response_model=CheckInOut)
async def get_check_in(
    request_id: uuid.UUID,
    user: Profile = Depends(require_permission("request.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return CheckInOut.model_validate(await request_service.get_check_in(request_id, db, scope))


@router.post("/check-ins/{request_id}/approve", response_model=CheckInOut)
async def approve_check_in(
    request_id: uuid.UUID,
    user: Profile = Depends(require_permission("request.review")),
    db: AsyncSession = Depends(get_db),
):
    """Merge the requested products into the catalogue and add their stock."""
    scope = await resolve_data_scope(user, db)
    return CheckInOut.model_validate(await request_service.approve_check_in(request_id, user, db, scope))


@router.post("/check-ins/{request_id}/amend", response_model=CheckInOut)
async def amend_check_in(
    request_id: uuid.UUID,
    body: AmendCheckInRequest,
    user: Profile = Depends(require_permission("request.review")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    request = await request_service.amend_and_approve_check_in(
        request_id,
        [p.model_dump(mode="json", exclude_none=True) for p in body.products],
        user,
        db,
        scope,
        amendment_notes=body.amendment_notes,
    )
    return CheckInOut.model_validate(request)


@router.post("/check-ins/{request_id}/reject", response_model=CheckInOut)
async def reject_check_in(
    request_id: uuid.UUID,
    body: RejectRequest,
    user: Profile = Depends(require_permission("request.review")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    request = await request_service.reject_check_in(request_id, body.reason, user, db, scope)
    return CheckInOut.model_validate(request)


# ── Check-out requests ───────────────────────────────────────────────
@router.post("/check-outs", response_model=CheckOutOut, status_code=201)
async def create_check_out(
    body: CreateCheckOutRequest,
    user: Profile = Depends(require_permission("request.create")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    request = await request_service.create_check_out(
        body.company_id,
        [item.model_dump() for item in body.items],
        user,
        db,
        scope,
        delivery_date=body.delivery_date,
        shipping_address=body.shipping_address,
        notes=body.notes,
    )
    return CheckOutOut.model_validate(request)


@router.get("/check-outs", response_model=list[CheckOutOut])
async def list_check_outs(
    user: Profile = Depends(require_permission("request.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    status: RequestStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    requests = await request_service.list_check_outs(db, scope, company_id, status, skip, limit)
    return [CheckOutOut.model_validate(r) for r in requests]


@router.get("/check-outs/{request_id}", response_model=CheckOutOut)
async def get_check_out(
    request_id: uuid.UUID,
    user: Profile = Depends(require_permission("request.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return CheckOutOut.model_validate(await request_service.get_check_out(request_id, db, scope))


@router.post("/check-outs/{request_id}/approve", response_model=CheckOutOut)
async def approve_check_out(
    request_id: uuid.UUID,
    user: Profile = Depends(require_permission("request.review")),
    db: AsyncSession = Depends(get_db),
):
    """Deduct the requested quantities; refused if any line would go negative."""
    scope = await resolve_data_scope(user, db)
    return CheckOutOut.model_validate(await request_service.approve_check_out(request_id, user, db, scope))


@router.post("/check-outs/{request_id}/reject", response_model=CheckOutOut)
async def reject_check_out(
    request_id: uuid.UUID,
    body: RejectRequest,
    user: Profile = Depends(require_permission("request.review")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    request = await request_service.reject_check_out(request_id, body.reason, user, db, scope)
    return CheckOutOut.model_validate(request)


# ── Shipments ────────────────────────────────────────────────────────
@router.post("/shipments", response_model=ShipmentOut, status_code=201)
async def create_shipment(
    body: CreateShipmentRequest,
    user: Profile = Depends(require_permission("shipment.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    shipment = await shipment_service.create_shipment(
        body.company_id,
        [item.model_dump() for item in body.items],
        db,
        scope,
        carrier=body.carrier,
        tracking_number=body.tracking_number,
        destination=body.destination,
        shipment_date=body.shipment_date,
        notes=body.notes,
    )
    return ShipmentOut.model_validate(shipment)


@router.get("/shipments", response_model=list[ShipmentOut])
async def list_shipments(
    user: Profile = Depends(require_permission("shipment.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    status: ShipmentStatus | None = Query(None),
    search: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    shipments = await shipment_service.list_shipments(db, scope, company_id, status, search, skip, limit)
    return [ShipmentOut.model_validate(s) for s in shipments]


@router.get("/shipments/{shipment_id}", response_model=ShipmentOut)
async def get_shipment(
    shipment_id: uuid.UUID,
    user: Profile = Depends(require_permission("shipment.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return ShipmentOut.model_validate(await shipment_service.get_shipment(shipment_id, db, scope))


@router.patch("/shipments/{shipment_id}/status", response_model=ShipmentOut)
async def update_shipment_status(
    shipment_id: uuid.UUID,
    body: ShipmentStatusUpdate,
    user: Profile = Depends(require_permission("shipment.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    shipment = await shipment_service.update_status(
        shipment_id,
        body.status,
        db,
        scope,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
    )
    return ShipmentOut.model_validate(shipment)
