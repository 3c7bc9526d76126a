"""
Client order service.

An order header and its items are added in the same request
transaction, so either both are stored or neither is.
"""

import logging
import uuid
from datetime import date
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.codes import ORDER_PREFIX, document_number
from wms.models.order import ClientOrder, ClientOrderItem, OrderStatus
from wms.models.product import ClientProduct
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope
from wms.services import activity_service

logger = logging.getLogger(__name__)


async def create_order(
    company_id: uuid.UUID,
    items: list[dict[str, Any]],
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    order_type: str = "outbound",
    requested_date: date | None = None,
    notes: str | None = None,
) -> ClientOrder:
    scope.ensure_company(company_id)
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="An order needs at least one item")

    order = ClientOrder(
        id=uuid.uuid4(),
        company_id=company_id,
        order_number=document_number(ORDER_PREFIX),
        order_type=order_type,
        status=OrderStatus.PENDING,
        requested_date=requested_date,
        notes=notes,
        created_by=actor.id,
    )

    for line in items:
        product = await db.get(ClientProduct, line["product_id"])
        if product is None or product.company_id != company_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order item references an unknown product")
        if line.get("quantity", 0) <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item quantity must be positive")
        order.items.append(
            ClientOrderItem(
                id=uuid.uuid4(),
                product_id=product.id,
                quantity=line["quantity"],
                unit_value=line.get("unit_value", product.unit_value),
                notes=line.get("notes"),
            )
        )

    db.add(order)
    await db.flush()
    await activity_service.log_activity(
        db,
        "order_created",
        f"Order {order.order_number} created with {len(order.items)} item(s)",
        user_id=actor.id,
        company_id=company_id,
        details={"order_id": str(order.id)},
    )
    logger.info("Order %s created for company %s", order.order_number, company_id)
    return order


async def get_order(order_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> ClientOrder:
    order = await db.get(ClientOrder, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    scope.ensure_company(order.company_id)
    return order


async def list_orders(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    order_status: OrderStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ClientOrder]:
    stmt = select(ClientOrder).order_by(ClientOrder.created_at.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(ClientOrder.company_id == company_filter)
    if order_status is not None:
        stmt = stmt.where(ClientOrder.status == order_status)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def update_status(
    order_id: uuid.UUID,
    new_status: OrderStatus,
    db: AsyncSession,
    scope: DataScope,
) -> ClientOrder:
    order = await get_order(order_id, db, scope)
    if order.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Order is already {order.status.value}",
        )
    order.status = new_status
    if new_status == OrderStatus.COMPLETED:
        order.completed_date = date.today()
    await db.flush()
    return order
