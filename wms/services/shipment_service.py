"""
Shipment service: outbound consignments and their line items.
"""

import logging
import uuid
from datetime import date
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.codes import SHIPMENT_PREFIX, document_number
from wms.models.product import ClientProduct
from wms.models.shipment import Shipment, ShipmentItem, ShipmentStatus
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)

# Statuses a shipment may move to from each status.
_TRANSITIONS: dict[ShipmentStatus, set[ShipmentStatus]] = {
    ShipmentStatus.PENDING: {ShipmentStatus.PACKED, ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED},
    ShipmentStatus.PACKED: {ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED},
    ShipmentStatus.SHIPPED: {ShipmentStatus.DELIVERED},
    ShipmentStatus.DELIVERED: set(),
    ShipmentStatus.CANCELLED: set(),
}


async def create_shipment(
    company_id: uuid.UUID,
    items: list[dict[str, Any]],
    db: AsyncSession,
    scope: DataScope,
    carrier: str | None = None,
    tracking_number: str | None = None,
    destination: str | None = None,
    shipment_date: date | None = None,
    notes: str | None = None,
) -> Shipment:
    scope.ensure_company(company_id)
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A shipment needs at least one item")

    shipment = Shipment(
        id=uuid.uuid4(),
        company_id=company_id,
        shipment_number=document_number(SHIPMENT_PREFIX),
        status=ShipmentStatus.PENDING,
        carrier=carrier,
        tracking_number=tracking_number,
        destination=destination,
        shipment_date=shipment_date,
        notes=notes,
    )
    for line in items:
        product_id = line.get("product_id")
        name = line.get("product_name")
        if product_id is not None:
            product = await db.get(ClientProduct, product_id)
            if product is None or product.company_id != company_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Shipment item references an unknown product")
            name = name or product.name
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Shipment items need a product")
        shipment.items.append(
            ShipmentItem(
                id=uuid.uuid4(),
                product_id=product_id,
                product_name=name,
                variant_attribute=line.get("variant_attribute"),
                variant_value=line.get("variant_value"),
                quantity=line["quantity"],
            )
        )

    db.add(shipment)
    await db.flush()
    logger.info("Shipment %s created for company %s", shipment.shipment_number, company_id)
    return shipment


async def get_shipment(shipment_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> Shipment:
    shipment = await db.get(Shipment, shipment_id)
    if shipment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment not found")
    scope.ensure_company(shipment.company_id)
    return shipment


async def list_shipments(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    shipment_status: ShipmentStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Shipment]:
    stmt = select(Shipment).order_by(Shipment.created_at.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(Shipment.company_id == company_filter)
    if shipment_status is not None:
        stmt = stmt.where(Shipment.status == shipment_status)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Shipment.shipment_number.ilike(pattern),
                Shipment.tracking_number.ilike(pattern),
                Shipment.carrier.ilike(pattern),
            )
        )
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def update_status(
    shipment_id: uuid.UUID,
    new_status: ShipmentStatus,
    db: AsyncSession,
    scope: DataScope,
    tracking_number: str | None = None,
    carrier: str | None = None,
) -> Shipment:
    shipment = await get_shipment(shipment_id, db, scope)
    if new_status != shipment.status and new_status not in _TRANSITIONS[shipment.status]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot move a {shipment.status.value} shipment to {new_status.value}",
        )
    shipment.status = new_status
    if tracking_number:
        shipment.tracking_number = tracking_number
    if carrier:
        shipment.carrier = carrier
    if new_status == ShipmentStatus.SHIPPED and shipment.shipment_date is None:
        shipment.shipment_date = date.today()
    await db.flush()
    return shipment
