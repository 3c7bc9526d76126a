"""
Client companies (the tenants).

Staff create, update and (de)activate companies; client users only
ever read their own.  Client codes are generated from the name and
are unique.
"""

import logging
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.codes import client_code_prefix, make_client_code
from wms.models.company import Company, LocationType
from wms.models.inventory import InventoryItem
from wms.models.location import WarehouseRow, WarehouseZone, ZoneType
from wms.models.message import Message, MessageStatus
from wms.models.order import ClientOrder, OrderStatus
from wms.models.product import ClientProduct
from wms.models.requests import CheckInRequest, CheckOutRequest, RequestStatus
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "name",
    "contact_person",
    "email",
    "phone",
    "address",
    "billing_address",
    "storage_plan",
    "max_storage_cubic_feet",
    "monthly_fee",
    "contract_start_date",
    "contract_end_date",
}


async def generate_client_code(name: str, db: AsyncSession) -> str:
    prefix = client_code_prefix(name)
    count = (
        await db.execute(select(func.count(Company.id)).where(Company.client_code.like(f"{prefix}%")))
    ).scalar_one()
    sequence = count + 1
    while True:
        code = make_client_code(name, sequence)
        taken = (await db.execute(select(Company.id).where(Company.client_code == code))).scalar_one_or_none()
        if taken is None:
            return code
        sequence += 1


async def _validate_location(
    location_type: LocationType | None,
    zone_id: uuid.UUID | None,
    row_id: uuid.UUID | None,
    db: AsyncSession,
) -> None:
    """A floor-zone company names a floor zone; a shelf-row company names a row."""
    if location_type == LocationType.FLOOR_ZONE and zone_id is not None:
        zone = await db.get(WarehouseZone, zone_id)
        if zone is None or zone.zone_type != ZoneType.FLOOR:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assigned zone must be a floor zone")
    if location_type == LocationType.SHELF_ROW and row_id is not None:
        row = await db.get(WarehouseRow, row_id)
        if row is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assigned row not found")


async def create_company(
    name: str,
    db: AsyncSession,
    location_type: LocationType | None = None,
    assigned_floor_zone_id: uuid.UUID | None = None,
    assigned_row_id: uuid.UUID | None = None,
    **fields: Any,
) -> Company:
    if not name or not name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Company name is required")

    await _validate_location(location_type, assigned_floor_zone_id, assigned_row_id, db)

    company = Company(
        id=uuid.uuid4(),
        name=name.strip(),
        client_code=await generate_client_code(name, db),
        location_type=location_type,
        assigned_floor_zone_id=assigned_floor_zone_id if location_type == LocationType.FLOOR_ZONE else None,
        assigned_row_id=assigned_row_id if location_type == LocationType.SHELF_ROW else None,
        is_active=True,
        **{k: v for k, v in fields.items() if k in _UPDATABLE and k != "name"},
    )
    db.add(company)
    await db.flush()
    logger.info("Company %s created (%s)", company.name, company.client_code)
    return company


async def get_company(company_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> Company:
    scope.ensure_company(company_id)
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


async def list_companies(
    db: AsyncSession,
    scope: DataScope,
    search: str | None = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> list[Company]:
    stmt = select(Company).order_by(Company.name)

    if not scope.is_admin:
        stmt = stmt.where(Company.id == scope.company_filter())
    if active_only:
        stmt = stmt.where(Company.is_active == True)  # noqa: E712
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Company.name.ilike(pattern),
                Company.client_code.ilike(pattern),
                Company.contact_person.ilike(pattern),
                Company.email.ilike(pattern),
            )
        )

    stmt = stmt.offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_company(
    company_id: uuid.UUID,
    db: AsyncSession,
    scope: DataScope,
    changes: dict[str, Any],
) -> Company:
    company = await get_company(company_id, db, scope)

    for key, value in changes.items():
        if key in _UPDATABLE and value is not None:
            setattr(company, key, value)

    if "location_type" in changes:
        location_type = changes["location_type"]
        zone_id = changes.get("assigned_floor_zone_id")
        row_id = changes.get("assigned_row_id")
        await _validate_location(location_type, zone_id, row_id, db)
        company.location_type = location_type
        company.assigned_floor_zone_id = zone_id if location_type == LocationType.FLOOR_ZONE else None
        company.assigned_row_id = row_id if location_type == LocationType.SHELF_ROW else None

    await db.flush()
    return company


async def set_company_active(company_id: uuid.UUID, is_active: bool, db: AsyncSession, scope: DataScope) -> Company:
    company = await get_company(company_id, db, scope)
    company.is_active = is_active
    await db.flush()
    logger.info("Company %s %s", company.client_code, "activated" if is_active else "deactivated")
    return company


async def _count(db: AsyncSession, stmt) -> int:
    return int((await db.execute(stmt)).scalar_one() or 0)


async def get_portal_stats(company_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> dict[str, Any]:
    """Headline figures for a company's dashboard."""
    await get_company(company_id, db, scope)

    products = await _count(
        db,
        select(func.count(ClientProduct.id)).where(
            ClientProduct.company_id == company_id,
            ClientProduct.is_active == True,  # noqa: E712
        ),
    )
    units = await _count(
        db,
        select(func.coalesce(func.sum(InventoryItem.quantity), 0)).where(InventoryItem.company_id == company_id),
    )
    pending_check_ins = await _count(
        db,
        select(func.count(CheckInRequest.id)).where(
            CheckInRequest.company_id == company_id,
            CheckInRequest.status == RequestStatus.PENDING,
        ),
    )
    pending_check_outs = await _count(
        db,
        select(func.count(CheckOutRequest.id)).where(
            CheckOutRequest.company_id == company_id,
            CheckOutRequest.status == RequestStatus.PENDING,
        ),
    )
    open_orders = await _count(
        db,
        select(func.count(ClientOrder.id)).where(
            ClientOrder.company_id == company_id,
            ClientOrder.status.in_([OrderStatus.PENDING, OrderStatus.PROCESSING]),
        ),
    )
    unread = await _count(
        db,
        select(func.count(Message.id)).where(
            Message.company_id == company_id,
            Message.status == MessageStatus.UNREAD,
        ),
    )

    return {
        "company_id": company_id,
        "active_products": products,
        "total_units": units,
        "pending_check_ins": pending_check_ins,
        "pending_check_outs": pending_check_outs,
        "open_orders": open_orders,
        "unread_messages": unread,
    }
