"""
Inventory service: stock rows per product and location.

Handles:
- Scoped listing
- Manual adjustment (never below zero)
- Moving a row to another location
- Receiving and releasing stock for approved requests
- Writing counted quantities back after a reconciliation
- Low-stock listing

Every change stamps `movement_type` and `last_movement_date`.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.stock import LowStockItem, find_low_stock
from wms.models.inventory import InventoryItem
from wms.models.product import ClientProduct
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)

MOVEMENT_CHECK_IN = "check_in"
MOVEMENT_CHECK_OUT = "check_out"
MOVEMENT_ADJUSTMENT = "adjustment"
MOVEMENT_MOVE = "move"
MOVEMENT_RECONCILIATION = "reconciliation"


def _stamp(item: InventoryItem, movement: str) -> None:
    item.movement_type = movement
    item.last_movement_date = datetime.now(timezone.utc)


async def list_inventory(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    product_id: uuid.UUID | None = None,
    location_zone: str | None = None,
    skip: int = 0,
    limit: int = 200,
) -> list[InventoryItem]:
    stmt = select(InventoryItem).order_by(InventoryItem.location_code, InventoryItem.created_at)

    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(InventoryItem.company_id == company_filter)
    if product_id is not None:
        stmt = stmt.where(InventoryItem.product_id == product_id)
    if location_zone:
        stmt = stmt.where(InventoryItem.location_zone == location_zone.upper())

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_item(item_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> InventoryItem:
    item = await db.get(InventoryItem, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
    scope.ensure_company(item.company_id)
    return item


async def adjust_quantity(
    item_id: uuid.UUID,
    delta: int,
    db: AsyncSession,
    scope: DataScope,
) -> InventoryItem:
    item = await get_item(item_id, db, scope)
    new_quantity = item.quantity + delta
    if new_quantity < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Adjustment would leave {new_quantity} units; stock cannot go negative",
        )
    item.quantity = new_quantity
    _stamp(item, MOVEMENT_ADJUSTMENT)
    await db.flush()
    return item


async def move_item(
    item_id: uuid.UUID,
    db: AsyncSession,
    scope: DataScope,
    location_zone: str | None = None,
    location_row: str | None = None,
    location_bin: str | None = None,
    location_code: str | None = None,
) -> InventoryItem:
    item = await get_item(item_id, db, scope)
    item.location_zone = location_zone.upper() if location_zone else None
    item.location_row = location_row
    item.location_bin = location_bin
    if not location_code:
        parts = [p for p in (item.location_zone, location_row, location_bin) if p]
        location_code = "-".join(parts) if parts else None
    item.location_code = location_code
    _stamp(item, MOVEMENT_MOVE)
    await db.flush()
    logger.info("Inventory %s moved to %s", item.id, item.location_code)
    return item


# ── Request fulfilment ───────────────────────────────────────────────
async def _find_row(
    company_id: uuid.UUID,
    product_id: uuid.UUID,
    variant_attribute: str | None,
    variant_value: str | None,
    db: AsyncSession,
) -> list[InventoryItem]:
    stmt = select(InventoryItem).where(
        InventoryItem.company_id == company_id,
        InventoryItem.product_id == product_id,
    )
    if variant_value:
        stmt = stmt.where(InventoryItem.variant_value == variant_value)
        if variant_attribute:
            stmt = stmt.where(InventoryItem.variant_attribute == variant_attribute)
    else:
        stmt = stmt.where(InventoryItem.variant_value.is_(None))
    return list((await db.execute(stmt.order_by(InventoryItem.created_at))).scalars().all())


async def receive_stock(
    company_id: uuid.UUID,
    product_id: uuid.UUID,
    quantity: int,
    db: AsyncSession,
    variant_attribute: str | None = None,
    variant_value: str | None = None,
) -> InventoryItem:
    """Add units to the product's first matching row, creating one if needed."""
    rows = await _find_row(company_id, product_id, variant_attribute, variant_value, db)
    if rows:
        item = rows[0]
        item.quantity += quantity
    else:
        item = InventoryItem(
            id=uuid.uuid4(),
            company_id=company_id,
            product_id=product_id,
            quantity=quantity,
            variant_attribute=variant_attribute,
            variant_value=variant_value,
        )
        db.add(item)
    _stamp(item, MOVEMENT_CHECK_IN)
    await db.flush()
    return item


async def available_quantity(
    company_id: uuid.UUID,
    product_id: uuid.UUID,
    db: AsyncSession,
    variant_attribute: str | None = None,
    variant_value: str | None = None,
) -> int:
    rows = await _find_row(company_id, product_id, variant_attribute, variant_value, db)
    return sum(r.quantity for r in rows)


async def release_stock(
    company_id: uuid.UUID,
    product_id: uuid.UUID,
    quantity: int,
    db: AsyncSession,
    variant_attribute: str | None = None,
    variant_value: str | None = None,
) -> None:
    """Take units out across matching rows, oldest first.  400 if there are not enough."""
    rows = await _find_row(company_id, product_id, variant_attribute, variant_value, db)
    available = sum(r.quantity for r in rows)
    if available < quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock: {available} available, {quantity} requested",
        )

    remaining = quantity
    for item in rows:
        if remaining == 0:
            break
        taken = min(item.quantity, remaining)
        item.quantity -= taken
        remaining -= taken
        _stamp(item, MOVEMENT_CHECK_OUT)
    await db.flush()


async def set_counted_quantity(
    company_id: uuid.UUID,
    product_id: uuid.UUID,
    quantity: int,
    db: AsyncSession,
    variant_attribute: str | None = None,
    variant_value: str | None = None,
) -> InventoryItem:
    """
    Make a physical count the recorded stock of one product (or one of
    its variants).

    The oldest matching row takes the whole count and any other matching
    rows drop to zero; a row is created when none matches.
    """
    if quantity < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Counted quantity cannot be negative")
    rows = await _find_row(company_id, product_id, variant_attribute, variant_value, db)
    if rows:
        item, *others = rows
        item.quantity = quantity
        for other in others:
            other.quantity = 0
            _stamp(other, MOVEMENT_RECONCILIATION)
    else:
        item = InventoryItem(
            id=uuid.uuid4(),
            company_id=company_id,
            product_id=product_id,
            quantity=quantity,
            variant_attribute=variant_attribute if variant_value else None,
            variant_value=variant_value,
        )
        db.add(item)
    _stamp(item, MOVEMENT_RECONCILIATION)
    await db.flush()
    return item


# ── Alerts ───────────────────────────────────────────────────────────
async def low_stock(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
) -> list[LowStockItem]:
    company_filter = scope.company_filter(company_id)

    products_stmt = select(ClientProduct).where(ClientProduct.is_active == True)  # noqa: E712
    items_stmt = select(InventoryItem)
    if company_filter is not None:
        products_stmt = products_stmt.where(ClientProduct.company_id == company_filter)
        items_stmt = items_stmt.where(InventoryItem.company_id == company_filter)

    products = (await db.execute(products_stmt)).scalars().all()
    items = (await db.execute(items_stmt)).scalars().all()
    return find_low_stock(products, items)
