"""
Product controller: the client product catalogue and inventory rows.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.common import MessageResponse
from wms.schemas.product import (
    AdjustInventoryRequest,
    CreateProductRequest,
    InventoryItemOut,
    LowStockOut,
    MoveInventoryRequest,
    ProductDetailOut,
    ProductOut,
    UpdateProductRequest,
)
from wms.services import inventory_service, product_service

router = APIRouter(prefix="/api", tags=["Products"])


# ── Products ─────────────────────────────────────────────────────────
@router.get("/products", response_model=list[ProductOut])
async def list_products(
    user: Profile = Depends(require_permission("product.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    search: str | None = Query(None),
    include_inactive: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    scope = await resolve_data_scope(user, db)
    products = await product_service.list_products(db, scope, company_id, search, include_inactive, skip, limit)
    return [ProductOut.model_validate(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductDetailOut)
async def get_product(
    product_id: uuid.UUID,
    user: Profile = Depends(require_permission("product.view")),
    db: AsyncSession = Depends(get_db),
):
    """The product with its total quantity and per-variant breakdown."""
    scope = await resolve_data_scope(user, db)
    product = await product_service.get_product(product_id, db, scope)
    return ProductDetailOut.model_validate(product_service.product_view(product))


@router.post("/products", response_model=ProductOut, status_code=201)
async def create_product(
    body: CreateProductRequest,
    user: Profile = Depends(require_permission("product.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    data = body.model_dump(exclude={"company_id"})
    product = await product_service.create_product(body.company_id, data, db, scope)
    return ProductOut.model_validate(product)


@router.patch("/products/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: uuid.UUID,
    body: UpdateProductRequest,
    user: Profile = Depends(require_permission("product.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    product = await product_service.update_product(product_id, body.model_dump(exclude_unset=True), db, scope)
    return ProductOut.model_validate(product)


@router.delete("/products/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: uuid.UUID,
    user: Profile = Depends(require_permission("product.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    await product_service.delete_product(product_id, db, scope)
    return MessageResponse(detail="Product deleted")


# ── Inventory ────────────────────────────────────────────────────────
@router.get("/inventory", response_model=list[InventoryItemOut])
async def list_inventory(
    user: Profile = Depends(require_permission("inventory.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    product_id: uuid.UUID | None = Query(None),
    location_zone: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
):
    scope = await resolve_data_scope(user, db)
    items = await inventory_service.list_inventory(db, scope, company_id, product_id, location_zone, skip, limit)
    return [InventoryItemOut.model_validate(i) for i in items]


@router.get("/inventory/low-stock", response_model=list[LowStockOut])
async def low_stock(
    user: Profile = Depends(require_permission("inventory.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
):
    scope = await resolve_data_scope(user, db)
    return [LowStockOut.model_validate(i) for i in await inventory_service.low_stock(db, scope, company_id)]


@router.post("/inventory/{item_id}/adjust", response_model=InventoryItemOut)
async def adjust_inventory(
    item_id: uuid.UUID,
    body: AdjustInventoryRequest,
    user: Profile = Depends(require_permission("inventory.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    item = await inventory_service.adjust_quantity(item_id, body.delta, db, scope)
    return InventoryItemOut.model_validate(item)


@router.post("/inventory/{item_id}/move", response_model=InventoryItemOut)
async def move_inventory(
    item_id: uuid.UUID,
    body: MoveInventoryRequest,
    user: Profile = Depends(require_permission("inventory.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    item = await inventory_service.move_item(
        item_id,
        db,
        scope,
        location_zone=body.location_zone,
        location_row=body.location_row,
        location_bin=body.location_bin,
        location_code=body.location_code,
    )
    return InventoryItemOut.model_validate(item)
