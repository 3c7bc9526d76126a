"""
A company's catalogue.

Every write goes through `validate_product`; the stored variant tree
is the cleaned, re-serialised one, so nesting deeper than the allowed
depth is rejected with 400 before anything is saved.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.validation import validate_product
from wms.domain.variants import (
    VariantDepthError,
    calculate_nested_variant_quantity,
    get_variant_breakdown,
    parse_variants,
    variants_to_json,
)
from wms.models.product import ClientProduct
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "sku",
    "description",
    "category",
    "length",
    "width",
    "height",
    "weight",
    "unit_value",
    "minimum_quantity",
    "is_active",
}


@dataclass
class ProductView:
    """A product together with its derived stock figures."""

    product: ClientProduct
    total_quantity: int
    breakdown: dict[str, int]


def product_view(product: ClientProduct) -> ProductView:
    variants = parse_variants(product.variants)
    return ProductView(
        product=product,
        total_quantity=calculate_nested_variant_quantity(variants, product.quantity or 0),
        breakdown=get_variant_breakdown(variants),
    )


def _clean(name: str | None, variants: Any, quantity: int | None) -> list[dict[str, Any]]:
    result = validate_product(name, variants, quantity)
    if not result.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(result.errors))
    try:
        return variants_to_json(parse_variants(result.cleaned_variants))
    except VariantDepthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def get_product(product_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> ClientProduct:
    product = await db.get(ClientProduct, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    scope.ensure_company(product.company_id)
    return product


async def list_products(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> list[ClientProduct]:
    stmt = select(ClientProduct).order_by(ClientProduct.name)

    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(ClientProduct.company_id == company_filter)
    if not include_inactive:
        stmt = stmt.where(ClientProduct.is_active == True)  # noqa: E712
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                ClientProduct.name.ilike(pattern),
                ClientProduct.sku.ilike(pattern),
                ClientProduct.category.ilike(pattern),
            )
        )

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def find_by_name(company_id: uuid.UUID, name: str, db: AsyncSession) -> ClientProduct | None:
    """Exact (case-insensitive) name match within a company."""
    stmt = select(ClientProduct).where(
        ClientProduct.company_id == company_id,
        func.lower(ClientProduct.name) == name.strip().lower(),
    )
    return (await db.execute(stmt.limit(1))).scalar_one_or_none()


async def create_product(
    company_id: uuid.UUID,
    data: dict[str, Any],
    db: AsyncSession,
    scope: DataScope,
) -> ClientProduct:
    scope.ensure_company(company_id)
    name = data.get("name")
    quantity = data.get("quantity")
    variants = _clean(name, data.get("variants"), quantity)

    product = ClientProduct(
        id=uuid.uuid4(),
        company_id=company_id,
        name=name.strip(),
        quantity=quantity or 0,
        variants=variants,
        is_active=True,
        minimum_quantity=data.get("minimum_quantity") or 0,
        **{k: v for k, v in data.items() if k in _UPDATABLE and k not in {"minimum_quantity", "is_active"}},
    )
    db.add(product)
    await db.flush()
    logger.info("Product %r created for company %s", product.name, company_id)
    return product


async def update_product(
    product_id: uuid.UUID,
    changes: dict[str, Any],
    db: AsyncSession,
    scope: DataScope,
) -> ClientProduct:
    product = await get_product(product_id, db, scope)

    name = changes.get("name") or product.name
    quantity = changes.get("quantity")
    raw_variants = changes["variants"] if changes.get("variants") is not None else product.variants
    variants = _clean(name, raw_variants, quantity)

    product.name = name.strip()
    product.variants = variants
    if quantity is not None:
        product.quantity = quantity
    for key, value in changes.items():
        if key in _UPDATABLE and value is not None:
            setattr(product, key, value)

    await db.flush()
    return product


async def delete_product(product_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> None:
    product = await get_product(product_id, db, scope)
    await db.delete(product)
    await db.flush()
    logger.info("Product %s deleted", product_id)
