"""
Check-in / check-out request service.

Clients file requests; staff review them.

Check-in approval, for each product on the request (the amended list
when staff amended it):
1. find the product by id, else by exact name within the company,
   else create it;
2. merge the request's variant tree into the product's;
3. add the request's total quantity to the product's stock row.

Check-out approval releases each requested quantity from stock and
refuses (400) if any line would drive stock below zero.  Every write of
one review lands in the request transaction, so a refused line leaves
nothing half-applied.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.codes import CHECK_IN_PREFIX, CHECK_OUT_PREFIX, document_number
from wms.domain.variants import (
    VariantDepthError,
    calculate_nested_variant_quantity,
    merge_variants,
    parse_variants,
    variants_to_json,
)
from wms.models.product import ClientProduct
from wms.models.requests import CheckInRequest, CheckOutRequest, RequestStatus
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope
from wms.services import activity_service, inventory_service, message_service, product_service

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────────────────────
def _normalise_products(products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Validate check-in product entries and store their variant trees in canonical form."""
    if not products:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one product is required")

    cleaned = []
    for entry in products:
        name = str(entry.get("name") or "").strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Every product needs a name")
        quantity = int(entry.get("quantity") or 0)
        if quantity < 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f'Quantity for "{name}" must be 0 or greater')
        try:
            variants = variants_to_json(parse_variants(entry.get("variants")))
        except VariantDepthError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        cleaned.append({**entry, "name": name, "quantity": quantity, "variants": variants})
    return cleaned


def _ensure_pending(request: CheckInRequest | CheckOutRequest) -> None:
    if request.status != RequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Request is already {request.status.value}",
        )


def _mark_reviewed(request: CheckInRequest | CheckOutRequest, new_status: RequestStatus, reviewer: Profile) -> None:
    request.status = new_status
    request.reviewed_by = reviewer.id
    request.reviewed_at = datetime.now(timezone.utc)


# ── Check-in ─────────────────────────────────────────────────────────
async def create_check_in(
    company_id: uuid.UUID,
    products: list[dict[str, Any]],
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    requested_date: date | None = None,
    notes: str | None = None,
) -> CheckInRequest:
    scope.ensure_company(company_id)
    request = CheckInRequest(
        id=uuid.uuid4(),
        company_id=company_id,
        request_number=document_number(CHECK_IN_PREFIX),
        requested_by=actor.id,
        status=RequestStatus.PENDING,
        requested_products=_normalise_products(products),
        was_amended=False,
        requested_date=requested_date,
        notes=notes,
    )
    db.add(request)
    await db.flush()
    await activity_service.log_activity(
        db,
        "check_in_requested",
        f"Check-in request {request.request_number} submitted",
        user_id=actor.id,
        company_id=company_id,
        details={"request_id": str(request.id)},
    )
    return request


async def get_check_in(request_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> CheckInRequest:
    request = await db.get(CheckInRequest, request_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check-in request not found")
    scope.ensure_company(request.company_id)
    return request


async def list_check_ins(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    request_status: RequestStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[CheckInRequest]:
    stmt = select(CheckInRequest).order_by(CheckInRequest.created_at.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(CheckInRequest.company_id == company_filter)
    if request_status is not None:
        stmt = stmt.where(CheckInRequest.status == request_status)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def _resolve_product(company_id: uuid.UUID, entry: dict[str, Any], db: AsyncSession) -> ClientProduct | None:
    product_id = entry.get("product_id") or entry.get("existing_product_id")
    if product_id:
        product = await db.get(ClientProduct, uuid.UUID(str(product_id)))
        if product is not None and product.company_id == company_id:
            return product
    return await product_service.find_by_name(company_id, entry["name"], db)


async def _receive_products(request: CheckInRequest, db: AsyncSession) -> None:
    for entry in request.effective_products:
        incoming = parse_variants(entry.get("variants"))
        product = await _resolve_product(request.company_id, entry, db)

        if product is None:
            product = ClientProduct(
                id=uuid.uuid4(),
                company_id=request.company_id,
                name=entry["name"],
                sku=entry.get("sku"),
                quantity=0,
                variants=variants_to_json(incoming),
                is_active=True,
            )
            db.add(product)
            await db.flush()
        elif incoming:
            product.variants = variants_to_json(merge_variants(parse_variants(product.variants), incoming))

        total = calculate_nested_variant_quantity(incoming, int(entry.get("quantity") or 0))
        if not incoming:
            product.quantity = (product.quantity or 0) + total
        if total > 0:
            await inventory_service.receive_stock(request.company_id, product.id, total, db)


async def approve_check_in(request_id: uuid.UUID, reviewer: Profile, db: AsyncSession, scope: DataScope) -> CheckInRequest:
    request = await get_check_in(request_id, db, scope)
    _ensure_pending(request)

    await _receive_products(request, db)
    _mark_reviewed(request, RequestStatus.APPROVED, reviewer)
    await db.flush()

    await activity_service.log_activity(
        db,
        "check_in_approved",
        f"Check-in request {request.request_number} approved",
        user_id=reviewer.id,
        company_id=request.company_id,
        details={"request_id": str(request.id), "amended": request.was_amended},
    )
    logger.info("Check-in %s approved by %s", request.request_number, reviewer.id)
    return request


async def amend_and_approve_check_in(
    request_id: uuid.UUID,
    amended_products: list[dict[str, Any]],
    reviewer: Profile,
    db: AsyncSession,
    scope: DataScope,
    amendment_notes: str | None = None,
) -> CheckInRequest:
    """Replace the product list with what was actually received, then approve."""
    request = await get_check_in(request_id, db, scope)
    _ensure_pending(request)

    request.amended_products = _normalise_products(amended_products)
    request.was_amended = True
    request.amendment_notes = amendment_notes
    return await approve_check_in(request_id, reviewer, db, scope)


async def reject_check_in(
    request_id: uuid.UUID,
    reason: str,
    reviewer: Profile,
    db: AsyncSession,
    scope: DataScope,
) -> CheckInRequest:
    if not reason or not reason.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A rejection reason is required")
    request = await get_check_in(request_id, db, scope)
    _ensure_pending(request)

    request.rejection_reason = reason.strip()
    _mark_reviewed(request, RequestStatus.REJECTED, reviewer)
    await db.flush()
    await activity_service.log_activity(
        db,
        "check_in_rejected",
        f"Check-in request {request.request_number} rejected",
        user_id=reviewer.id,
        company_id=request.company_id,
        details={"request_id": str(request.id), "reason": request.rejection_reason},
    )
    await message_service.send_system_message(
        request.company_id,
        f"Request {request.request_number} was rejected",
        f"Your request {request.request_number} was rejected: {request.rejection_reason}",
        db,
    )
    return request


# ── Check-out ────────────────────────────────────────────────────────
async def create_check_out(
    company_id: uuid.UUID,
    items: list[dict[str, Any]],
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    delivery_date: date | None = None,
    shipping_address: str | None = None,
    notes: str | None = None,
) -> CheckOutRequest:
    scope.ensure_company(company_id)
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one item is required")

    lines = []
    for item in items:
        product = await db.get(ClientProduct, uuid.UUID(str(item["product_id"])))
        if product is None or product.company_id != company_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item references an unknown product")
        quantity = int(item.get("quantity") or 0)
        if quantity <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item quantity must be positive")
        lines.append(
            {
                "product_id": str(product.id),
                "product_name": product.name,
                "variant_attribute": item.get("variant_attribute") or None,
                "variant_value": item.get("variant_value") or None,
                "quantity": quantity,
            }
        )

    request = CheckOutRequest(
        id=uuid.uuid4(),
        company_id=company_id,
        request_number=document_number(CHECK_OUT_PREFIX),
        requested_by=actor.id,
        status=RequestStatus.PENDING,
        requested_items=lines,
        delivery_date=delivery_date,
        shipping_address=shipping_address,
        notes=notes,
    )
    db.add(request)
    await db.flush()
    await activity_service.log_activity(
        db,
        "check_out_requested",
        f"Check-out request {request.request_number} submitted",
        user_id=actor.id,
        company_id=company_id,
        details={"request_id": str(request.id)},
    )
    return request


async def get_check_out(request_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> CheckOutRequest:
    request = await db.get(CheckOutRequest, request_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check-out request not found")
    scope.ensure_company(request.company_id)
    return request


async def list_check_outs(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    request_status: RequestStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[CheckOutRequest]:
    stmt = select(CheckOutRequest).order_by(CheckOutRequest.created_at.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(CheckOutRequest.company_id == company_filter)
    if request_status is not None:
        stmt = stmt.where(CheckOutRequest.status == request_status)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def approve_check_out(request_id: uuid.UUID, reviewer: Profile, db: AsyncSession, scope: DataScope) -> CheckOutRequest:
    request = await get_check_out(request_id, db, scope)
    _ensure_pending(request)

    for item in request.requested_items:
        product_id = uuid.UUID(item["product_id"])
        attribute = item.get("variant_attribute")
        value = item.get("variant_value") or None
        # Stock received without a variant split is released from the product row.
        if value and not await inventory_service.available_quantity(request.company_id, product_id, db, attribute, value):
            attribute = value = None
        await inventory_service.release_stock(
            request.company_id,
            product_id,
            int(item["quantity"]),
            db,
            variant_attribute=attribute,
            variant_value=value,
        )

    _mark_reviewed(request, RequestStatus.APPROVED, reviewer)
    await db.flush()
    await activity_service.log_activity(
        db,
        "check_out_approved",
        f"Check-out request {request.request_number} approved",
        user_id=reviewer.id,
        company_id=request.company_id,
        details={"request_id": str(request.id)},
    )
    logger.info("Check-out %s approved by %s", request.request_number, reviewer.id)
    return request


async def reject_check_out(
    request_id: uuid.UUID,
    reason: str,
    reviewer: Profile,
    db: AsyncSession,
    scope: DataScope,
) -> CheckOutRequest:
    if not reason or not reason.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A rejection reason is required")
    request = await get_check_out(request_id, db, scope)
    _ensure_pending(request)

    request.rejection_reason = reason.strip()
    _mark_reviewed(request, RequestStatus.REJECTED, reviewer)
    await db.flush()
    await activity_service.log_activity(
        db,
        "check_out_rejected",
        f"Check-out request {request.request_number} rejected",
        user_id=reviewer.id,
        company_id=request.company_id,
        details={"request_id": str(request.id), "reason": request.rejection_reason},
    )
    await message_service.send_system_message(
        request.company_id,
        f"Request {request.request_number} was rejected",
        f"Your request {request.request_number} was rejected: {request.rejection_reason}",
        db,
    )
    return request
