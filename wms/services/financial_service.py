"""
Revenue and cost transactions.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.metrics import FinancialMetrics, compute_financial_metrics
from wms.models.delivery import DeliveryOrder
from wms.models.financial import FinancialTransaction, TransactionCategory, TransactionType
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)


async def create_transaction(
    transaction_type: TransactionType,
    category: TransactionCategory,
    amount: Decimal,
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    delivery_order_id: uuid.UUID | None = None,
    transaction_date: date | None = None,
    **fields: Any,
) -> FinancialTransaction:
    if amount is None or Decimal(amount) < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount must not be negative")

    if delivery_order_id is not None:
        order = await db.get(DeliveryOrder, delivery_order_id)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery order not found")
        company_id = company_id or order.company_id
    if company_id is not None:
        scope.ensure_company(company_id)

    txn = FinancialTransaction(
        id=uuid.uuid4(),
        transaction_type=transaction_type,
        category=category,
        amount=Decimal(amount),
        currency=fields.get("currency") or "USD",
        company_id=company_id,
        delivery_order_id=delivery_order_id,
        description=fields.get("description"),
        reference_number=fields.get("reference_number"),
        transaction_date=transaction_date or date.today(),
        is_reconciled=False,
        created_by=actor.id,
    )
    db.add(txn)
    await db.flush()
    logger.info("Recorded %s of %s (%s)", transaction_type.value, txn.amount, category.value)
    return txn


def _filtered(
    scope: DataScope,
    transaction_type: TransactionType | None,
    category: TransactionCategory | None,
    company_id: uuid.UUID | None,
    date_from: date | None,
    date_to: date | None,
    reconciled: bool | None,
):
    stmt = select(FinancialTransaction)
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(FinancialTransaction.company_id == company_filter)
    if transaction_type is not None:
        stmt = stmt.where(FinancialTransaction.transaction_type == transaction_type)
    if category is not None:
        stmt = stmt.where(FinancialTransaction.category == category)
    if date_from is not None:
        stmt = stmt.where(FinancialTransaction.transaction_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(FinancialTransaction.transaction_date <= date_to)
    if reconciled is not None:
        stmt = stmt.where(FinancialTransaction.is_reconciled == reconciled)
    return stmt


async def list_transactions(
    db: AsyncSession,
    scope: DataScope,
    transaction_type: TransactionType | None = None,
    category: TransactionCategory | None = None,
    company_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    reconciled: bool | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[FinancialTransaction]:
    stmt = _filtered(scope, transaction_type, category, company_id, date_from, date_to, reconciled)
    stmt = stmt.order_by(FinancialTransaction.transaction_date.desc(), FinancialTransaction.created_at.desc())
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_transaction(transaction_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> FinancialTransaction:
    txn = await db.get(FinancialTransaction, transaction_id)
    if txn is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    if txn.company_id is not None:
        scope.ensure_company(txn.company_id)
    elif not scope.is_admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return txn


async def reconcile(transaction_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> FinancialTransaction:
    txn = await get_transaction(transaction_id, db, scope)
    if not txn.is_reconciled:
        txn.is_reconciled = True
        txn.reconciled_at = datetime.now(timezone.utc)
        await db.flush()
    return txn


async def get_metrics(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> FinancialMetrics:
    stmt = _filtered(scope, None, None, company_id, date_from, date_to, None)
    transactions = (await db.execute(stmt)).scalars().all()
    return compute_financial_metrics(transactions)
