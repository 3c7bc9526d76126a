import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.financial import TransactionCategory, TransactionType
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.delivery import CreateTransactionRequest, FinancialMetricsOut, TransactionOut
from wms.services import financial_service

router = APIRouter(prefix="/api/financials", tags=["Financials"])


@router.post("/transactions", response_model=TransactionOut, status_code=201)
async def create_transaction(
    body: CreateTransactionRequest,
    user: Profile = Depends(require_permission("financial.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Transactions linked to a delivery order take that order's company."""
    scope = await resolve_data_scope(user, db)
    txn = await financial_service.create_transaction(
        body.transaction_type,
        body.category,
        body.amount,
        user,
        db,
        scope,
        company_id=body.company_id,
        delivery_order_id=body.delivery_order_id,
        transaction_date=body.transaction_date,
        currency=body.currency,
        description=body.description,
        reference_number=body.reference_number,
    )
    return TransactionOut.model_validate(txn)


@router.get("/transactions", response_model=list[TransactionOut])
async def list_transactions(
    user: Profile = Depends(require_permission("financial.view")),
    db: AsyncSession = Depends(get_db),
    transaction_type: TransactionType | None = Query(None),
    category: TransactionCategory | None = Query(None),
    company_id: uuid.UUID | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    reconciled: bool | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    scope = await resolve_data_scope(user, db)
    transactions = await financial_service.list_transactions(
        db, scope, transaction_type, category, company_id, date_from, date_to, reconciled, skip, limit
    )
    return [TransactionOut.model_validate(t) for t in transactions]


@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
async def get_transaction(
    transaction_id: uuid.UUID,
    user: Profile = Depends(require_permission("financial.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return TransactionOut.model_validate(await financial_service.get_transaction(transaction_id, db, scope))


@router.post("/transactions/{transaction_id}/reconcile", response_model=TransactionOut)
async def reconcile(
    transaction_id: uuid.UUID,
    user: Profile = Depends(require_permission("financial.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return TransactionOut.model_validate(await financial_service.reconcile(transaction_id, db, scope))


@router.get("/metrics", response_model=FinancialMetricsOut)
async def metrics(
    user: Profile = Depends(require_permission("financial.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
):
    scope = await resolve_data_scope(user, db)
    result = await financial_service.get_metrics(db, scope, company_id, date_from, date_to)
    return FinancialMetricsOut.model_validate(result)
