"""
Report controller: downloadable workbooks and PDFs plus saved stock
reconciliation reports.
"""

import io
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.common import MessageResponse
from wms.schemas.delivery import (
    ReconciliationReportOut,
    ReconciliationRowOut,
    SaveReconciliationRequest,
    UpdateActualsRequest,
)
from wms.services import report_service
from wms.services.report_service import ExportFile

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _download(export: ExportFile) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(export.content),
        media_type=export.media_type,
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )


# ── Product exports ──────────────────────────────────────────────────
@router.get("/products/{product_id}/history")
async def product_history(
    product_id: uuid.UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    include_check_ins: bool = Query(True),
    include_check_outs: bool = Query(True),
    include_shipments: bool = Query(True),
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
):
    """Excel workbook with a summary sheet and one sheet per non-empty movement type."""
    scope = await resolve_data_scope(user, db)
    export = await report_service.product_history(
        product_id,
        start_date,
        end_date,
        db,
        scope,
        include_check_ins=include_check_ins,
        include_check_outs=include_check_outs,
        include_shipments=include_shipments,
    )
    return _download(export)


@router.get("/products/pdf")
async def product_list_pdf(
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    include_inactive: bool = Query(False),
):
    scope = await resolve_data_scope(user, db)
    return _download(await report_service.product_list(db, scope, company_id, include_inactive))


# ── Reconciliation ───────────────────────────────────────────────────
@router.get("/reconciliation/preview", response_model=list[ReconciliationRowOut])
async def preview_reconciliation(
    company_id: uuid.UUID = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
):
    """Expected quantities per product and variant, without saving a report."""
    scope = await resolve_data_scope(user, db)
    rows = await report_service.generate_reconciliation(company_id, start_date, end_date, db, scope)
    return [ReconciliationRowOut.model_validate(r) for r in rows]


@router.post("/reconciliation", response_model=ReconciliationReportOut, status_code=201)
async def save_reconciliation(
    body: SaveReconciliationRequest,
    user: Profile = Depends(require_permission("report.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    report = await report_service.save_reconciliation(
        body.company_id,
        body.start_date,
        body.end_date,
        user,
        db,
        scope,
        report_name=body.report_name,
        actuals=body.actuals,
        notes=body.notes,
    )
    return ReconciliationReportOut.model_validate(report)


@router.get("/reconciliation", response_model=list[ReconciliationReportOut])
async def list_reconciliations(
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    reports = await report_service.list_reconciliations(db, scope, company_id, skip, limit)
    return [ReconciliationReportOut.model_validate(r) for r in reports]


@router.get("/reconciliation/{report_id}", response_model=ReconciliationReportOut)
async def get_reconciliation(
    report_id: uuid.UUID,
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return ReconciliationReportOut.model_validate(await report_service.get_reconciliation(report_id, db, scope))


@router.patch("/reconciliation/{report_id}", response_model=ReconciliationReportOut)
async def update_actuals(
    report_id: uuid.UUID,
    body: UpdateActualsRequest,
    user: Profile = Depends(require_permission("report.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Actual counts are keyed by row index; a null clears that row's count."""
    scope = await resolve_data_scope(user, db)
    report = await report_service.update_actuals(report_id, body.actuals, db, scope, notes=body.notes)
    return ReconciliationReportOut.model_validate(report)


@router.delete("/reconciliation/{report_id}", response_model=MessageResponse)
async def delete_reconciliation(
    report_id: uuid.UUID,
    user: Profile = Depends(require_permission("report.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    await report_service.delete_reconciliation(report_id, db, scope)
    return MessageResponse(detail="Report deleted")


@router.get("/reconciliation/{report_id}/export")
async def export_reconciliation(
    report_id: uuid.UUID,
    format: str = Query("xlsx"),
    user: Profile = Depends(require_permission("report.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return _download(await report_service.export_reconciliation(report_id, format, db, scope))
