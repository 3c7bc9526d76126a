"""
Report service: product history workbooks, stock reconciliation and
the product list PDF.

Date ranges are inclusive calendar days; they become the half-open
window `[start 00:00 UTC, day after end 00:00 UTC)`.  Saving a
reconciliation makes every counted quantity that differs from the
expected one the recorded stock.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.config import settings
from wms.domain.matching import item_matches_product
from wms.domain.reconciliation import ReconciliationRow, apply_actual_counts, build_reconciliation_rows
from wms.domain.variants import calculate_nested_variant_quantity, parse_variants
from wms.models.company import Company
from wms.models.inventory import InventoryItem
from wms.models.product import ClientProduct
from wms.models.report import ReconciliationReport
from wms.models.requests import CheckInRequest, CheckOutRequest, RequestStatus
from wms.models.shipment import Shipment, ShipmentItem
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope
from wms.reports import excel, pdf
from wms.services import inventory_service
from wms.services.product_service import get_product

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("xlsx", "pdf")

_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class ExportFile:
    filename: str
    media_type: str
    content: bytes


def _window(start: date, end: date) -> tuple[datetime, datetime]:
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End date is before start date")
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


def _safe_name(text: str) -> str:
    return _UNSAFE.sub("_", text or "report")


def _item_quantity(item: dict[str, Any]) -> int:
    quantity = item.get("quantity") or item.get("total_quantity") or 0
    if not quantity:
        quantity = calculate_nested_variant_quantity(parse_variants(item.get("variants")))
    return int(quantity)


# ── Product history ──────────────────────────────────────────────────
async def product_history(
    product_id: uuid.UUID,
    start: date,
    end: date,
    db: AsyncSession,
    scope: DataScope,
    include_check_ins: bool = True,
    include_check_outs: bool = True,
    include_shipments: bool = True,
) -> ExportFile:
    product = await get_product(product_id, db, scope)
    window_start, window_end = _window(start, end)
    threshold = settings.PRODUCT_MATCH_THRESHOLD

    def matches(item_id, item_name) -> bool:
        return item_matches_product(product.id, product.name, item_id, item_name, threshold)

    check_in_rows: list[list[Any]] = []
    if include_check_ins:
        stmt = (
            select(CheckInRequest)
            .where(
                CheckInRequest.company_id == product.company_id,
                CheckInRequest.created_at >= window_start,
                CheckInRequest.created_at < window_end,
            )
            .order_by(CheckInRequest.created_at.desc())
        )
        for request in (await db.execute(stmt)).scalars().all():
            for item in request.effective_products:
                if not isinstance(item, dict) or not matches(item.get("product_id"), item.get("name")):
                    continue
                check_in_rows.append(
                    [
                        request.request_number,
                        excel.fmt_date(request.created_at),
                        request.status.value,
                        item.get("name") or product.name,
                        _item_quantity(item),
                        request.notes or "",
                        excel.fmt_date(request.requested_date),
                    ]
                )

    check_out_rows: list[list[Any]] = []
    if include_check_outs:
        stmt = (
            select(CheckOutRequest)
            .where(
                CheckOutRequest.company_id == product.company_id,
                CheckOutRequest.created_at >= window_start,
                CheckOutRequest.created_at < window_end,
            )
            .order_by(CheckOutRequest.created_at.desc())
        )
        for request in (await db.execute(stmt)).scalars().all():
            for item in request.requested_items or []:
                if not isinstance(item, dict) or not matches(item.get("product_id"), item.get("product_name")):
                    continue
                variant = ""
                if item.get("variant_value"):
                    variant = f"{item.get('variant_attribute') or 'Variant'}: {item['variant_value']}"
                check_out_rows.append(
                    [
                        request.request_number,
                        excel.fmt_date(request.created_at),
                        request.status.value,
                        item.get("product_name") or product.name,
                        variant,
                        int(item.get("quantity") or 0),
                        excel.fmt_date(request.delivery_date),
                        request.notes or "",
                    ]
                )

    shipment_rows: list[list[Any]] = []
    if include_shipments:
        stmt = (
            select(ShipmentItem, Shipment)
            .join(Shipment, Shipment.id == ShipmentItem.shipment_id)
            .where(Shipment.company_id == product.company_id)
            .order_by(Shipment.created_at.desc())
        )
        for item, shipment in (await db.execute(stmt)).all():
            if not matches(item.product_id, item.product_name):
                continue
            shipped_on = shipment.shipment_date or shipment.created_at.date()
            if not start <= shipped_on <= end:
                continue
            shipment_rows.append(
                [
                    shipment.shipment_number,
                    excel.fmt_date(shipped_on),
                    shipment.status.value,
                    f"{item.variant_attribute}: {item.variant_value}" if item.variant_attribute else "",
                    item.quantity,
                    shipment.carrier or "",
                    shipment.tracking_number or "",
                    shipment.destination or "",
                ]
            )

    company = product.company
    summary = [
        ("Product Name", product.name),
        ("SKU", product.sku or "N/A"),
        ("Client", company.name if company is not None else "Unknown"),
        ("Client Code", company.client_code if company is not None and company.client_code else "N/A"),
        ("Report Period", f"{excel.fmt_date(start)} - {excel.fmt_date(end)}"),
        ("Generated On", datetime.now().strftime("%b %d, %Y %H:%M")),
    ]
    content = excel.product_history_workbook(summary, check_in_rows, check_out_rows, shipment_rows)
    logger.info(
        "Product history for %s: %d check-in, %d check-out, %d shipment rows",
        product.id,
        len(check_in_rows),
        len(check_out_rows),
        len(shipment_rows),
    )
    return ExportFile(
        filename=f"{_safe_name(product.name)}_history_{datetime.now():%Y%m%d}.xlsx",
        media_type=excel.XLSX_MEDIA_TYPE,
        content=content,
    )


# ── Reconciliation ───────────────────────────────────────────────────
async def generate_reconciliation(
    company_id: uuid.UUID,
    start: date,
    end: date,
    db: AsyncSession,
    scope: DataScope,
) -> list[ReconciliationRow]:
    scope.ensure_company(company_id)
    window_start, window_end = _window(start, end)

    products = (
        await db.execute(
            select(ClientProduct)
            .where(ClientProduct.company_id == company_id, ClientProduct.is_active == True)  # noqa: E712
            .order_by(ClientProduct.name)
        )
    ).scalars().all()
    check_ins = (
        await db.execute(
            select(CheckInRequest).where(
                CheckInRequest.company_id == company_id,
                CheckInRequest.status == RequestStatus.APPROVED,
                CheckInRequest.reviewed_at < window_end,
            )
        )
    ).scalars().all()
    check_outs = (
        await db.execute(
            select(CheckOutRequest).where(
                CheckOutRequest.company_id == company_id,
                CheckOutRequest.status == RequestStatus.APPROVED,
                CheckOutRequest.reviewed_at < window_end,
            )
        )
    ).scalars().all()

    return build_reconciliation_rows(products, check_ins, check_outs, window_start, window_end)


async def _write_back_counts(company_id: uuid.UUID, rows: list[ReconciliationRow], db: AsyncSession) -> int:
    corrected = [r for r in rows if r.actual_quantity is not None and r.variance not in (None, 0)]
    for row in corrected:
        await inventory_service.set_counted_quantity(
            company_id,
            uuid.UUID(str(row.product_id)),
            row.actual_quantity,
            db,
            variant_attribute=row.variant_attribute,
            variant_value=row.variant_value,
        )
    if corrected:
        logger.info("Reconciliation corrected %d inventory row(s) of company %s", len(corrected), company_id)
    return len(corrected)


async def save_reconciliation(
    company_id: uuid.UUID,
    start: date,
    end: date,
    actor: Profile,
    db: AsyncSession,
    scope: DataScope,
    report_name: str | None = None,
    actuals: dict[int, int | None] | None = None,
    notes: str | None = None,
) -> ReconciliationReport:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    rows = await generate_reconciliation(company_id, start, end, db, scope)
    variance_count = apply_actual_counts(rows, actuals or {})
    await _write_back_counts(company_id, rows, db)

    report = ReconciliationReport(
        id=uuid.uuid4(),
        report_name=report_name or f"{company.name} {start:%Y-%m-%d} to {end:%Y-%m-%d}",
        start_date=start,
        end_date=end,
        company_id=company_id,
        report_data=[row.to_dict() for row in rows],
        total_items=len(rows),
        items_with_variance=variance_count,
        notes=notes,
        created_by=actor.id,
    )
    db.add(report)
    await db.flush()
    logger.info("Reconciliation report %s saved with %d rows", report.id, len(rows))
    return report


async def list_reconciliations(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ReconciliationReport]:
    stmt = select(ReconciliationReport).order_by(ReconciliationReport.created_at.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(ReconciliationReport.company_id == company_filter)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_reconciliation(report_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> ReconciliationReport:
    report = await db.get(ReconciliationReport, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    if report.company_id is not None:
        scope.ensure_company(report.company_id)
    return report


def _rows_from_json(data: list[dict[str, Any]]) -> list[ReconciliationRow]:
    fields = ReconciliationRow.__dataclass_fields__
    return [ReconciliationRow(**{k: v for k, v in row.items() if k in fields}) for row in data or []]


async def update_actuals(
    report_id: uuid.UUID,
    actuals: dict[int, int | None],
    db: AsyncSession,
    scope: DataScope,
    notes: str | None = None,
) -> ReconciliationReport:
    report = await get_reconciliation(report_id, db, scope)
    rows = _rows_from_json(report.report_data)
    report.items_with_variance = apply_actual_counts(rows, actuals)
    if report.company_id is not None:
        await _write_back_counts(report.company_id, rows, db)
    report.report_data = [row.to_dict() for row in rows]
    if notes is not None:
        report.notes = notes
    await db.flush()
    return report


async def delete_reconciliation(report_id: uuid.UUID, db: AsyncSession, scope: DataScope) -> None:
    report = await get_reconciliation(report_id, db, scope)
    await db.delete(report)
    await db.flush()


async def export_reconciliation(
    report_id: uuid.UUID,
    export_format: str,
    db: AsyncSession,
    scope: DataScope,
) -> ExportFile:
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported format. Must be one of: {', '.join(EXPORT_FORMATS)}",
        )
    report = await get_reconciliation(report_id, db, scope)
    base = f"{_safe_name(report.report_name)}_{report.start_date:%Y%m%d}_{report.end_date:%Y%m%d}"
    if export_format == "xlsx":
        content = excel.reconciliation_workbook(report.report_name, report.start_date, report.end_date, report.report_data)
        return ExportFile(f"{base}.xlsx", excel.XLSX_MEDIA_TYPE, content)
    content = pdf.reconciliation_pdf(report.report_name, report.start_date, report.end_date, report.report_data)
    return ExportFile(f"{base}.pdf", pdf.PDF_MEDIA_TYPE, content)


# ── Product list ─────────────────────────────────────────────────────
async def product_list(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    include_inactive: bool = False,
) -> ExportFile:
    company_filter = scope.company_filter(company_id)

    stmt = select(ClientProduct).order_by(ClientProduct.name)
    totals_stmt = select(InventoryItem.product_id, func.sum(InventoryItem.quantity)).group_by(InventoryItem.product_id)
    if company_filter is not None:
        stmt = stmt.where(ClientProduct.company_id == company_filter)
        totals_stmt = totals_stmt.where(InventoryItem.company_id == company_filter)
    if not include_inactive:
        stmt = stmt.where(ClientProduct.is_active == True)  # noqa: E712

    products = (await db.execute(stmt)).scalars().all()
    totals = {str(pid): int(qty or 0) for pid, qty in (await db.execute(totals_stmt)).all()}

    client_name = client_code = None
    if company_filter is not None:
        company = await db.get(Company, company_filter)
        if company is not None:
            client_name, client_code = company.name, company.client_code

    content = pdf.product_list_pdf(
        products,
        totals,
        client_name=client_name,
        client_code=client_code,
        include_company=company_filter is None,
    )
    return ExportFile(
        filename=f"products_{datetime.now():%Y%m%d}.pdf",
        media_type=pdf.PDF_MEDIA_TYPE,
        content=content,
    )
