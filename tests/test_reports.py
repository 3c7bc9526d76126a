"""Excel and PDF exports."""
import io
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import openpyxl
import pytest
from fastapi import HTTPException

from wms.reports import excel, pdf
from wms.services import report_service

ROWS = [
    {"product_name": "Widget", "starting_quantity": 7, "check_ins": 4, "check_outs": 0, "expected_quantity": 11},
    {
        "product_name": "Shirt",
        "variant_label": "Size: S",
        "starting_quantity": 0,
        "check_ins": 6,
        "check_outs": 2,
        "expected_quantity": 4,
        "actual_quantity": 3,
        "variance": -1,
    },
]


def _product(name, variants=None, quantity=0, unit_value="2.50"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name=name,
        sku=None,
        variants=variants,
        quantity=quantity,
        unit_value=Decimal(unit_value),
        minimum_quantity=1,
        is_active=True,
        company=SimpleNamespace(name="Acme"),
    )


def test_history_workbook_leaves_out_empty_sections():
    content = excel.product_history_workbook(
        [("Product Name", "Widget")],
        check_ins=[["CI-1", "Mar 01, 2025", "approved", "Widget", 4, "", ""]],
        check_outs=[],
        shipments=[],
    )
    workbook = openpyxl.load_workbook(io.BytesIO(content))
    assert workbook.sheetnames == ["Summary", "Check-Ins"]
    sheet = workbook["Check-Ins"]
    assert [c.value for c in sheet[1]] == excel.CHECK_IN_COLUMNS
    assert sheet["E2"].value == 4


def test_reconciliation_workbook():
    content = excel.reconciliation_workbook("March count", date(2025, 3, 1), date(2025, 3, 31), ROWS)
    workbook = openpyxl.load_workbook(io.BytesIO(content))
    assert workbook.sheetnames == ["Summary", "Reconciliation"]
    sheet = workbook["Reconciliation"]
    assert sheet.max_row == 3
    assert sheet["B3"].value == "Size: S"
    assert sheet["H3"].value == -1


def test_fmt_date():
    assert excel.fmt_date(date(2025, 3, 4)) == "Mar 04, 2025"
    assert excel.fmt_date(None) == ""


def test_product_quantity_prefers_variant_stock():
    shirt = _product("Shirt", [{"attribute": "Size", "values": [{"value": "S", "quantity": 3}]}])
    widget = _product("Widget")
    assert pdf.product_quantity(shirt, {str(shirt.id): 99}) == 3
    assert pdf.product_quantity(widget, {str(widget.id): 12}) == 12
    assert pdf.product_quantity(widget, {}) == 0


def test_product_list_pdf():
    products = [_product("Widget"), _product("Shirt", [{"attribute": "Size", "values": [{"value": "S", "quantity": 3}]}])]
    content = pdf.product_list_pdf(products, {}, client_name="Acme", client_code="ACM0001", include_company=True)
    assert content.startswith(b"%PDF")


def test_reconciliation_pdf():
    content = pdf.reconciliation_pdf("March count", date(2025, 3, 1), date(2025, 3, 31), ROWS)
    assert content.startswith(b"%PDF")


def test_window_is_inclusive_of_the_end_day():
    start, end = report_service._window(date(2025, 3, 1), date(2025, 3, 31))
    assert (end - start).days == 31
    with pytest.raises(HTTPException) as exc:
        report_service._window(date(2025, 3, 2), date(2025, 3, 1))
    assert exc.value.status_code == 400


async def test_export_rejects_unknown_format(db, admin_scope):
    with pytest.raises(HTTPException) as exc:
        await report_service.export_reconciliation(uuid.uuid4(), "csv", db, admin_scope)
    assert exc.value.status_code == 400
    db.get.assert_not_called()


async def test_export_reconciliation_names_file_after_report(db, admin_scope):
    db.get.return_value = SimpleNamespace(
        company_id=None,
        report_name="March count",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 31),
        report_data=ROWS,
    )
    export = await report_service.export_reconciliation(uuid.uuid4(), "xlsx", db, admin_scope)
    assert export.filename == "March_count_20250301_20250331.xlsx"
    assert export.media_type == excel.XLSX_MEDIA_TYPE
