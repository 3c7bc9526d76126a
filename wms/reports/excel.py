"""
Spreadsheet exports, written with pandas over openpyxl.
"""

import io
from datetime import date, datetime
from typing import Any, Iterable

import pandas as pd

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

CHECK_IN_COLUMNS = ["Request #", "Date", "Status", "Product Name", "Quantity", "Notes", "Required Date"]
CHECK_OUT_COLUMNS = ["Request #", "Date", "Status", "Product Name", "Variant", "Quantity", "Delivery Date", "Notes"]
SHIPMENT_COLUMNS = ["Shipment #", "Date", "Status", "Variant", "Quantity", "Carrier", "Tracking #", "Destination"]
RECONCILIATION_COLUMNS = [
    "Product",
    "Variant",
    "Starting Qty",
    "Check-Ins",
    "Check-Outs",
    "Expected Qty",
    "Actual Qty",
    "Variance",
]


def fmt_date(value: date | datetime | None) -> str:
    return value.strftime("%b %d, %Y") if value else ""


def _autosize(worksheet) -> None:
    for column in worksheet.columns:
        width = max((len(str(cell.value)) for cell in column if cell.value is not None), default=8)
        worksheet.column_dimensions[column[0].column_letter].width = min(width + 2, 60)


def write_workbook(sheets: dict[str, pd.DataFrame], header_less: Iterable[str] = ()) -> bytes:
    """Serialise named DataFrames to an .xlsx workbook, one sheet each, in order."""
    header_less = set(header_less)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name[:31], index=False, header=name not in header_less)
            _autosize(writer.sheets[name[:31]])
    return buffer.getvalue()


def product_history_workbook(
    summary: list[tuple[str, Any]],
    check_ins: list[list[Any]],
    check_outs: list[list[Any]],
    shipments: list[list[Any]],
) -> bytes:
    """
    Summary sheet first, then one sheet per non-empty section.  A section
    with no matching rows is left out of the workbook entirely.
    """
    sheets = {"Summary": pd.DataFrame([["Product History Report", ""], ["", ""], *summary])}
    if check_ins:
        sheets["Check-Ins"] = pd.DataFrame(check_ins, columns=CHECK_IN_COLUMNS)
    if check_outs:
        sheets["Check-Outs"] = pd.DataFrame(check_outs, columns=CHECK_OUT_COLUMNS)
    if shipments:
        sheets["Shipments"] = pd.DataFrame(shipments, columns=SHIPMENT_COLUMNS)
    return write_workbook(sheets, header_less=("Summary",))


def reconciliation_frame(rows: list[dict[str, Any]]) -> pd.DataFrame:
    records = [
        [
            row.get("product_name"),
            row.get("variant_label") or "",
            row.get("starting_quantity", 0),
            row.get("check_ins", 0),
            row.get("check_outs", 0),
            row.get("expected_quantity", 0),
            row.get("actual_quantity"),
            row.get("variance"),
        ]
        for row in rows
    ]
    return pd.DataFrame(records, columns=RECONCILIATION_COLUMNS)


def reconciliation_workbook(report_name: str, start: date, end: date, rows: list[dict[str, Any]]) -> bytes:
    summary = pd.DataFrame(
        [
            ["Stock Reconciliation Report", ""],
            ["", ""],
            ["Report", report_name],
            ["Period", f"{fmt_date(start)} - {fmt_date(end)}"],
            ["Items", len(rows)],
            ["Items with variance", sum(1 for r in rows if r.get("variance") not in (None, 0))],
            ["Generated On", datetime.now().strftime("%b %d, %Y %H:%M")],
        ]
    )
    return write_workbook(
        {"Summary": summary, "Reconciliation": reconciliation_frame(rows)},
        header_less=("Summary",),
    )
