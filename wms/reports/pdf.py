"""
PDF exports built from reportlab platypus tables.
"""

import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from wms.core.config import settings
from wms.domain.variants import calculate_nested_variant_quantity, iter_leaves, parse_variants

PDF_MEDIA_TYPE = "application/pdf"

_HEADER_FILL = colors.HexColor("#1e3a5f")
_STRIPE_FILL = colors.HexColor("#f3f6f9")


def _table(data: list[list[Any]], col_widths: list[float] | None = None) -> Table:
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), _HEADER_FILL),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, _STRIPE_FILL]),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return table


def _footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 7)
    width, _ = doc.pagesize
    canvas.drawString(doc.leftMargin, 8 * mm, settings.REPORT_FOOTER_TEXT)
    canvas.drawRightString(width - doc.rightMargin, 8 * mm, f"Page {doc.page}")
    canvas.restoreState()


def _render(story: list, pagesize=A4, title: str = "") -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=14 * mm,
        bottomMargin=16 * mm,
        title=title,
    )
    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buffer.getvalue()


def product_quantity(product, inventory_totals: dict[str, int]) -> int:
    """Variant total when the tree holds stock, else the inventory total."""
    variants = parse_variants(product.variants)
    if variants:
        total = calculate_nested_variant_quantity(variants)
        if total > 0:
            return total
    return inventory_totals.get(str(product.id), 0)


def product_list_pdf(
    products: Iterable,
    inventory_totals: dict[str, int],
    title: str = "Product Catalog",
    client_name: str | None = None,
    client_code: str | None = None,
    include_company: bool = False,
) -> bytes:
    """
    Catalogue listing: a summary line, one table of products and, for
    products with variants, a per-product table of variant leaves.
    """
    products = list(products)
    styles = getSampleStyleSheet()
    story: list = [Paragraph(title, styles["Title"])]

    if client_name:
        label = f"{client_name} ({client_code})" if client_code else client_name
        story.append(Paragraph(f"Client: {label}", styles["Normal"]))
    story.append(Paragraph(f"Generated: {datetime.now():%b %d, %Y %H:%M}", styles["Normal"]))

    quantities = {str(p.id): product_quantity(p, inventory_totals) for p in products}
    active = sum(1 for p in products if p.is_active)
    total_value = sum(
        (Decimal(p.unit_value or 0) * quantities[str(p.id)] for p in products),
        Decimal(0),
    )
    story.append(
        Paragraph(
            f"Total Products: {len(products)} | Active: {active} | Inactive: {len(products) - active} | "
            f"Total Qty: {sum(quantities.values()):,} | Total Value: ${total_value:,.2f}",
            styles["Normal"],
        )
    )
    story.append(Spacer(1, 6 * mm))

    header = ["#", "Product", "SKU"] + (["Client"] if include_company else []) + ["Qty", "Value", "Min Qty", "Status"]
    rows: list[list[Any]] = [header]
    for index, product in enumerate(products, start=1):
        row = [index, product.name, product.sku or "-"]
        if include_company:
            row.append(product.company.name if product.company is not None else "Unknown")
        row += [
            quantities[str(product.id)],
            f"${Decimal(product.unit_value or 0):,.2f}",
            product.minimum_quantity or 0,
            "Active" if product.is_active else "Inactive",
        ]
        rows.append(row)
    story.append(_table(rows))

    with_variants = [p for p in products if parse_variants(p.variants)]
    if with_variants:
        story.append(Spacer(1, 8 * mm))
        story.append(Paragraph("Variant Details", styles["Heading2"]))
        for product in with_variants:
            label = product.name
            if include_company and product.company is not None:
                label = f"{product.name} ({product.company.name})"
            story.append(Paragraph(label, styles["Heading4"]))
            variant_rows: list[list[Any]] = [["Variant Path", "Qty", "Min Qty", "Value"]]
            for path, _, val in iter_leaves(parse_variants(product.variants)):
                quantity = val.content.quantity
                variant_rows.append(
                    [
                        path,
                        quantity,
                        val.minimum_quantity if val.minimum_quantity is not None else "-",
                        f"${Decimal(product.unit_value or 0) * quantity:,.2f}",
                    ]
                )
            story.append(_table(variant_rows))
            story.append(Spacer(1, 4 * mm))

    return _render(story, pagesize=landscape(A4) if include_company else A4, title=title)


def reconciliation_pdf(report_name: str, start: date, end: date, rows: list[dict[str, Any]]) -> bytes:
    styles = getSampleStyleSheet()
    variance_count = sum(1 for r in rows if r.get("variance") not in (None, 0))
    story: list = [
        Paragraph("Stock Reconciliation Report", styles["Title"]),
        Paragraph(report_name, styles["Heading3"]),
        Paragraph(f"Period: {start:%b %d, %Y} - {end:%b %d, %Y}", styles["Normal"]),
        Paragraph(f"Items: {len(rows)} | Items with variance: {variance_count}", styles["Normal"]),
        Spacer(1, 6 * mm),
    ]

    data: list[list[Any]] = [
        ["Product", "Variant", "Starting", "Check-Ins", "Check-Outs", "Expected", "Actual", "Variance"]
    ]
    flagged: list[int] = []
    for index, row in enumerate(rows, start=1):
        variance = row.get("variance")
        if variance not in (None, 0):
            flagged.append(index)
        data.append(
            [
                row.get("product_name"),
                row.get("variant_label") or "-",
                row.get("starting_quantity", 0),
                row.get("check_ins", 0),
                row.get("check_outs", 0),
                row.get("expected_quantity", 0),
                "-" if row.get("actual_quantity") is None else row["actual_quantity"],
                "-" if variance is None else f"{variance:+d}",
            ]
        )

    table = _table(data)
    for index in flagged:
        table.setStyle(TableStyle([("TEXTCOLOR", (7, index), (7, index), colors.red)]))
    story.append(table)
    return _render(story, pagesize=landscape(A4), title=report_name)
