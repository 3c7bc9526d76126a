"""Codes, name matching, product validation, reconciliation, metrics, low stock."""
import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from wms.domain.codes import client_code_prefix, document_number, make_client_code
from wms.domain.matching import item_matches_product, levenshtein, names_match, normalize_name, similarity
from wms.domain.metrics import compute_delivery_metrics, compute_financial_metrics, success_rate
from wms.domain.reconciliation import apply_actual_counts, build_reconciliation_rows
from wms.domain.stock import find_low_stock
from wms.domain.validation import validate_product
from wms.models.delivery import DeliveryOrderStatus
from wms.models.financial import TransactionType


def _at(day: int) -> datetime:
    return datetime(2025, 3, day, 12, tzinfo=timezone.utc)


# ── Codes ────────────────────────────────────────────────────────────
def test_client_code_prefix():
    assert client_code_prefix("Acme Corp") == "ACM"
    assert client_code_prefix("A.B") == "ABX"
    assert client_code_prefix("!!!") == "CLI"
    assert make_client_code("Acme", 7) == "ACM0007"


def test_document_number_format():
    number = document_number("CI", datetime(2025, 3, 14, tzinfo=timezone.utc))
    assert re.fullmatch(r"CI-20250314-[0-9A-F]{4}", number)


# ── Matching ─────────────────────────────────────────────────────────
def test_normalize_name():
    assert normalize_name("  Blue-Widget,  LARGE ") == "blue widget large"
    assert normalize_name(None) == ""


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3


def test_similar_names_match_but_different_ones_do_not():
    assert similarity("Widget", "widget") == 1.0
    assert names_match("Blue Widget", "Blue Widgets")
    assert not names_match("Blue Widget", "Red Gadget")
    assert not names_match("", "")


def test_item_matches_by_id_before_name():
    pid = uuid.uuid4()
    assert item_matches_product(pid, "Widget", item_product_id=str(pid), item_name="Something else")
    assert item_matches_product(pid, "Widget", item_name="widget")
    assert not item_matches_product(pid, "Widget", item_product_id=uuid.uuid4(), item_name="Gizmo")


# ── Validation ───────────────────────────────────────────────────────
def test_validation_collects_every_error():
    result = validate_product("  ", [{"attribute": "", "values": ["S"]}], quantity=-1)
    assert not result.valid
    assert "Product name is required and cannot be empty" in result.errors
    assert "Quantity must be 0 or greater" in result.errors
    assert "Variant 1: Attribute name is required" in result.errors


def test_validation_cleans_variants_and_skips_blank_rows():
    variants = [
        {"attribute": " Size ", "values": [" S ", {"value": "M", "quantity": 3, "minimumQuantity": 1}]},
        {"attribute": "", "values": []},
    ]
    result = validate_product("Shirt", variants, quantity=0)
    assert result.valid
    assert result.cleaned_variants == [
        {
            "attribute": "Size",
            "values": [
                {"value": "S", "quantity": 0, "sub_variants": []},
                {"value": "M", "quantity": 3, "sub_variants": [], "minimum_quantity": 1},
            ],
        }
    ]


def test_validation_requires_a_value_per_attribute():
    result = validate_product("Shirt", [{"attribute": "Size", "values": [{"value": "S", "quantity": -2}]}])
    assert 'Variant "Size": Quantity for "S" must be 0 or greater' in result.errors
    assert 'Variant "Size": At least one value is required' in result.errors


# ── Reconciliation ───────────────────────────────────────────────────
def test_reconciliation_rows():
    widget = SimpleNamespace(id=uuid.uuid4(), name="Widget", variants=None)
    idle = SimpleNamespace(id=uuid.uuid4(), name="Idle", variants=None)
    shirt = SimpleNamespace(
        id=uuid.uuid4(),
        name="Shirt",
        variants=[{"attribute": "Size", "values": [{"value": "S", "quantity": 0}, {"value": "M", "quantity": 0}]}],
    )
    check_ins = [
        SimpleNamespace(reviewed_at=_at(1), effective_products=[{"name": "Widget", "quantity": 10}]),
        SimpleNamespace(reviewed_at=_at(5), effective_products=[{"name": "Widget", "quantity": 4}]),
        SimpleNamespace(
            reviewed_at=_at(6),
            effective_products=[{"name": "Shirt", "variants": [{"attribute": "Size", "values": [{"value": "S", "quantity": 6}]}]}],
        ),
        SimpleNamespace(reviewed_at=None, effective_products=[{"name": "Widget", "quantity": 100}]),
    ]
    check_outs = [
        SimpleNamespace(reviewed_at=_at(2), requested_items=[{"product_name": "Widget", "quantity": 3}]),
        SimpleNamespace(reviewed_at=_at(7), requested_items=[{"product_name": "Shirt", "variant_value": "S", "quantity": 2}]),
    ]

    rows = build_reconciliation_rows([widget, idle, shirt], check_ins, check_outs, _at(3), _at(10))

    by_label = {(r.product_name, r.variant_value): r for r in rows}
    assert ("Idle", None) not in by_label
    base = by_label[("Widget", None)]
    assert (base.starting_quantity, base.check_ins, base.check_outs, base.expected_quantity) == (7, 4, 0, 11)
    small = by_label[("Shirt", "S")]
    assert (small.check_ins, small.check_outs, small.expected_quantity) == (6, 2, 4)
    assert small.variant_label == "Size: S"
    assert by_label[("Shirt", "M")].expected_quantity == 0


def test_actual_counts_produce_variance():
    product = SimpleNamespace(id=uuid.uuid4(), name="Widget", variants=None)
    check_ins = [SimpleNamespace(reviewed_at=_at(4), effective_products=[{"name": "Widget", "quantity": 5}])]
    rows = build_reconciliation_rows([product], check_ins, [], _at(1), _at(10))

    assert apply_actual_counts(rows, {0: 5, 9: 1}) == 0
    assert apply_actual_counts(rows, {0: 3}) == 1
    assert rows[0].variance == -2
    assert rows[0].to_dict()["actual_quantity"] == 3


# ── Metrics ──────────────────────────────────────────────────────────
def test_success_rate():
    assert success_rate(0, 0) == 100
    assert success_rate(3, 1) == 75


def test_delivery_metrics_count_revenue_from_delivered_only():
    today = date(2025, 3, 10)
    orders = [
        SimpleNamespace(status=DeliveryOrderStatus.DELIVERED, total_amount=Decimal("100"), total_cost=Decimal("60"), created_at=_at(1)),
        SimpleNamespace(status=DeliveryOrderStatus.IN_TRANSIT, total_amount=Decimal("50"), total_cost=Decimal("10"), created_at=_at(10)),
        SimpleNamespace(status=DeliveryOrderStatus.PENDING, total_amount=None, total_cost=None, created_at=_at(10)),
        SimpleNamespace(status=DeliveryOrderStatus.FAILED, total_amount=Decimal("20"), total_cost=Decimal("5"), created_at=_at(2)),
    ]
    metrics = compute_delivery_metrics(orders, today)
    assert metrics.orders_today == 2
    assert metrics.orders_in_transit == 1
    assert metrics.pending_fulfillment == 1
    assert metrics.delivery_success_rate == 50
    assert metrics.total_revenue == 100.0
    assert metrics.gross_profit == 40.0
    assert metrics.profit_margin == 40.0


def test_financial_metrics():
    order = uuid.uuid4()
    transactions = [
        SimpleNamespace(transaction_type=TransactionType.REVENUE, amount=Decimal("80"), delivery_order_id=order),
        SimpleNamespace(transaction_type=TransactionType.REVENUE, amount=Decimal("20"), delivery_order_id=order),
        SimpleNamespace(transaction_type=TransactionType.COST, amount=Decimal("25"), delivery_order_id=None),
    ]
    metrics = compute_financial_metrics(transactions)
    assert metrics.gross_profit == 75.0
    assert metrics.orders_processed == 1
    assert metrics.average_order_value == 100.0


def test_financial_metrics_without_revenue():
    metrics = compute_financial_metrics([])
    assert metrics.profit_margin == 0.0
    assert metrics.average_order_value == 0.0


# ── Low stock ────────────────────────────────────────────────────────
def test_low_stock_prefers_inventory_rows():
    pid = uuid.uuid4()
    product = SimpleNamespace(id=pid, name="Widget", sku="W-1", variants=None, quantity=50, minimum_quantity=10)
    inventory = [SimpleNamespace(product_id=pid, variant_attribute=None, variant_value=None, quantity=4)]

    [item] = find_low_stock([product], inventory)

    assert item.current_stock == 4
    assert item.variant_path is None
    assert item.is_critical


def test_low_stock_checks_variant_leaves():
    product = SimpleNamespace(
        id=uuid.uuid4(),
        name="Shirt",
        sku=None,
        quantity=0,
        minimum_quantity=0,
        variants=[
            {
                "attribute": "Size",
                "values": [
                    {"value": "S", "quantity": 4, "minimum_quantity": 5},
                    {"value": "M", "quantity": 9, "minimum_quantity": 5},
                ],
            }
        ],
    )
    [item] = find_low_stock([product], [])
    assert item.variant_path == "Size: S"
    assert (item.current_stock, item.minimum_quantity) == (4, 5)
    assert not item.is_critical


def test_fuzzy_match_ignores_case_and_punctuation():
    assert names_match("Wireless Headphones", "wireless-headphones ")
    assert not names_match("Wireless Headphones", "Bluetooth Speaker")
