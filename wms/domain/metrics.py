"""
Delivery and financial dashboard figures, computed from loaded rows.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from wms.models.delivery import DeliveryOrderStatus
from wms.models.financial import TransactionType

IN_TRANSIT_STATUSES = frozenset(
    {DeliveryOrderStatus.SHIPPED, DeliveryOrderStatus.IN_TRANSIT, DeliveryOrderStatus.OUT_FOR_DELIVERY}
)
PENDING_STATUSES = frozenset(
    {DeliveryOrderStatus.PENDING, DeliveryOrderStatus.CONFIRMED, DeliveryOrderStatus.PROCESSING}
)
UNSUCCESSFUL_STATUSES = frozenset({DeliveryOrderStatus.FAILED, DeliveryOrderStatus.RETURNED})


@dataclass
class DeliveryMetrics:
    orders_today: int = 0
    orders_in_transit: int = 0
    pending_fulfillment: int = 0
    delivery_success_rate: int = 100
    total_revenue: float = 0.0
    total_costs: float = 0.0
    gross_profit: float = 0.0
    profit_margin: float = 0.0


@dataclass
class FinancialMetrics:
    total_revenue: float = 0.0
    total_costs: float = 0.0
    gross_profit: float = 0.0
    profit_margin: float = 0.0
    orders_processed: int = 0
    average_order_value: float = 0.0


def _margin(revenue: Decimal, costs: Decimal) -> float:
    return float((revenue - costs) / revenue * 100) if revenue > 0 else 0.0


def success_rate(delivered: int, unsuccessful: int) -> int:
    """Delivered share of finished orders, as a whole percent; 100 with nothing finished."""
    finished = delivered + unsuccessful
    if finished == 0:
        return 100
    return round(delivered / finished * 100)


def compute_delivery_metrics(orders: Iterable, today: date | None = None) -> DeliveryMetrics:
    today = today or datetime.now().date()
    orders = list(orders)

    delivered = [o for o in orders if o.status == DeliveryOrderStatus.DELIVERED]
    unsuccessful = sum(1 for o in orders if o.status in UNSUCCESSFUL_STATUSES)
    revenue = sum((Decimal(o.total_amount or 0) for o in delivered), Decimal(0))
    costs = sum((Decimal(o.total_cost or 0) for o in delivered), Decimal(0))

    return DeliveryMetrics(
        orders_today=sum(1 for o in orders if o.created_at and o.created_at.date() >= today),
        orders_in_transit=sum(1 for o in orders if o.status in IN_TRANSIT_STATUSES),
        pending_fulfillment=sum(1 for o in orders if o.status in PENDING_STATUSES),
        delivery_success_rate=success_rate(len(delivered), unsuccessful),
        total_revenue=float(revenue),
        total_costs=float(costs),
        gross_profit=float(revenue - costs),
        profit_margin=_margin(revenue, costs),
    )


def compute_financial_metrics(transactions: Iterable) -> FinancialMetrics:
    transactions = list(transactions)
    revenue = sum(
        (Decimal(t.amount) for t in transactions if t.transaction_type == TransactionType.REVENUE),
        Decimal(0),
    )
    costs = sum(
        (Decimal(t.amount) for t in transactions if t.transaction_type == TransactionType.COST),
        Decimal(0),
    )
    orders = len({t.delivery_order_id for t in transactions if t.delivery_order_id})

    return FinancialMetrics(
        total_revenue=float(revenue),
        total_costs=float(costs),
        gross_profit=float(revenue - costs),
        profit_margin=_margin(revenue, costs),
        orders_processed=orders,
        average_order_value=float(revenue / orders) if orders else 0.0,
    )
