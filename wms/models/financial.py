from __future__ import annotations

"""
FinancialTransaction: money in or out, optionally tied to a company
and a delivery order.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type


class TransactionType(str, enum.Enum):
    REVENUE = "revenue"
    COST = "cost"
    REFUND = "refund"
    ADJUSTMENT = "adjustment"
    FEE = "fee"


class TransactionCategory(str, enum.Enum):
    SHIPPING_FEE = "shipping_fee"
    FULFILLMENT_FEE = "fulfillment_fee"
    STORAGE_FEE = "storage_fee"
    CARRIER_COST = "carrier_cost"
    LABOR_COST = "labor_cost"
    PACKAGING_COST = "packaging_cost"
    REFUND = "refund"


class FinancialTransaction(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "financial_transactions"

    transaction_type: Mapped[TransactionType] = mapped_column(
        enum_type(TransactionType, "transaction_type"),
        nullable=False,
        index=True,
    )
    category: Mapped[TransactionCategory] = mapped_column(
        enum_type(TransactionCategory, "transaction_category"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    delivery_order_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("delivery_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_reconciled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reconciled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<FinancialTransaction {self.transaction_type.value} {self.amount}>"
