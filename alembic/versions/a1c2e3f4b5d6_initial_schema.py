"""initial warehouse schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS: dict[str, tuple[str, ...]] = {
    "profile_status": ("ACTIVE", "DISABLED"),
    "zone_type": ("floor", "shelf"),
    "company_location_type": ("floor_zone", "shelf_row"),
    "allocation_type": ("zone", "row_range", "specific_bins"),
    "client_order_status": ("pending", "processing", "completed", "cancelled"),
    "check_in_status": ("pending", "approved", "rejected"),
    "check_out_status": ("pending", "approved", "rejected"),
    "shipment_status": ("pending", "packed", "shipped", "delivered", "cancelled"),
    "message_type": ("general", "support", "billing", "urgent", "system"),
    "message_priority": ("low", "normal", "high", "urgent"),
    "message_status": ("unread", "read", "archived"),
    "carrier_type": ("international", "domestic", "local", "in_house"),
    "driver_status": ("available", "on_delivery", "off_duty", "inactive"),
    "delivery_order_status": (
        "pending",
        "confirmed",
        "processing",
        "picked",
        "packed",
        "shipped",
        "in_transit",
        "out_for_delivery",
        "delivered",
        "failed",
        "returned",
        "cancelled",
    ),
    "delivery_source": ("manual", "api", "b2b_portal", "b2c_portal"),
    "delivery_type": ("standard", "express", "same_day", "scheduled", "pickup"),
    "pick_status": ("pending", "picked", "partial", "out_of_stock"),
    "transaction_type": ("revenue", "cost", "refund", "adjustment", "fee"),
    "transaction_category": (
        "shipping_fee",
        "fulfillment_fee",
        "storage_fee",
        "carrier_cost",
        "labor_cost",
        "packaging_cost",
        "refund",
    ),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _company_id(nullable: bool = False, ondelete: str = "CASCADE") -> list:
    return [
        sa.Column("company_id", sa.Uuid(), nullable=nullable),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete=ondelete),
    ]


def _profile_fk(column: str, ondelete: str = "SET NULL") -> list:
    return [
        sa.Column(column, sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint([column], ["profiles.id"], ondelete=ondelete),
    ]


def upgrade() -> None:
    """Create every table of the warehouse backend."""
    # ── RBAC ─────────────────────────────────────────────────────────
    op.create_table(
        "permissions",
        _id(),
        sa.Column("code", sa.String(length=128), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_permissions_code", "permissions", ["code"], unique=True)

    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("permission_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("role_id", "permission_id"),
    )

    # ── Warehouse layout ─────────────────────────────────────────────
    op.create_table(
        "warehouse_zones",
        _id(),
        sa.Column("code", sa.String(length=8), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("zone_type", _enum("zone_type"), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("total_capacity", sa.Numeric(12, 2), nullable=False),
        sa.Column("used_capacity", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
        sa.UniqueConstraint("barcode"),
    )

    op.create_table(
        "warehouse_rows",
        _id(),
        sa.Column("zone_id", sa.Uuid(), nullable=False),
        sa.Column("row_number", sa.String(length=8), nullable=False),
        sa.Column("row_code", sa.String(length=32), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("max_bins", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.Numeric(12, 2), nullable=False),
        sa.Column("used_capacity", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["zone_id"], ["warehouse_zones.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("row_code"),
        sa.UniqueConstraint("barcode"),
        sa.UniqueConstraint("zone_id", "row_number", name="uq_warehouse_rows_zone_number"),
    )
    op.create_index("ix_warehouse_rows_zone_id", "warehouse_rows", ["zone_id"])

    op.create_table(
        "bins",
        _id(),
        sa.Column("row_id", sa.Uuid(), nullable=False),
        sa.Column("bin_number", sa.String(length=8), nullable=False),
        sa.Column("location_code", sa.String(length=32), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("capacity_cubic_feet", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_occupied", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["row_id"], ["warehouse_rows.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("location_code"),
        sa.UniqueConstraint("row_id", "bin_number", name="uq_bins_row_number"),
    )
    op.create_index("ix_bins_row_id", "bins", ["row_id"])
    op.create_index("ix_bins_barcode", "bins", ["barcode"])

    # ── Tenants & people ─────────────────────────────────────────────
    op.create_table(
        "companies",
        _id(),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("client_code", sa.String(length=32), nullable=True),
        sa.Column("contact_person", sa.String(length=256), nullable=True),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("billing_address", sa.String(length=512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("storage_plan", sa.String(length=64), nullable=True),
        sa.Column("max_storage_cubic_feet", sa.Numeric(12, 2), nullable=True),
        sa.Column("monthly_fee", sa.Numeric(12, 2), nullable=True),
        sa.Column("contract_start_date", sa.Date(), nullable=True),
        sa.Column("contract_end_date", sa.Date(), nullable=True),
        sa.Column("location_type", _enum("company_location_type"), nullable=True),
        sa.Column("assigned_floor_zone_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_row_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["assigned_floor_zone_id"], ["warehouse_zones.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_row_id"], ["warehouse_rows.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_code"),
    )

    op.create_table(
        "profiles",
        _id(),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("password_hash", sa.String(length=512), nullable=True),
        sa.Column("full_name", sa.String(length=256), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        *_company_id(nullable=True, ondelete="SET NULL"),
        sa.Column("status", _enum("profile_status"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_company_id", "profiles", ["company_id"])

    op.create_table(
        "user_roles",
        sa.Column("profile_id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("profile_id", "role_id"),
    )

    op.create_table(
        "user_sessions",
        _id(),
        sa.Column("profile_id", sa.Uuid(), nullable=False),
        sa.Column("device_id", sa.String(length=256), nullable=False),
        sa.Column("role", sa.String(length=64), nullable=False),
        sa.Column("refresh_token_hash", sa.String(length=512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_sessions_profile_id", "user_sessions", ["profile_id"])
    op.create_index("ix_user_sessions_is_active", "user_sessions", ["is_active"])
    op.create_index("ix_user_sessions_profile_active", "user_sessions", ["profile_id", "is_active"])

    op.create_table(
        "password_reset_tokens",
        _id(),
        sa.Column("profile_id", sa.Uuid(), nullable=False),
        sa.Column("token_hash", sa.String(length=512), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
    )
    op.create_index("ix_password_reset_tokens_profile_id", "password_reset_tokens", ["profile_id"])

    op.create_table(
        "client_allocations",
        _id(),
        *_company_id(),
        sa.Column("zone_id", sa.Uuid(), nullable=False),
        sa.Column("allocation_type", _enum("allocation_type"), nullable=False),
        sa.Column("start_row_code", sa.String(length=32), nullable=True),
        sa.Column("end_row_code", sa.String(length=32), nullable=True),
        sa.Column("specific_bin_ids", postgresql.JSONB(), nullable=False),
        sa.Column("allocated_cubic_feet", sa.Numeric(12, 2), nullable=False),
        sa.Column("allocation_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["zone_id"], ["warehouse_zones.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_allocations_company_id", "client_allocations", ["company_id"])
    op.create_index("ix_client_allocations_zone_id", "client_allocations", ["zone_id"])

    # ── Catalogue & stock ────────────────────────────────────────────
    op.create_table(
        "client_products",
        _id(),
        *_company_id(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("length", sa.Numeric(10, 2), nullable=True),
        sa.Column("width", sa.Numeric(10, 2), nullable=True),
        sa.Column("height", sa.Numeric(10, 2), nullable=True),
        sa.Column("weight", sa.Numeric(10, 2), nullable=True),
        sa.Column("unit_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("minimum_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variants", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_products_company_id", "client_products", ["company_id"])
    op.create_index("ix_client_products_sku", "client_products", ["sku"])

    op.create_table(
        "inventory_items",
        _id(),
        *_company_id(),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location_zone", sa.String(length=8), nullable=True),
        sa.Column("location_row", sa.String(length=8), nullable=True),
        sa.Column("location_bin", sa.String(length=8), nullable=True),
        sa.Column("location_code", sa.String(length=32), nullable=True),
        sa.Column("variant_attribute", sa.String(length=128), nullable=True),
        sa.Column("variant_value", sa.String(length=128), nullable=True),
        sa.Column("movement_type", sa.String(length=32), nullable=True),
        sa.Column("last_movement_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["client_products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_items_company_id", "inventory_items", ["company_id"])
    op.create_index("ix_inventory_items_product_id", "inventory_items", ["product_id"])
    op.create_index("ix_inventory_items_location_code", "inventory_items", ["location_code"])

    # ── Orders, requests & shipments ─────────────────────────────────
    op.create_table(
        "client_orders",
        _id(),
        *_company_id(),
        sa.Column("order_number", sa.String(length=32), nullable=False),
        sa.Column("order_type", sa.String(length=32), nullable=False),
        sa.Column("status", _enum("client_order_status"), nullable=False),
        sa.Column("requested_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_profile_fk("created_by"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number"),
    )
    op.create_index("ix_client_orders_company_id", "client_orders", ["company_id"])

    op.create_table(
        "client_order_items",
        _id(),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["order_id"], ["client_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["client_products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_order_items_order_id", "client_order_items", ["order_id"])

    op.create_table(
        "check_in_requests",
        _id(),
        *_company_id(),
        sa.Column("request_number", sa.String(length=32), nullable=False),
        *_profile_fk("requested_by"),
        sa.Column("status", _enum("check_in_status"), nullable=False),
        sa.Column("requested_products", postgresql.JSONB(), nullable=False),
        sa.Column("amended_products", postgresql.JSONB(), nullable=True),
        sa.Column("was_amended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("amendment_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_profile_fk("reviewed_by"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("requested_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_number"),
    )
    op.create_index("ix_check_in_requests_company_id", "check_in_requests", ["company_id"])
    op.create_index("ix_check_in_requests_status", "check_in_requests", ["status"])

    op.create_table(
        "check_out_requests",
        _id(),
        *_company_id(),
        sa.Column("request_number", sa.String(length=32), nullable=False),
        *_profile_fk("requested_by"),
        sa.Column("status", _enum("check_out_status"), nullable=False),
        sa.Column("requested_items", postgresql.JSONB(), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("shipping_address", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_profile_fk("reviewed_by"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_number"),
    )
    op.create_index("ix_check_out_requests_company_id", "check_out_requests", ["company_id"])
    op.create_index("ix_check_out_requests_status", "check_out_requests", ["status"])

    op.create_table(
        "shipments",
        _id(),
        *_company_id(),
        sa.Column("shipment_number", sa.String(length=32), nullable=False),
        sa.Column("status", _enum("shipment_status"), nullable=False),
        sa.Column("carrier", sa.String(length=128), nullable=True),
        sa.Column("tracking_number", sa.String(length=128), nullable=True),
        sa.Column("destination", sa.Text(), nullable=True),
        sa.Column("shipment_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shipment_number"),
    )
    op.create_index("ix_shipments_company_id", "shipments", ["company_id"])

    op.create_table(
        "shipment_items",
        _id(),
        sa.Column("shipment_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("product_name", sa.String(length=200), nullable=False),
        sa.Column("variant_attribute", sa.String(length=128), nullable=True),
        sa.Column("variant_value", sa.String(length=128), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["shipment_id"], ["shipments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["client_products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shipment_items_shipment_id", "shipment_items", ["shipment_id"])

    # ── Messaging & activity ─────────────────────────────────────────
    op.create_table(
        "messages",
        _id(),
        *_profile_fk("sender_id"),
        *_profile_fk("recipient_id"),
        *_company_id(nullable=True),
        sa.Column("subject", sa.String(length=256), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("message_type", _enum("message_type"), nullable=False),
        sa.Column("priority", _enum("message_priority"), nullable=False),
        sa.Column("status", _enum("message_status"), nullable=False),
        sa.Column("thread_id", sa.Uuid(), nullable=True),
        sa.Column("is_system_message", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_company_id", "messages", ["company_id"])
    op.create_index("ix_messages_recipient_id", "messages", ["recipient_id"])
    op.create_index("ix_messages_thread_id", "messages", ["thread_id"])

    op.create_table(
        "client_activity_logs",
        _id(),
        *_profile_fk("user_id"),
        *_company_id(nullable=True),
        sa.Column("activity_type", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_activity_logs_company_id", "client_activity_logs", ["company_id"])
    op.create_index("ix_client_activity_logs_activity_type", "client_activity_logs", ["activity_type"])

    op.create_table(
        "admin_sessions",
        _id(),
        sa.Column("admin_user_id", sa.Uuid(), nullable=False),
        sa.Column("viewed_company_id", sa.Uuid(), nullable=False),
        sa.Column("session_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["admin_user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["viewed_company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_sessions_admin_user_id", "admin_sessions", ["admin_user_id"])

    # ── Delivery ─────────────────────────────────────────────────────
    op.create_table(
        "delivery_carriers",
        _id(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("carrier_type", _enum("carrier_type"), nullable=False),
        sa.Column("contact_name", sa.String(length=128), nullable=True),
        sa.Column("contact_email", sa.String(length=256), nullable=True),
        sa.Column("contact_phone", sa.String(length=32), nullable=True),
        sa.Column("base_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("per_kg_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_days_domestic", sa.Integer(), nullable=False),
        sa.Column("estimated_days_international", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "delivery_drivers",
        _id(),
        sa.Column("carrier_id", sa.Uuid(), nullable=True),
        sa.Column("full_name", sa.String(length=256), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("vehicle_type", sa.String(length=64), nullable=True),
        sa.Column("vehicle_plate", sa.String(length=32), nullable=True),
        sa.Column("status", _enum("driver_status"), nullable=False),
        sa.Column("total_deliveries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("successful_deliveries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["carrier_id"], ["delivery_carriers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "delivery_orders",
        _id(),
        *_company_id(),
        sa.Column("order_number", sa.String(length=32), nullable=False),
        sa.Column("check_out_request_id", sa.Uuid(), nullable=True),
        sa.Column("source", _enum("delivery_source"), nullable=False),
        sa.Column("recipient_name", sa.String(length=256), nullable=False),
        sa.Column("recipient_email", sa.String(length=256), nullable=True),
        sa.Column("recipient_phone", sa.String(length=32), nullable=True),
        sa.Column("shipping_address_line1", sa.String(length=256), nullable=False),
        sa.Column("shipping_address_line2", sa.String(length=256), nullable=True),
        sa.Column("shipping_city", sa.String(length=128), nullable=False),
        sa.Column("shipping_state", sa.String(length=128), nullable=True),
        sa.Column("shipping_postal_code", sa.String(length=32), nullable=True),
        sa.Column("shipping_country", sa.String(length=64), nullable=False),
        sa.Column("delivery_type", _enum("delivery_type"), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("scheduled_time_slot", sa.String(length=64), nullable=True),
        sa.Column("delivery_instructions", sa.Text(), nullable=True),
        sa.Column("status", _enum("delivery_order_status"), nullable=False),
        sa.Column("status_history", postgresql.JSONB(), nullable=False),
        sa.Column("carrier_id", sa.Uuid(), nullable=True),
        sa.Column("driver_id", sa.Uuid(), nullable=True),
        sa.Column("tracking_number", sa.String(length=128), nullable=True),
        sa.Column("tracking_url", sa.String(length=512), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("shipping_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("fulfillment_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("carrier_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("packaging_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("picked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("packed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        *_profile_fk("created_by"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["check_out_request_id"], ["check_out_requests.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["carrier_id"], ["delivery_carriers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["driver_id"], ["delivery_drivers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number"),
    )
    op.create_index("ix_delivery_orders_company_id", "delivery_orders", ["company_id"])
    op.create_index("ix_delivery_orders_status", "delivery_orders", ["status"])

    op.create_table(
        "delivery_order_items",
        _id(),
        sa.Column("delivery_order_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("product_name", sa.String(length=200), nullable=False),
        sa.Column("product_sku", sa.String(length=64), nullable=True),
        sa.Column("variant_attribute", sa.String(length=128), nullable=True),
        sa.Column("variant_value", sa.String(length=128), nullable=True),
        sa.Column("quantity_ordered", sa.Integer(), nullable=False),
        sa.Column("quantity_picked", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity_packed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity_shipped", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("bin_location", sa.String(length=32), nullable=True),
        sa.Column("pick_status", _enum("pick_status"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["delivery_order_id"], ["delivery_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["client_products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_delivery_order_items_delivery_order_id", "delivery_order_items", ["delivery_order_id"])

    op.create_table(
        "delivery_tracking_events",
        _id(),
        sa.Column("delivery_order_id", sa.Uuid(), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("event_status", sa.String(length=32), nullable=True),
        sa.Column("event_description", sa.Text(), nullable=False),
        sa.Column("location_address", sa.String(length=512), nullable=True),
        *_profile_fk("performed_by"),
        sa.Column("performer_name", sa.String(length=256), nullable=True),
        sa.Column("performer_role", sa.String(length=64), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["delivery_order_id"], ["delivery_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_delivery_tracking_events_delivery_order_id",
        "delivery_tracking_events",
        ["delivery_order_id"],
    )

    # ── Money & reports ──────────────────────────────────────────────
    op.create_table(
        "financial_transactions",
        _id(),
        sa.Column("transaction_type", _enum("transaction_type"), nullable=False),
        sa.Column("category", _enum("transaction_category"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        *_company_id(nullable=True, ondelete="SET NULL"),
        sa.Column("delivery_order_id", sa.Uuid(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_number", sa.String(length=128), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("is_reconciled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("reconciled_at", sa.DateTime(timezone=True), nullable=True),
        *_profile_fk("created_by"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["delivery_order_id"], ["delivery_orders.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_financial_transactions_company_id", "financial_transactions", ["company_id"])
    op.create_index("ix_financial_transactions_transaction_date", "financial_transactions", ["transaction_date"])

    op.create_table(
        "reconciliation_reports",
        _id(),
        sa.Column("report_name", sa.String(length=256), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        *_company_id(nullable=True),
        sa.Column("report_data", postgresql.JSONB(), nullable=False),
        sa.Column("total_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_with_variance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_profile_fk("created_by"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reconciliation_reports_company_id", "reconciliation_reports", ["company_id"])


def downgrade() -> None:
    """Drop every table and enum type, children first."""
    for table in (
        "reconciliation_reports",
        "financial_transactions",
        "delivery_tracking_events",
        "delivery_order_items",
        "delivery_orders",
        "delivery_drivers",
        "delivery_carriers",
        "admin_sessions",
        "client_activity_logs",
        "messages",
        "shipment_items",
        "shipments",
        "check_out_requests",
        "check_in_requests",
        "client_order_items",
        "client_orders",
        "inventory_items",
        "client_products",
        "client_allocations",
        "password_reset_tokens",
        "user_sessions",
        "user_roles",
        "profiles",
        "companies",
        "bins",
        "warehouse_rows",
        "warehouse_zones",
        "role_permissions",
        "roles",
        "permissions",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        sa.Enum(name=name).drop(bind, checkfirst=True)
