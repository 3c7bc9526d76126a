"""Service-layer behaviour against a mocked session."""
import uuid
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import aiosmtplib
import pytest
from fastapi import HTTPException

from tests.conftest import make_profile
from wms.core.config import settings
from wms.core.security import create_refresh_token, decode_token, hash_password, hash_token
from wms.domain.reconciliation import ReconciliationRow
from wms.models.allocation import AllocationType
from wms.models.company import Company
from wms.models.delivery import DeliveryDriver, DeliveryOrder, DeliveryOrderStatus, DeliveryTrackingEvent, DriverStatus
from wms.models.financial import TransactionCategory, TransactionType
from wms.models.inventory import InventoryItem
from wms.models.location import WarehouseZone
from wms.models.message import Message, MessageStatus
from wms.models.product import ClientProduct
from wms.models.report import ReconciliationReport
from wms.models.requests import CheckInRequest, CheckOutRequest, RequestStatus
from wms.models.session import UserSession
from wms.rbac.roles import UserRole
from wms.services import (
    allocation_service,
    auth_service,
    delivery_service,
    email_service,
    financial_service,
    inventory_service,
    message_service,
    product_service,
    report_service,
    request_service,
    session_service,
    user_service,
)


def _result(*, one=None, many=()):
    result = MagicMock()
    result.scalar_one_or_none.return_value = one
    result.scalars.return_value.all.return_value = list(many)
    return result


def _lookup(db, objects: dict):
    db.get.side_effect = lambda model, key: objects.get(model)


# ── Delivery ─────────────────────────────────────────────────────────
def _order(company_id, status=DeliveryOrderStatus.SHIPPED, driver_id=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        order_number="DLV-20250301-0001",
        company_id=company_id,
        status=status,
        status_history=[{"status": "pending", "timestamp": "2025-03-01T00:00:00+00:00"}],
        driver_id=driver_id,
        delivered_at=None,
    )


async def test_status_change_is_recorded(db, admin, admin_scope, company_id):
    driver = SimpleNamespace(total_deliveries=4, successful_deliveries=3, status=DriverStatus.ON_DELIVERY)
    order = _order(company_id, driver_id=uuid.uuid4())
    _lookup(db, {DeliveryOrder: order, DeliveryDriver: driver})

    await delivery_service.update_status(order.id, DeliveryOrderStatus.DELIVERED, admin, db, admin_scope, note="Left at door")

    assert order.status == DeliveryOrderStatus.DELIVERED
    assert [h["status"] for h in order.status_history] == ["pending", "delivered"]
    assert order.status_history[-1]["note"] == "Left at door"
    assert isinstance(order.delivered_at, datetime)
    assert (driver.total_deliveries, driver.successful_deliveries) == (5, 4)
    assert driver.status == DriverStatus.AVAILABLE

    event = db.add.call_args.args[0]
    assert isinstance(event, DeliveryTrackingEvent)
    assert event.event_type == "status_change"
    assert event.event_description == "Order status changed to delivered: Left at door"
    assert event.performer_role == "admin"


async def test_failed_delivery_counts_against_driver(db, admin, admin_scope, company_id):
    driver = SimpleNamespace(total_deliveries=0, successful_deliveries=0, status=DriverStatus.ON_DELIVERY)
    order = _order(company_id, driver_id=uuid.uuid4())
    _lookup(db, {DeliveryOrder: order, DeliveryDriver: driver})

    await delivery_service.update_status(order.id, DeliveryOrderStatus.FAILED, admin, db, admin_scope)

    assert (driver.total_deliveries, driver.successful_deliveries) == (1, 0)


async def test_finished_order_is_locked(db, admin, admin_scope, company_id):
    order = _order(company_id, status=DeliveryOrderStatus.DELIVERED)
    _lookup(db, {DeliveryOrder: order})

    with pytest.raises(HTTPException) as exc:
        await delivery_service.update_status(order.id, DeliveryOrderStatus.RETURNED, admin, db, admin_scope)

    assert exc.value.status_code == 400
    db.add.assert_not_called()


async def test_client_cannot_see_other_company_order(db, client_scope):
    _lookup(db, {DeliveryOrder: _order(uuid.uuid4())})
    with pytest.raises(HTTPException) as exc:
        await delivery_service.get_order(uuid.uuid4(), db, client_scope)
    assert exc.value.status_code == 403


def _driver(status=DriverStatus.AVAILABLE):
    return SimpleNamespace(id=uuid.uuid4(), full_name="Sam Road", is_active=True, status=status)


async def test_driver_cannot_join_a_finished_order(db, admin, admin_scope, company_id):
    driver = _driver()
    _lookup(db, {DeliveryOrder: _order(company_id, status=DeliveryOrderStatus.DELIVERED), DeliveryDriver: driver})

    with pytest.raises(HTTPException) as exc:
        await delivery_service.assign_driver(uuid.uuid4(), driver.id, admin, db, admin_scope)

    assert exc.value.status_code == 400
    assert driver.status == DriverStatus.AVAILABLE


async def test_reassigning_frees_the_previous_driver(db, admin, admin_scope, company_id):
    previous = _driver(DriverStatus.ON_DELIVERY)
    driver = _driver()
    order = _order(company_id, driver_id=previous.id)
    drivers = {previous.id: previous, driver.id: driver}
    db.get.side_effect = lambda model, key: order if model is DeliveryOrder else drivers.get(key)

    await delivery_service.assign_driver(order.id, driver.id, admin, db, admin_scope)

    assert order.driver_id == driver.id
    assert driver.status == DriverStatus.ON_DELIVERY
    assert previous.status == DriverStatus.AVAILABLE


async def test_missing_order_is_404(db, admin_scope):
    with pytest.raises(HTTPException) as exc:
        await delivery_service.get_order(uuid.uuid4(), db, admin_scope)
    assert exc.value.status_code == 404


# ── Financial ────────────────────────────────────────────────────────
async def test_negative_amount_is_rejected(db, admin, admin_scope):
    with pytest.raises(HTTPException) as exc:
        await financial_service.create_transaction(
            TransactionType.COST, TransactionCategory.CARRIER_COST, Decimal("-1"), admin, db, admin_scope
        )
    assert exc.value.status_code == 400
    db.add.assert_not_called()


async def test_transaction_inherits_company_from_delivery_order(db, admin, admin_scope, company_id):
    order = SimpleNamespace(company_id=company_id)
    _lookup(db, {DeliveryOrder: order})

    txn = await financial_service.create_transaction(
        TransactionType.REVENUE,
        TransactionCategory.SHIPPING_FEE,
        Decimal("12.50"),
        admin,
        db,
        admin_scope,
        delivery_order_id=uuid.uuid4(),
    )

    assert txn.company_id == company_id
    assert txn.currency == "USD"
    assert not txn.is_reconciled
    db.add.assert_called_once_with(txn)


async def test_unknown_delivery_order_is_404(db, admin, admin_scope):
    with pytest.raises(HTTPException) as exc:
        await financial_service.create_transaction(
            TransactionType.REVENUE, TransactionCategory.SHIPPING_FEE, Decimal("5"), admin, db, admin_scope,
            delivery_order_id=uuid.uuid4(),
        )
    assert exc.value.status_code == 404


# ── Messages ─────────────────────────────────────────────────────────
async def test_mark_read_only_flushes_unread(db, client_user, client_scope):
    message = SimpleNamespace(status=MessageStatus.UNREAD)
    db.execute.return_value = _result(one=message)

    await message_service.mark_read(uuid.uuid4(), client_user, client_scope, db)
    await message_service.mark_read(uuid.uuid4(), client_user, client_scope, db)

    assert message.status == MessageStatus.READ
    db.flush.assert_awaited_once()


async def test_message_outside_scope_is_404(db, client_user, client_scope):
    db.execute.return_value = _result(one=None)
    with pytest.raises(HTTPException) as exc:
        await message_service.archive(uuid.uuid4(), client_user, client_scope, db)
    assert exc.value.status_code == 404


# ── Allocations ──────────────────────────────────────────────────────
def _allocation_db(db, existing):
    zone = SimpleNamespace(id=uuid.uuid4(), code="A")
    _lookup(db, {Company: SimpleNamespace(), WarehouseZone: zone})
    db.execute.return_value = _result(many=existing)
    return zone


async def test_overlapping_row_range_is_a_conflict(db, company_id):
    zone = _allocation_db(db, [])
    db.execute.return_value = _result(
        many=[
            SimpleNamespace(
                zone_id=zone.id,
                allocation_type=AllocationType.ROW_RANGE,
                start_row_code="A01",
                end_row_code="A05",
                is_active=True,
            )
        ]
    )
    with pytest.raises(HTTPException) as exc:
        await allocation_service.create_allocation(
            company_id, zone.id, AllocationType.ROW_RANGE, db, start_row_code="A04", end_row_code="A08"
        )
    assert exc.value.status_code == 409


async def test_row_range_needs_both_ends(db, company_id):
    zone = _allocation_db(db, [])
    with pytest.raises(HTTPException) as exc:
        await allocation_service.create_allocation(company_id, zone.id, AllocationType.ROW_RANGE, db, start_row_code="A01")
    assert exc.value.status_code == 400


async def test_specific_bins_are_saved_with_a_warning(db, company_id):
    zone = _allocation_db(db, [])
    bins = [uuid.uuid4(), uuid.uuid4()]

    result = await allocation_service.create_allocation(
        company_id, zone.id, AllocationType.SPECIFIC_BINS, db, specific_bin_ids=bins
    )

    assert result.unchecked
    assert result.warning
    assert result.allocation.specific_bin_ids == [str(b) for b in bins]
    assert result.allocation.start_row_code is None


async def test_specific_bins_in_a_whole_zone_allocation_conflict(db, company_id):
    zone = _allocation_db(db, [])
    db.execute.return_value = _result(
        many=[SimpleNamespace(zone_id=zone.id, allocation_type=AllocationType.ZONE, is_active=True)]
    )
    with pytest.raises(HTTPException) as exc:
        await allocation_service.create_allocation(
            company_id, zone.id, AllocationType.SPECIFIC_BINS, db, specific_bin_ids=[uuid.uuid4()]
        )
    assert exc.value.status_code == 409


# ── Users ────────────────────────────────────────────────────────────
async def test_employee_list_only_selects_staff_roles(db):
    db.execute.return_value = _result()

    await user_service.list_employees(db)

    sql = str(db.execute.await_args.args[0].compile(compile_kwargs={"literal_binds": True}))
    assert "'warehouse_manager'" in sql
    assert "'client_user'" not in sql


async def test_client_user_list_never_selects_staff_roles(db, admin_scope):
    db.execute.return_value = _result()

    await user_service.list_client_users(db, admin_scope)

    sql = str(db.execute.await_args.args[0].compile(compile_kwargs={"literal_binds": True}))
    assert "'client_user'" in sql
    assert "'admin'" not in sql


async def test_employee_needs_a_staff_role(db, admin):
    with pytest.raises(HTTPException) as exc:
        await user_service.create_employee(admin, "new@example.com", "long-enough-pw", "New", UserRole.CLIENT_USER, db)
    assert exc.value.status_code == 400


async def test_only_user_admins_create_employees(db):
    manager = make_profile(UserRole.WAREHOUSE_MANAGER)
    with pytest.raises(HTTPException) as exc:
        await user_service.create_employee(manager, "new@example.com", "long-enough-pw", "New", UserRole.ADMIN, db)
    assert exc.value.status_code == 403


async def test_client_user_cannot_be_given_a_staff_role(db, admin_scope, company_id):
    with pytest.raises(HTTPException) as exc:
        await user_service.create_client_user(
            admin_scope, company_id, "new@example.com", "long-enough-pw", db, role=UserRole.ADMIN
        )
    assert exc.value.status_code == 400


# ── Requests ─────────────────────────────────────────────────────────
def _check_in(company_id, status=RequestStatus.PENDING):
    return SimpleNamespace(
        id=uuid.uuid4(),
        request_number="CI-20250301-0A1B",
        company_id=company_id,
        status=status,
        rejection_reason=None,
        reviewed_by=None,
        reviewed_at=None,
    )


async def test_rejection_needs_a_reason(db, admin, admin_scope):
    with pytest.raises(HTTPException) as exc:
        await request_service.reject_check_in(uuid.uuid4(), "  ", admin, db, admin_scope)
    assert exc.value.status_code == 400


async def test_rejection_notifies_the_company(db, admin, admin_scope, company_id):
    request = _check_in(company_id)
    _lookup(db, {CheckInRequest: request})

    await request_service.reject_check_in(request.id, " Damaged pallet ", admin, db, admin_scope)

    assert request.status == RequestStatus.REJECTED
    assert request.rejection_reason == "Damaged pallet"
    assert request.reviewed_by == admin.id
    notice = db.add.call_args_list[-1].args[0]
    assert isinstance(notice, Message)
    assert notice.is_system_message
    assert notice.company_id == company_id
    assert notice.thread_id == notice.id


async def test_reviewed_request_cannot_be_reviewed_again(db, admin, admin_scope, company_id):
    request = _check_in(company_id, status=RequestStatus.APPROVED)
    _lookup(db, {CheckInRequest: request})
    with pytest.raises(HTTPException) as exc:
        await request_service.approve_check_in(request.id, admin, db, admin_scope)
    assert exc.value.status_code == 400


# ── Email ────────────────────────────────────────────────────────────
def test_mail_has_plain_text_and_html_parts():
    message = email_service._compose(
        "a@example.com", "Hi", heading="Hello", intro="Intro", link="http://x/y", label="Go", note="Bye"
    )
    assert message.get_content_type() == "multipart/alternative"
    plain, html = message.iter_parts()
    assert "Go: http://x/y" in plain.get_content()
    assert 'href="http://x/y"' in html.get_content()


async def test_reset_mail_failure_propagates(monkeypatch):
    monkeypatch.setattr(email_service.aiosmtplib, "send", AsyncMock(side_effect=aiosmtplib.SMTPException("down")))
    with pytest.raises(aiosmtplib.SMTPException):
        await email_service.send_password_reset_email("a@example.com", "tok")


async def test_welcome_mail_failure_is_logged_only(monkeypatch):
    send = AsyncMock(side_effect=aiosmtplib.SMTPException("down"))
    monkeypatch.setattr(email_service.aiosmtplib, "send", send)
    await email_service.send_welcome_email("a@example.com", "Acme")
    assert send.await_args.kwargs["start_tls"] == settings.EMAIL_START_TLS


# ── Auth ─────────────────────────────────────────────────────────────
@pytest.fixture
def signed_up(monkeypatch):
    profile = make_profile(UserRole.ADMIN, password_hash=hash_password("correct horse"))
    monkeypatch.setattr(user_service, "get_profile_by_email", AsyncMock(return_value=profile))
    monkeypatch.setattr(session_service, "retire_idle_sessions", AsyncMock(return_value=0))
    return profile


async def test_login_with_wrong_password_is_refused(db, signed_up):
    with pytest.raises(HTTPException) as exc:
        await auth_service.authenticate_user(signed_up.email, "battery staple", db)
    assert exc.value.status_code == 401


async def test_login_opens_a_session(db, signed_up):
    body = await auth_service.authenticate_user(signed_up.email, "correct horse", db)

    session = db.add.call_args.args[0]
    assert isinstance(session, UserSession)
    assert session.refresh_token_hash == hash_token(body["refresh_token"])
    assert decode_token(body["access_token"])["session_id"] == str(session.id)
    assert body["role"] == "admin"


async def test_refresh_rotates_and_refuses_replay(db, monkeypatch, signed_up):
    session_id = uuid.uuid4()
    first = create_refresh_token({"sub": str(signed_up.id), "session_id": str(session_id)})
    session = SimpleNamespace(id=session_id, profile_id=signed_up.id, refresh_token_hash=hash_token(first))
    monkeypatch.setattr(session_service, "get_active_session_by_id", AsyncMock(return_value=session))
    db.execute.return_value = _result(one=signed_up)

    body = await auth_service.refresh_access_token(first, db)
    assert session.refresh_token_hash == hash_token(body["refresh_token"])

    with pytest.raises(HTTPException) as exc:
        await auth_service.refresh_access_token(first, db)
    assert exc.value.detail == "Refresh token already used"


# ── Stock movement ───────────────────────────────────────────────────
def _pending_check_in(company_id, products):
    return CheckInRequest(
        id=uuid.uuid4(),
        company_id=company_id,
        request_number="CI-20250301-0C2D",
        status=RequestStatus.PENDING,
        requested_products=products,
        amended_products=None,
        was_amended=False,
    )


@pytest.fixture
def received(monkeypatch):
    receive = AsyncMock()
    monkeypatch.setattr(inventory_service, "receive_stock", receive)
    return receive


async def test_check_in_merges_variants_into_existing_product(db, admin, admin_scope, company_id, received):
    product = SimpleNamespace(
        id=uuid.uuid4(),
        company_id=company_id,
        quantity=0,
        variants=[{"attribute": "Size", "values": [{"value": "M", "quantity": 5}]}],
    )
    incoming = [{"attribute": "size", "values": [{"value": "m", "quantity": 2}, {"value": "L", "quantity": 1}]}]
    request = _pending_check_in(
        company_id, [{"name": "Shirt", "product_id": str(product.id), "quantity": 0, "variants": incoming}]
    )
    _lookup(db, {CheckInRequest: request, ClientProduct: product})

    await request_service.approve_check_in(request.id, admin, db, admin_scope)

    assert [(v["value"], v["quantity"]) for v in product.variants[0]["values"]] == [("M", 7), ("L", 1)]
    received.assert_awaited_once_with(company_id, product.id, 3, db)
    assert request.status == RequestStatus.APPROVED
    assert request.reviewed_by == admin.id


async def test_amended_check_in_creates_missing_product(db, monkeypatch, admin, admin_scope, company_id, received):
    monkeypatch.setattr(product_service, "find_by_name", AsyncMock(return_value=None))
    request = _pending_check_in(company_id, [{"name": "Mug", "quantity": 10, "variants": []}])
    _lookup(db, {CheckInRequest: request})

    await request_service.amend_and_approve_check_in(
        request.id, [{"name": "Mug", "quantity": 8}], admin, db, admin_scope, amendment_notes="Two broken"
    )

    created = next(c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], ClientProduct))
    assert (created.name, created.quantity, created.company_id) == ("Mug", 8, company_id)
    received.assert_awaited_once_with(company_id, created.id, 8, db)
    assert request.was_amended
    assert request.status == RequestStatus.APPROVED


async def test_check_out_falls_back_to_product_row(db, monkeypatch, admin, admin_scope, company_id):
    product_id = uuid.uuid4()
    request = SimpleNamespace(
        id=uuid.uuid4(),
        request_number="CO-20250301-0E3F",
        company_id=company_id,
        status=RequestStatus.PENDING,
        requested_items=[
            {"product_id": str(product_id), "variant_attribute": "Size", "variant_value": "S", "quantity": 2}
        ],
    )
    _lookup(db, {CheckOutRequest: request})
    monkeypatch.setattr(inventory_service, "available_quantity", AsyncMock(return_value=0))
    release = AsyncMock()
    monkeypatch.setattr(inventory_service, "release_stock", release)

    await request_service.approve_check_out(request.id, admin, db, admin_scope)

    release.assert_awaited_once_with(company_id, product_id, 2, db, variant_attribute=None, variant_value=None)
    assert request.status == RequestStatus.APPROVED


async def test_release_refuses_more_than_stocked(db, company_id):
    rows = [SimpleNamespace(quantity=1), SimpleNamespace(quantity=2)]
    db.execute.return_value = _result(many=rows)

    with pytest.raises(HTTPException) as exc:
        await inventory_service.release_stock(company_id, uuid.uuid4(), 5, db)

    assert exc.value.status_code == 400
    assert [r.quantity for r in rows] == [1, 2]


async def test_release_drains_oldest_rows_first(db, company_id):
    rows = [SimpleNamespace(quantity=1), SimpleNamespace(quantity=2)]
    db.execute.return_value = _result(many=rows)

    await inventory_service.release_stock(company_id, uuid.uuid4(), 2, db)

    assert [r.quantity for r in rows] == [0, 1]
    assert rows[0].movement_type == "check_out"


# ── Reconciliation write-back ────────────────────────────────────────
async def test_counted_quantity_replaces_matching_stock(db, company_id):
    rows = [SimpleNamespace(quantity=4), SimpleNamespace(quantity=3)]
    db.execute.return_value = _result(many=rows)

    item = await inventory_service.set_counted_quantity(company_id, uuid.uuid4(), 6, db)

    assert item is rows[0]
    assert [r.quantity for r in rows] == [6, 0]
    assert item.movement_type == "reconciliation"
    db.add.assert_not_called()


async def test_counted_quantity_creates_missing_variant_row(db, company_id):
    db.execute.return_value = _result()
    product_id = uuid.uuid4()

    item = await inventory_service.set_counted_quantity(
        company_id, product_id, 5, db, variant_attribute="Size", variant_value="S"
    )

    db.add.assert_called_once_with(item)
    assert isinstance(item, InventoryItem)
    assert (item.product_id, item.quantity, item.variant_attribute, item.variant_value) == (product_id, 5, "Size", "S")


def _report_row(product_id, expected, **variant):
    return ReconciliationRow(
        product_id=str(product_id),
        product_name="Widget",
        starting_quantity=expected,
        check_ins=0,
        check_outs=0,
        expected_quantity=expected,
        **variant,
    )


@pytest.fixture
def counted(monkeypatch):
    write = AsyncMock()
    monkeypatch.setattr(inventory_service, "set_counted_quantity", write)
    return write


async def test_saving_reconciliation_corrects_inventory(db, monkeypatch, admin, admin_scope, company_id, counted):
    product_id = uuid.uuid4()
    rows = [
        _report_row(product_id, 11),
        _report_row(product_id, 4, variant_attribute="Size", variant_value="S"),
        _report_row(product_id, 2, variant_attribute="Size", variant_value="M"),
    ]
    monkeypatch.setattr(report_service, "generate_reconciliation", AsyncMock(return_value=rows))
    _lookup(db, {Company: SimpleNamespace(name="Acme")})

    report = await report_service.save_reconciliation(
        company_id, date(2025, 3, 1), date(2025, 3, 31), admin, db, admin_scope, actuals={0: 11, 1: 3}
    )

    counted.assert_awaited_once_with(company_id, product_id, 3, db, variant_attribute="Size", variant_value="S")
    assert report.items_with_variance == 1


async def test_updating_counts_corrects_inventory(db, admin_scope, company_id, counted):
    product_id = uuid.uuid4()
    report = SimpleNamespace(
        id=uuid.uuid4(),
        company_id=company_id,
        report_data=[_report_row(product_id, 11).to_dict(), _report_row(product_id, 4).to_dict()],
        items_with_variance=0,
        notes=None,
    )
    _lookup(db, {ReconciliationReport: report})

    await report_service.update_actuals(report.id, {0: 9, 1: 4}, db, admin_scope)

    counted.assert_awaited_once_with(company_id, product_id, 9, db, variant_attribute=None, variant_value=None)
    assert report.items_with_variance == 1
    assert report.report_data[0]["variance"] == -2
