"""Role permission sets, data scopes and the permission dependency."""
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from tests.conftest import make_profile
from wms.models.user import ProfileStatus
from wms.rbac import dependencies
from wms.rbac.context_resolver import DataScope, resolve_data_scope
from wms.rbac.dependencies import collect_permission_codes, require_permission
from wms.rbac.permission_seed import ALL_CODES, PERMISSIONS, permissions_for
from wms.rbac.roles import ADMIN_ROLES, CLIENT_ROLES, UserRole, is_admin_role, parse_role


# ── Roles ────────────────────────────────────────────────────────────
def test_audiences_partition_the_roles():
    assert ADMIN_ROLES | CLIENT_ROLES == set(UserRole)
    assert not ADMIN_ROLES & CLIENT_ROLES


def test_parse_role():
    assert parse_role(" Client_Admin ") == UserRole.CLIENT_ADMIN
    assert parse_role("janitor") is None
    assert is_admin_role("warehouse_manager")


def test_permission_codes_are_unique():
    assert len(ALL_CODES) == len({p["code"] for p in PERMISSIONS})


@pytest.mark.parametrize("role", list(UserRole))
def test_every_granted_code_exists(role):
    assert permissions_for(role) <= set(ALL_CODES)


def test_user_management_is_admin_only():
    holders = {role for role in UserRole if "user.manage" in permissions_for(role)}
    assert holders == {UserRole.SUPER_ADMIN, UserRole.ADMIN}
    assert "financial.view" not in permissions_for(UserRole.WAREHOUSE_MANAGER)


def test_client_roles_never_review_or_touch_locations():
    for role in CLIENT_ROLES:
        granted = permissions_for(role)
        assert not granted & {"request.review", "location.manage", "delivery.view", "delivery.manage"}


def test_client_user_is_the_narrowest_client_role():
    client_user = permissions_for(UserRole.CLIENT_USER)
    assert "product.manage" not in client_user
    assert "client_user.manage" in permissions_for(UserRole.CLIENT_ADMIN)
    assert client_user < permissions_for(UserRole.CLIENT) < permissions_for(UserRole.CLIENT_ADMIN)


# ── DataScope ────────────────────────────────────────────────────────
def test_admin_scope_passes_requested_company_through(admin_scope):
    other = uuid.uuid4()
    assert admin_scope.company_filter() is None
    assert admin_scope.company_filter(other) == other
    admin_scope.ensure_company(other)


def test_client_scope_is_pinned(client_scope, company_id):
    assert client_scope.company_filter() == company_id
    assert client_scope.company_filter(company_id) == company_id
    with pytest.raises(HTTPException) as exc:
        client_scope.company_filter(uuid.uuid4())
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException):
        client_scope.ensure_company(uuid.uuid4())


def test_scope_without_company_is_refused():
    scope = DataScope(profile_id=uuid.uuid4(), role=UserRole.CLIENT)
    with pytest.raises(HTTPException) as exc:
        scope.company_filter()
    assert exc.value.status_code == 403


async def test_client_scope_resolves_without_database(client_user, company_id):
    db = MagicMock()
    scope = await resolve_data_scope(client_user, db)
    assert scope.company_id == company_id
    assert not scope.is_admin
    assert not scope.is_staff
    db.execute.assert_not_called()


async def test_staff_scope_narrows_while_viewing_as_client(admin, db):
    viewed = uuid.uuid4()
    session = SimpleNamespace(id=uuid.uuid4(), viewed_company_id=viewed)
    db.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=session))

    scope = await resolve_data_scope(admin, db)

    assert scope.viewing_as_client
    assert scope.company_id == viewed
    assert scope.admin_session_id == session.id
    assert not scope.is_admin
    assert scope.is_staff


async def test_staff_scope_is_unrestricted_without_session(admin, db):
    db.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))
    scope = await resolve_data_scope(admin, db)
    assert scope.is_admin
    assert scope.company_id is None


async def test_client_without_company_is_refused():
    with pytest.raises(HTTPException) as exc:
        await resolve_data_scope(make_profile(UserRole.CLIENT_USER), MagicMock())
    assert exc.value.status_code == 403


# ── require_permission ───────────────────────────────────────────────
async def test_require_permission_checks_every_code(monkeypatch, db):
    profile = make_profile(UserRole.WAREHOUSE_MANAGER)
    monkeypatch.setattr(dependencies, "_load_profile_with_permissions", AsyncMock(return_value=profile))
    payload = {"sub": str(profile.id)}

    assert await require_permission("location.view", "location.manage")(payload, db) is profile
    with pytest.raises(HTTPException) as exc:
        await require_permission("location.view", "user.manage")(payload, db)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


async def test_disabled_profile_is_refused(monkeypatch, db):
    profile = make_profile(UserRole.ADMIN, status=ProfileStatus.DISABLED)
    monkeypatch.setattr(dependencies, "_load_profile_with_permissions", AsyncMock(return_value=profile))
    with pytest.raises(HTTPException) as exc:
        await require_permission("product.view")({"sub": str(profile.id)}, db)
    assert exc.value.detail == "Account disabled"


async def test_token_without_subject_is_unauthorized(db):
    with pytest.raises(HTTPException) as exc:
        await require_permission("product.view")({}, db)
    assert exc.value.status_code == 401


def test_collect_permission_codes():
    assert collect_permission_codes(make_profile(UserRole.CLIENT_USER)) == permissions_for(UserRole.CLIENT_USER)
