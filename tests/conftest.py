import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

import wms.models  # noqa: F401
from wms.models.permission import Permission
from wms.models.role import Role
from wms.models.user import Profile, ProfileStatus
from wms.rbac.context_resolver import DataScope
from wms.rbac.permission_seed import permissions_for
from wms.rbac.roles import UserRole


def make_profile(role: UserRole, company_id: uuid.UUID | None = None, **fields) -> Profile:
    """A detached profile holding one role with that role's default permissions."""
    profile = Profile(
        id=uuid.uuid4(),
        email=fields.pop("email", f"{role.value}@example.com"),
        full_name=fields.pop("full_name", role.value.replace("_", " ").title()),
        status=fields.pop("status", ProfileStatus.ACTIVE),
        company_id=company_id,
        **fields,
    )
    profile.roles = [
        Role(
            id=uuid.uuid4(),
            name=role.value,
            permissions=[Permission(id=uuid.uuid4(), code=code) for code in sorted(permissions_for(role))],
        )
    ]
    return profile


@pytest.fixture
def company_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def db():
    """Stand-in AsyncSession: sync `add`/`delete` bookkeeping, async I/O."""
    session = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.execute = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def admin() -> Profile:
    return make_profile(UserRole.ADMIN)


@pytest.fixture
def admin_scope(admin: Profile) -> DataScope:
    return DataScope(profile_id=admin.id, role=UserRole.ADMIN, is_admin=True)


@pytest.fixture
def client_user(company_id: uuid.UUID) -> Profile:
    return make_profile(UserRole.CLIENT_USER, company_id)


@pytest.fixture
def client_scope(client_user: Profile, company_id: uuid.UUID) -> DataScope:
    return DataScope(profile_id=client_user.id, role=UserRole.CLIENT_USER, company_id=company_id)
