"""
Context resolver: data-scope enforcement.

Every service query on tenant data goes through a `DataScope` so that:
- Client users see only their own company's data.
- Staff get unrestricted access...
- ...unless they are "viewing as client", in which case an open
  `AdminSession` narrows them to the viewed company exactly as if they
  were one of its users.

The resolver reads roles and company from the loaded Profile (never
from the token) and looks up the open admin session in the database.

Usage in a controller:
    scope = await resolve_data_scope(current_user, db)
    products = await product_service.list_products(db, scope)
"""

import uuid
from dataclasses import dataclass

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.models.activity import AdminSession
from wms.models.user import Profile
from wms.rbac.roles import UserRole, is_admin_role, is_client_role


@dataclass
class DataScope:
    """
    Encapsulates the data-access boundaries for the current request.

    - is_admin: staff with no active impersonation; no tenant filter.
    - company_id: set for client users and for impersonating staff;
      every tenant query must filter on this.
    - viewing_as_client: True while staff impersonate `company_id`.
    """

    profile_id: uuid.UUID
    role: UserRole | None = None
    is_admin: bool = False
    company_id: uuid.UUID | None = None
    viewing_as_client: bool = False
    admin_session_id: uuid.UUID | None = None

    @property
    def is_staff(self) -> bool:
        """Staff identity, whether or not impersonation narrowed the scope."""
        return is_admin_role(self.role)

    def company_filter(self, requested: uuid.UUID | None = None) -> uuid.UUID | None:
        """
        Company id a query must filter on.

        Unrestricted staff may name any company (or none, for all);
        everyone else is pinned to their own and may not ask for another.
        """
        if self.is_admin:
            return requested
        if self.company_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No company is associated with this account",
            )
        if requested is not None and requested != self.company_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this company",
            )
        return self.company_id

    def ensure_company(self, company_id: uuid.UUID) -> None:
        """403 unless a row owned by `company_id` is visible in this scope."""
        if self.is_admin:
            return
        if self.company_id is None or company_id != self.company_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this company",
            )


async def get_open_admin_session(profile_id: uuid.UUID, db: AsyncSession) -> AdminSession | None:
    stmt = (
        select(AdminSession)
        .where(
            AdminSession.admin_user_id == profile_id,
            AdminSession.session_end.is_(None),
        )
        .order_by(AdminSession.session_start.desc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def resolve_data_scope(user: Profile, db: AsyncSession) -> DataScope:
    """
    Build a DataScope from the authenticated profile.

    Called in every controller that touches company-scoped data.
    """
    role = user.primary_role
    scope = DataScope(profile_id=user.id, role=role)

    # Staff → unrestricted, unless viewing as a client
    if is_admin_role(role):
        admin_session = await get_open_admin_session(user.id, db)
        if admin_session is not None:
            scope.company_id = admin_session.viewed_company_id
            scope.viewing_as_client = True
            scope.admin_session_id = admin_session.id
            return scope
        scope.is_admin = True
        return scope

    # Client → locked to their company
    if is_client_role(role):
        if user.company_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Client profile has no company; contact an administrator",
            )
        scope.company_id = user.company_id
        return scope

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No role assigned; contact an administrator",
    )
