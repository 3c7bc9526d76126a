"""
User service: profiles, roles, employees and client users.

Two audiences share the `profiles` table:
- employees: profiles whose role is in `ADMIN_ROLES`;
- client users: profiles whose role is in `CLIENT_ROLES`, always tied
  to a company.

Listing endpoints filter on those role sets, so a client user never
appears among employees and vice versa.  Only super_admin / admin may
create or delete employees.
"""

import logging
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wms.core.security import hash_password
from wms.models.company import Company
from wms.models.role import Role, user_roles
from wms.models.user import Profile, ProfileStatus
from wms.rbac.context_resolver import DataScope
from wms.rbac.roles import ADMIN_ROLES, CLIENT_ROLES, USER_ADMIN_ROLES, UserRole
from wms.services import email_service, session_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


# ── Lookups ──────────────────────────────────────────────────────────
async def get_role(role: UserRole, db: AsyncSession) -> Role:
    result = await db.execute(select(Role).where(Role.name == role.value))
    role_obj = result.scalar_one_or_none()
    if role_obj is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Assigned role does not exist",
        )
    return role_obj


async def get_profile_by_id(
    profile_id: uuid.UUID,
    db: AsyncSession,
) -> Profile:
    stmt = (
        select(Profile)
        .options(selectinload(Profile.roles), selectinload(Profile.company))
        .where(Profile.id == profile_id)
    )
    result = await db.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


async def get_profile_by_email(email: str, db: AsyncSession) -> Profile | None:
    stmt = (
        select(Profile)
        .options(selectinload(Profile.roles), selectinload(Profile.company))
        .where(Profile.email == email.strip().lower())
    )
    return (await db.execute(stmt)).scalar_one_or_none()


def _role_filter(stmt, roles: frozenset[UserRole]):
    return (
        stmt.join(user_roles, user_roles.c.profile_id == Profile.id)
        .join(Role, Role.id == user_roles.c.role_id)
        .where(Role.name.in_([r.value for r in roles]))
    )


async def list_employees(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 50,
) -> list[Profile]:
    stmt = _role_filter(
        select(Profile).options(selectinload(Profile.roles)).distinct(),
        ADMIN_ROLES,
    ).order_by(Profile.email)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def list_client_users(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Profile]:
    stmt = _role_filter(
        select(Profile).options(selectinload(Profile.roles), selectinload(Profile.company)).distinct(),
        CLIENT_ROLES,
    ).order_by(Profile.email)

    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(Profile.company_id == company_filter)

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


# ── Creation ─────────────────────────────────────────────────────────
async def create_profile(
    email: str,
    password: str,
    role: UserRole,
    db: AsyncSession,
    full_name: str | None = None,
    phone: str | None = None,
    company_id: uuid.UUID | None = None,
) -> Profile:
    """Create a profile with exactly one role.  409 if the email is taken."""
    email = email.strip().lower()
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    if await get_profile_by_email(email, db) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    profile = Profile(
        id=uuid.uuid4(),
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        phone=phone,
        company_id=company_id,
        status=ProfileStatus.ACTIVE,
    )
    profile.roles = [await get_role(role, db)]
    db.add(profile)
    await db.flush()
    logger.info("Profile %s created with role %s", email, role.value)
    return profile


def _require_user_admin(actor: Profile) -> None:
    if actor.primary_role not in USER_ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can manage employee users",
        )


async def create_employee(
    actor: Profile,
    email: str,
    password: str,
    full_name: str,
    role: UserRole,
    db: AsyncSession,
    phone: str | None = None,
) -> Profile:
    _require_user_admin(actor)
    if role not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role. Must be one of: " + ", ".join(sorted(r.value for r in ADMIN_ROLES)),
        )
    return await create_profile(email, password, role, db, full_name=full_name, phone=phone)


async def create_client_user(
    scope: DataScope,
    company_id: uuid.UUID,
    email: str,
    password: str,
    db: AsyncSession,
    full_name: str | None = None,
    phone: str | None = None,
    role: UserRole = UserRole.CLIENT_USER,
) -> Profile:
    scope.ensure_company(company_id)
    if role not in CLIENT_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role. Must be one of: " + ", ".join(sorted(r.value for r in CLIENT_ROLES)),
        )
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    profile = await create_profile(
        email, password, role, db, full_name=full_name, phone=phone, company_id=company_id
    )
    await email_service.send_welcome_email(profile.email, company.name)
    return profile


# ── Updates ──────────────────────────────────────────────────────────
async def update_profile(
    profile_id: uuid.UUID,
    changes: dict[str, Any],
    db: AsyncSession,
    scope: DataScope,
) -> Profile:
    """
    Update name, phone, role or password.

    Staff may change anyone; client admins only users of their company,
    and only to client roles.
    """
    profile = await get_profile_by_id(profile_id, db)
    if not scope.is_admin:
        if profile.company_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this user")
        scope.ensure_company(profile.company_id)

    if changes.get("full_name") is not None:
        profile.full_name = changes["full_name"]
    if changes.get("phone") is not None:
        profile.phone = changes["phone"]
    if changes.get("password"):
        if len(changes["password"]) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        profile.password_hash = hash_password(changes["password"])
        await session_service.deactivate_all_profile_sessions(profile.id, db)

    new_role: UserRole | None = changes.get("role")
    if new_role is not None and new_role != profile.primary_role:
        current = profile.primary_role
        # A role change never moves a profile between audiences.
        same_audience = (current in ADMIN_ROLES and new_role in ADMIN_ROLES) or (
            current in CLIENT_ROLES and new_role in CLIENT_ROLES
        )
        if not same_audience:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role change not allowed")
        if new_role in ADMIN_ROLES and not scope.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        profile.roles = [await get_role(new_role, db)]

    await db.flush()
    return profile


async def disable_user(
    target_profile_id: uuid.UUID,
    db: AsyncSession,
    scope: DataScope,
) -> Profile:
    """Disable an account and invalidate all of its sessions."""
    profile = await get_profile_by_id(target_profile_id, db)
    if not scope.is_admin:
        if profile.company_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this user")
        scope.ensure_company(profile.company_id)
    if profile.id == scope.profile_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot disable your own account")

    profile.status = ProfileStatus.DISABLED
    # Immediately invalidate every active session for this profile
    await session_service.deactivate_all_profile_sessions(target_profile_id, db)
    await db.flush()
    return profile


async def enable_user(target_profile_id: uuid.UUID, db: AsyncSession) -> Profile:
    profile = await get_profile_by_id(target_profile_id, db)
    profile.status = ProfileStatus.ACTIVE
    await db.flush()
    return profile


async def delete_employee(actor: Profile, target_profile_id: uuid.UUID, db: AsyncSession) -> None:
    """Remove an employee profile together with its role rows."""
    _require_user_admin(actor)
    if actor.id == target_profile_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    profile = await get_profile_by_id(target_profile_id, db)
    if profile.primary_role not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    await db.execute(delete(user_roles).where(user_roles.c.profile_id == profile.id))
    await db.delete(profile)
    await db.flush()
    logger.info("Employee %s deleted by %s", profile.email, actor.id)
