"""
Admin controller: user management, activity log and "viewing as client".

Every route uses `Depends(require_permission(...))` for enforcement.
Controllers are thin: they resolve the data scope, delegate to a
service and return schemas.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.activity import ActivityOut, AdminSessionOut, StartViewingRequest
from wms.schemas.common import CountResponse, MessageResponse
from wms.schemas.user import CreateClientUserRequest, CreateEmployeeRequest, ProfileOut, UpdateUserRequest
from wms.services import activity_service, impersonation_service, user_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


# ── Employees ────────────────────────────────────────────────────────
@router.get("/employees", response_model=list[ProfileOut])
async def list_employees(
    user: Profile = Depends(require_permission("user.view", "user.manage")),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """Warehouse staff only; client accounts never appear here."""
    employees = await user_service.list_employees(db, skip, limit)
    return [ProfileOut.model_validate(p) for p in employees]


@router.post("/employees", response_model=ProfileOut, status_code=201)
async def create_employee(
    body: CreateEmployeeRequest,
    request: Request,
    user: Profile = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.create_employee(
        actor=user,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        db=db,
        phone=body.phone,
    )
    await activity_service.log_activity(
        db,
        "employee_created",
        f"Employee {profile.email} created with role {body.role.value}",
        user_id=user.id,
        details={"profile_id": str(profile.id)},
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return ProfileOut.model_validate(profile)


@router.delete("/employees/{profile_id}", response_model=MessageResponse)
async def delete_employee(
    profile_id: uuid.UUID,
    user: Profile = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_employee(user, profile_id, db)
    return MessageResponse(detail="Employee deleted")


# ── Client users ─────────────────────────────────────────────────────
@router.get("/client-users", response_model=list[ProfileOut])
async def list_client_users(
    user: Profile = Depends(require_permission("user.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    profiles = await user_service.list_client_users(db, scope, company_id, skip, limit)
    return [ProfileOut.model_validate(p) for p in profiles]


@router.post("/client-users", response_model=ProfileOut, status_code=201)
async def create_client_user(
    body: CreateClientUserRequest,
    user: Profile = Depends(require_permission("client_user.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    profile = await user_service.create_client_user(
        scope,
        body.company_id,
        body.email,
        body.password,
        db,
        full_name=body.full_name,
        phone=body.phone,
        role=body.role,
    )
    return ProfileOut.model_validate(profile)


# ── Any user ─────────────────────────────────────────────────────────
@router.patch("/users/{profile_id}", response_model=ProfileOut)
async def update_user(
    profile_id: uuid.UUID,
    body: UpdateUserRequest,
    user: Profile = Depends(require_permission("client_user.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    profile = await user_service.update_profile(profile_id, body.model_dump(exclude_none=True), db, scope)
    return ProfileOut.model_validate(profile)


@router.post("/users/{profile_id}/disable", response_model=ProfileOut)
async def disable_user(
    profile_id: uuid.UUID,
    user: Profile = Depends(require_permission("client_user.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    profile = await user_service.disable_user(profile_id, db, scope)
    return ProfileOut.model_validate(profile)


@router.post("/users/{profile_id}/enable", response_model=ProfileOut)
async def enable_user(
    profile_id: uuid.UUID,
    user: Profile = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.enable_user(profile_id, db)
    return ProfileOut.model_validate(profile)


# ── Activity ─────────────────────────────────────────────────────────
@router.get("/activity", response_model=list[ActivityOut])
async def list_activity(
    user: Profile = Depends(require_permission("activity.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    activity_type: str | None = Query(None),
    since: datetime | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    scope = await resolve_data_scope(user, db)
    entries = await activity_service.list_activity(db, scope, company_id, activity_type, since, skip, limit)
    return [ActivityOut.model_validate(e) for e in entries]


# ── Viewing as client ────────────────────────────────────────────────
@router.post("/impersonation", response_model=AdminSessionOut, status_code=201)
async def start_viewing(
    body: StartViewingRequest,
    user: Profile = Depends(require_permission("impersonation.use")),
    db: AsyncSession = Depends(get_db),
):
    session = await impersonation_service.start_viewing(user, body.company_id, db, notes=body.notes)
    return AdminSessionOut.model_validate(session)


@router.delete("/impersonation", response_model=CountResponse)
async def stop_viewing(
    user: Profile = Depends(require_permission("impersonation.use")),
    db: AsyncSession = Depends(get_db),
):
    return CountResponse(count=await impersonation_service.stop_viewing(user, db))


@router.get("/impersonation", response_model=AdminSessionOut | None)
async def current_viewing(
    user: Profile = Depends(require_permission("impersonation.use")),
    db: AsyncSession = Depends(get_db),
):
    session = await impersonation_service.current_session(user, db)
    return AdminSessionOut.model_validate(session) if session is not None else None
