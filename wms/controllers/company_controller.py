"""
Company controller: client companies and their portal dashboard figures.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import get_current_active_user, require_permission
from wms.schemas.company import CompanyOut, CreateCompanyRequest, PortalStatsOut, UpdateCompanyRequest
from wms.services import company_service

router = APIRouter(prefix="/api/companies", tags=["Companies"])


@router.post("", response_model=CompanyOut, status_code=201)
async def create_company(
    body: CreateCompanyRequest,
    user: Profile = Depends(require_permission("company.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Create a client company; its client code is generated from the name."""
    fields = body.model_dump(
        exclude_none=True,
        exclude={"name", "location_type", "assigned_floor_zone_id", "assigned_row_id"},
    )
    company = await company_service.create_company(
        body.name,
        db,
        location_type=body.location_type,
        assigned_floor_zone_id=body.assigned_floor_zone_id,
        assigned_row_id=body.assigned_row_id,
        **fields,
    )
    return CompanyOut.model_validate(company)


@router.get("", response_model=list[CompanyOut])
async def list_companies(
    user: Profile = Depends(require_permission("company.view")),
    db: AsyncSession = Depends(get_db),
    search: str | None = Query(None),
    active_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    companies = await company_service.list_companies(db, scope, search, active_only, skip, limit)
    return [CompanyOut.model_validate(c) for c in companies]


@router.get("/{company_id}", response_model=CompanyOut)
async def get_company(
    company_id: uuid.UUID,
    user: Profile = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Staff may read any company; client users only their own."""
    scope = await resolve_data_scope(user, db)
    return CompanyOut.model_validate(await company_service.get_company(company_id, db, scope))


@router.get("/{company_id}/stats", response_model=PortalStatsOut)
async def portal_stats(
    company_id: uuid.UUID,
    user: Profile = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return await company_service.get_portal_stats(company_id, db, scope)


@router.patch("/{company_id}", response_model=CompanyOut)
async def update_company(
    company_id: uuid.UUID,
    body: UpdateCompanyRequest,
    user: Profile = Depends(require_permission("company.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    changes = body.model_dump(exclude_unset=True)
    company = await company_service.update_company(company_id, db, scope, changes)
    return CompanyOut.model_validate(company)


@router.post("/{company_id}/activate", response_model=CompanyOut)
async def activate_company(
    company_id: uuid.UUID,
    user: Profile = Depends(require_permission("company.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return CompanyOut.model_validate(await company_service.set_company_active(company_id, True, db, scope))


@router.post("/{company_id}/deactivate", response_model=CompanyOut)
async def deactivate_company(
    company_id: uuid.UUID,
    user: Profile = Depends(require_permission("company.manage")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return CompanyOut.model_validate(await company_service.set_company_active(company_id, False, db, scope))
