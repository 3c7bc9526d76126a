"""
Allocation service: assigning warehouse space to client companies.

Before a zone or row-range allocation is stored, the zone's active
allocations are checked for overlap (409 on conflict).  Specific-bin
allocations are not checked; they are stored with `unchecked=True` in
the result so callers can surface a warning.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.domain.allocation import AllocationRequest, check_allocation_conflict, is_unchecked
from wms.models.allocation import AllocationType, ClientAllocation
from wms.models.company import Company
from wms.rbac.context_resolver import DataScope
from wms.services import location_service

logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    allocation: ClientAllocation
    unchecked: bool = False
    warning: str | None = None


async def zone_allocations(zone_id: uuid.UUID, db: AsyncSession) -> list[ClientAllocation]:
    stmt = select(ClientAllocation).where(
        ClientAllocation.zone_id == zone_id,
        ClientAllocation.is_active == True,  # noqa: E712
    )
    return list((await db.execute(stmt)).scalars().all())


async def list_allocations(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    zone_id: uuid.UUID | None = None,
    include_inactive: bool = False,
) -> list[ClientAllocation]:
    stmt = select(ClientAllocation).order_by(ClientAllocation.allocation_date.desc())
    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(ClientAllocation.company_id == company_filter)
    if zone_id is not None:
        stmt = stmt.where(ClientAllocation.zone_id == zone_id)
    if not include_inactive:
        stmt = stmt.where(ClientAllocation.is_active == True)  # noqa: E712
    return list((await db.execute(stmt)).scalars().all())


async def create_allocation(
    company_id: uuid.UUID,
    zone_id: uuid.UUID,
    allocation_type: AllocationType,
    db: AsyncSession,
    start_row_code: str | None = None,
    end_row_code: str | None = None,
    specific_bin_ids: list[uuid.UUID] | None = None,
    allocated_cubic_feet: Decimal | None = None,
    allocation_date: date | None = None,
) -> AllocationResult:
    if await db.get(Company, company_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    zone = await location_service.get_zone(zone_id, db)

    if allocation_type == AllocationType.ROW_RANGE and not (start_row_code and end_row_code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Row range allocations need a start and an end row",
        )
    if allocation_type == AllocationType.SPECIFIC_BINS and not specific_bin_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Specific bin allocations need at least one bin",
        )

    request = AllocationRequest(
        zone_id=zone.id,
        allocation_type=allocation_type,
        start_row_code=start_row_code,
        end_row_code=end_row_code,
    )
    if check_allocation_conflict(request, await zone_allocations(zone.id, db)):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Allocation conflicts with an existing allocation in zone {zone.code}",
        )

    allocation = ClientAllocation(
        id=uuid.uuid4(),
        company_id=company_id,
        zone_id=zone.id,
        allocation_type=allocation_type,
        start_row_code=start_row_code if allocation_type == AllocationType.ROW_RANGE else None,
        end_row_code=end_row_code if allocation_type == AllocationType.ROW_RANGE else None,
        specific_bin_ids=[str(b) for b in specific_bin_ids or []],
        allocated_cubic_feet=allocated_cubic_feet or Decimal(0),
        allocation_date=allocation_date or date.today(),
        is_active=True,
    )
    db.add(allocation)
    await db.flush()
    logger.info("Allocated %s in zone %s to company %s", allocation_type.value, zone.code, company_id)

    if is_unchecked(allocation_type):
        return AllocationResult(
            allocation=allocation,
            unchecked=True,
            warning="Specific bins are only checked against whole-zone allocations",
        )
    return AllocationResult(allocation=allocation)


async def release_allocation(allocation_id: uuid.UUID, db: AsyncSession) -> ClientAllocation:
    allocation = await db.get(ClientAllocation, allocation_id)
    if allocation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    allocation.is_active = False
    await db.flush()
    return allocation
