"""
Append-only audit trail, one row per action, kept per company.
"""

import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.models.activity import ClientActivityLog
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    activity_type: str,
    description: str,
    user_id: uuid.UUID | None = None,
    company_id: uuid.UUID | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ClientActivityLog:
    entry = ClientActivityLog(
        id=uuid.uuid4(),
        user_id=user_id,
        company_id=company_id,
        activity_type=activity_type,
        description=description,
        details=details or {},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    await db.flush()
    logger.debug("Activity %s recorded for company %s", activity_type, company_id)
    return entry


async def list_activity(
    db: AsyncSession,
    scope: DataScope,
    company_id: uuid.UUID | None = None,
    activity_type: str | None = None,
    since: datetime | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[ClientActivityLog]:
    stmt = select(ClientActivityLog).order_by(ClientActivityLog.created_at.desc())

    company_filter = scope.company_filter(company_id)
    if company_filter is not None:
        stmt = stmt.where(ClientActivityLog.company_id == company_filter)
    if activity_type:
        stmt = stmt.where(ClientActivityLog.activity_type == activity_type)
    if since is not None:
        stmt = stmt.where(ClientActivityLog.created_at >= since)

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())
