"""
"View as client": staff temporarily narrowed to one company.

Starting inserts an `AdminSession` row and an activity log entry;
while the row is open `resolve_data_scope` pins the staff member to
the viewed company.  Stopping stamps `session_end` and logs again.
A staff member has at most one open session: starting a new one
closes the previous.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.models.activity import AdminSession
from wms.models.company import Company
from wms.models.user import Profile
from wms.rbac.roles import is_admin_role
from wms.services import activity_service

logger = logging.getLogger(__name__)


async def _open_sessions(profile_id: uuid.UUID, db: AsyncSession) -> list[AdminSession]:
    stmt = select(AdminSession).where(
        AdminSession.admin_user_id == profile_id,
        AdminSession.session_end.is_(None),
    )
    return list((await db.execute(stmt)).scalars().all())


async def end_open_sessions(profile_id: uuid.UUID, db: AsyncSession) -> int:
    """Close every open view-as-client period of a staff member."""
    now = datetime.now(timezone.utc)
    sessions = await _open_sessions(profile_id, db)
    for sess in sessions:
        sess.session_end = now
        await activity_service.log_activity(
            db,
            "admin_view_end",
            "Admin stopped viewing as client",
            user_id=profile_id,
            company_id=sess.viewed_company_id,
            details={"admin_session_id": str(sess.id)},
        )
    if sessions:
        await db.flush()
    return len(sessions)


async def start_viewing(
    admin: Profile,
    company_id: uuid.UUID,
    db: AsyncSession,
    notes: str | None = None,
) -> AdminSession:
    if not is_admin_role(admin.primary_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only staff can view as a client",
        )

    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    await end_open_sessions(admin.id, db)

    admin_session = AdminSession(
        id=uuid.uuid4(),
        admin_user_id=admin.id,
        viewed_company_id=company.id,
        session_start=datetime.now(timezone.utc),
        notes=notes,
    )
    db.add(admin_session)
    await activity_service.log_activity(
        db,
        "admin_view_start",
        f"Admin started viewing as {company.name}",
        user_id=admin.id,
        company_id=company.id,
        details={"admin_session_id": str(admin_session.id)},
    )
    await db.flush()
    logger.info("Profile %s viewing as company %s", admin.id, company.id)
    return admin_session


async def stop_viewing(admin: Profile, db: AsyncSession) -> int:
    if not is_admin_role(admin.primary_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only staff can view as a client",
        )
    return await end_open_sessions(admin.id, db)


async def current_session(admin: Profile, db: AsyncSession) -> AdminSession | None:
    sessions = await _open_sessions(admin.id, db)
    return max(sessions, key=lambda s: s.session_start) if sessions else None
