"""
Login sessions.

One `UserSession` row is opened per sign-in and re-checked on every
request by `wms.core.security`.  The helpers here close sessions: the
caller's own at sign-out, all of a profile's when it is disabled,
deleted or has its password reset, and idle ones at the next sign-in.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.security import session_is_idle
from wms.models.session import UserSession

logger = logging.getLogger(__name__)


def _active(*criteria):
    return select(UserSession).where(UserSession.is_active == True, *criteria)  # noqa: E712


async def get_active_sessions(profile_id: uuid.UUID, db: AsyncSession) -> list[UserSession]:
    stmt = _active(UserSession.profile_id == profile_id).order_by(UserSession.last_seen_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_active_session_by_id(session_id: uuid.UUID, db: AsyncSession) -> UserSession | None:
    return (await db.execute(_active(UserSession.id == session_id))).scalar_one_or_none()


async def retire_idle_sessions(profile_id: uuid.UUID, db: AsyncSession) -> int:
    """Deactivate the profile's timed-out sessions; return how many."""
    now = datetime.now(timezone.utc)
    idle = [s for s in await get_active_sessions(profile_id, db) if session_is_idle(s, now)]
    for session in idle:
        session.is_active = False
    if idle:
        await db.flush()
    return len(idle)


async def _close(db: AsyncSession, *criteria) -> int:
    stmt = (
        update(UserSession)
        .where(UserSession.is_active == True, *criteria)  # noqa: E712
        .values(is_active=False)
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount


async def deactivate_session(session_id: uuid.UUID, db: AsyncSession) -> None:
    await _close(db, UserSession.id == session_id)


async def deactivate_all_profile_sessions(profile_id: uuid.UUID, db: AsyncSession) -> int:
    closed = await _close(db, UserSession.profile_id == profile_id)
    if closed:
        logger.info("Closed %d session(s) of profile %s", closed, profile_id)
    return closed
