"""
Route guards.

Routes never look at role names.  They declare the permission codes
they need and receive the signed-in `Profile`:

    @router.get("/products")
    async def list_products(user: Profile = Depends(require_permission("product.view"))): ...

The profile is loaded with its roles and their permissions, so
`collect_permission_codes` needs no further queries.  A failed check
answers 403 with the same message whatever was missing.
"""

import logging
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wms.core.database import get_db
from wms.core.security import get_current_user_token
from wms.models.role import Role
from wms.models.user import Profile, ProfileStatus

logger = logging.getLogger("rbac")


async def _load_profile_with_permissions(profile_id: uuid.UUID, db: AsyncSession) -> Profile | None:
    stmt = (
        select(Profile)
        .where(Profile.id == profile_id)
        .options(
            selectinload(Profile.roles).selectinload(Role.permissions),
            selectinload(Profile.company),
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


def collect_permission_codes(profile: Profile) -> set[str]:
    return set().union(*(role.permission_codes for role in profile.roles))


async def _authenticated_profile(token_payload: dict[str, Any], db: AsyncSession) -> Profile:
    try:
        profile_id = uuid.UUID(token_payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    profile = await _load_profile_with_permissions(profile_id, db)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if profile.status == ProfileStatus.DISABLED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    return profile


class require_permission:
    """Guard that passes only when the profile holds every listed code."""

    def __init__(self, *permission_codes: str):
        self.required_codes = frozenset(permission_codes)

    async def __call__(
        self,
        token_payload: dict[str, Any] = Depends(get_current_user_token),
        db: AsyncSession = Depends(get_db),
    ) -> Profile:
        profile = await _authenticated_profile(token_payload, db)
        missing = self.required_codes - collect_permission_codes(profile)
        if missing:
            logger.warning("Profile %s refused, lacks %s", profile.id, sorted(missing))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return profile


async def get_current_active_user(
    token_payload: dict[str, Any] = Depends(get_current_user_token),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Signed in and enabled; no permission code required."""
    return await _authenticated_profile(token_payload, db)
