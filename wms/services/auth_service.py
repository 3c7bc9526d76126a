"""
Authentication service.

Sign-in opens one server-side `UserSession` per device; the refresh
token is rotated on every use and only its digest is stored.  Also
covers sign-out, self sign-up of a client company and password reset
through an emailed link.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wms.core.config import settings
from wms.core.security import (
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_url_token,
    hash_password,
    hash_token,
    verify_password,
)
from wms.models.password_reset import PasswordResetToken
from wms.models.session import UserSession
from wms.models.user import Profile, ProfileStatus
from wms.rbac.roles import UserRole
from wms.services import company_service, email_service, impersonation_service, session_service, user_service

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_ID = "web"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _ensure_enabled(profile: Profile) -> None:
    if profile.status == ProfileStatus.DISABLED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")


def _issue_tokens(profile: Profile, session_id: uuid.UUID) -> tuple[dict, str]:
    """Mint a token pair for `session_id`; return the response body and the raw refresh token."""
    role = profile.primary_role.value if profile.primary_role else None
    company_id = str(profile.company_id) if profile.company_id else None
    claims = {"sub": str(profile.id), "session_id": str(session_id)}

    access_claims = dict(claims, role=role)
    if company_id:
        access_claims["company_id"] = company_id
    refresh_token = create_refresh_token(claims)

    body = {
        "access_token": create_access_token(access_claims),
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "profile_id": str(profile.id),
        "role": role,
        "company_id": company_id,
    }
    return body, refresh_token


async def _profile_with_roles(profile_id: uuid.UUID, db: AsyncSession) -> Profile:
    stmt = (
        select(Profile)
        .options(selectinload(Profile.roles), selectinload(Profile.company))
        .where(Profile.id == profile_id)
    )
    profile = (await db.execute(stmt)).scalar_one_or_none()
    if profile is None:
        raise _unauthorized("User not found")
    return profile


# ── Sign-in / token refresh ──────────────────────────────────────────

async def authenticate_user(
    email: str,
    password: str,
    db: AsyncSession,
    device_id: str = DEFAULT_DEVICE_ID,
) -> dict:
    """Check the credentials and open a fresh session."""
    profile = await user_service.get_profile_by_email(email, db)
    if profile is None or not verify_password(password, profile.password_hash):
        raise _unauthorized("Invalid email or password")
    _ensure_enabled(profile)
    if profile.primary_role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No role assigned; contact an administrator",
        )

    await session_service.retire_idle_sessions(profile.id, db)

    session = UserSession(
        id=uuid.uuid4(),
        profile_id=profile.id,
        device_id=device_id or DEFAULT_DEVICE_ID,
        role=profile.primary_role.value,
    )
    body, refresh_token = _issue_tokens(profile, session.id)
    session.refresh_token_hash = hash_token(refresh_token)
    db.add(session)
    await db.flush()
    logger.info("Profile %s signed in (session %s)", profile.id, session.id)
    return body


async def refresh_access_token(refresh_token_raw: str, db: AsyncSession) -> dict:
    """
    Trade a refresh token for a new pair.

    The presented token must be the latest one issued for its session;
    an older token means it was replayed and is refused.
    """
    payload = decode_token(refresh_token_raw, expected_type=TokenType.REFRESH)
    try:
        session_id = uuid.UUID(payload["session_id"])
        profile_id = uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid refresh token payload")

    session = await session_service.get_active_session_by_id(session_id, db)
    if session is None or session.profile_id != profile_id:
        raise _unauthorized("Session not found or inactive")
    if session.refresh_token_hash != hash_token(refresh_token_raw):
        raise _unauthorized("Refresh token already used")

    profile = await _profile_with_roles(profile_id, db)
    _ensure_enabled(profile)

    body, refresh_token = _issue_tokens(profile, session.id)
    session.refresh_token_hash = hash_token(refresh_token)
    session.last_seen_at = datetime.now(timezone.utc)
    await db.flush()
    return body


# ── Logout ───────────────────────────────────────────────────────────

async def logout(token_payload: dict, db: AsyncSession) -> None:
    """End the caller's session and close any impersonation it left open."""
    profile_id = uuid.UUID(token_payload["sub"])
    await session_service.deactivate_session(uuid.UUID(token_payload["session_id"]), db)
    await impersonation_service.end_open_sessions(profile_id, db)
    logger.info("Profile %s signed out", profile_id)


# ── Sign-up ──────────────────────────────────────────────────────────

async def sign_up(
    email: str,
    password: str,
    company_name: str,
    db: AsyncSession,
    full_name: str | None = None,
    phone: str | None = None,
) -> Profile:
    """
    Self-service registration for a new client company.

    Creates the company and its first user with the `client` role;
    staff accounts are only ever created by administrators.
    """
    if await user_service.get_profile_by_email(email, db) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )
    company = await company_service.create_company(
        company_name,
        db,
        contact_person=full_name,
        email=email.strip().lower(),
        phone=phone,
    )
    return await user_service.create_profile(
        email,
        password,
        UserRole.CLIENT,
        db,
        full_name=full_name,
        phone=phone,
        company_id=company.id,
    )


# ── Password reset ───────────────────────────────────────────────────

async def request_password_reset(email: str, db: AsyncSession) -> None:
    """
    Mail a reset link if the email belongs to an active profile.

    Callers always answer the same way, so the endpoint does not reveal
    which emails are registered.
    """
    profile = await user_service.get_profile_by_email(email, db)
    if profile is None or profile.status == ProfileStatus.DISABLED:
        logger.info("Password reset requested for unknown or disabled email")
        return

    raw_token = generate_url_token()
    db.add(
        PasswordResetToken(
            id=uuid.uuid4(),
            profile_id=profile.id,
            token_hash=hash_token(raw_token),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
            used=False,
        )
    )
    await db.flush()
    await email_service.send_password_reset_email(profile.email, raw_token)


async def reset_password(token: str, new_password: str, db: AsyncSession) -> Profile:
    stmt = select(PasswordResetToken).where(
        PasswordResetToken.token_hash == hash_token(token),
        PasswordResetToken.used == False,  # noqa: E712
    )
    reset = (await db.execute(stmt)).scalar_one_or_none()

    if reset is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset link",
        )

    expires_at = reset.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset link has expired",
        )

    if len(new_password or "") < user_service.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {user_service.MIN_PASSWORD_LENGTH} characters",
        )

    profile = await _profile_with_roles(reset.profile_id, db)
    profile.password_hash = hash_password(new_password)
    reset.used = True
    # Every existing sign-in ends with the old password.
    await session_service.deactivate_all_profile_sessions(profile.id, db)
    await db.flush()
    return profile
