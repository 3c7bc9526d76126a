"""
Credentials and tokens.

Passwords are bcrypt hashes.  Tokens are HS256 JWTs typed "access" or
"refresh" so that one can never be presented in place of the other.
An access token names the profile (`sub`) and its server-side session
(`session_id`); the session row is checked again on every request,
which is what makes sign-out and account disabling take effect at
once.  Refresh tokens are stored only as a SHA-256 digest and rotate
on use.
"""

import enum
import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.config import settings
from wms.core.database import get_db
from wms.models.session import UserSession


class TokenType(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ── Passwords ────────────────────────────────────────────────────────
def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# ── Opaque tokens ────────────────────────────────────────────────────
def hash_token(token: str) -> str:
    """Hex SHA-256; fine for high-entropy secrets, never for passwords."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_url_token() -> str:
    """Single-use secret for password reset links."""
    return secrets.token_urlsafe(48)


# ── JWT ──────────────────────────────────────────────────────────────
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _encode(claims: dict[str, Any], token_type: TokenType, lifetime: timedelta) -> str:
    body = {
        **claims,
        "type": token_type.value,
        "jti": secrets.token_hex(8),
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(body, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(claims, TokenType.ACCESS, lifetime)


def create_refresh_token(claims: dict[str, Any]) -> str:
    return _encode(claims, TokenType.REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: TokenType | str = TokenType.ACCESS) -> dict[str, Any]:
    """Verified claims of `token`; 401 if it is forged, expired or of the wrong type."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")
    if payload.get("type") != TokenType(expected_type).value:
        raise _unauthorized("Invalid token type")
    return payload


# ── Sessions ─────────────────────────────────────────────────────────
def session_is_idle(session: UserSession, now: datetime | None = None) -> bool:
    last_seen = session.last_seen_at
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=timezone.utc)
    limit = timedelta(minutes=settings.SESSION_INACTIVITY_TIMEOUT_MINUTES)
    return (now or datetime.now(timezone.utc)) - last_seen > limit


async def _live_session(payload: dict[str, Any], db: AsyncSession) -> UserSession:
    try:
        session_id = uuid.UUID(payload["session_id"])
        profile_id = uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid token payload")

    stmt = select(UserSession).where(
        UserSession.id == session_id,
        UserSession.profile_id == profile_id,
        UserSession.is_active == True,  # noqa: E712
    )
    session = (await db.execute(stmt)).scalar_one_or_none()
    if session is None:
        raise _unauthorized("Session expired or revoked")
    if session_is_idle(session):
        raise _unauthorized("Session timed out due to inactivity")
    return session


async def get_current_user_token(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """
    Access-token claims of the caller, once the session behind them is
    confirmed live.  Bumps the session's ``last_seen_at``, which is
    committed with the request.
    """
    payload = decode_token(token)
    session = await _live_session(payload, db)
    session.last_seen_at = datetime.now(timezone.utc)
    return payload
