"""
Auth controller: login, logout, token refresh, sign-up and password reset.

Login, sign-up and the password-reset routes are PUBLIC (no permission
dependency).  Logout and `/me` require a valid session.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.core.security import get_current_user_token
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import collect_permission_codes, get_current_active_user
from wms.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    ResetPasswordRequest,
    SignUpRequest,
    TokenResponse,
)
from wms.schemas.common import MessageResponse
from wms.schemas.user import ProfileOut
from wms.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate with email + password → receive a JWT pair bound to a session."""
    return await auth_service.authenticate_user(
        body.email,
        body.password,
        db,
        device_id=body.device_id or auth_service.DEFAULT_DEVICE_ID,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a valid refresh token for a new access + refresh pair."""
    return await auth_service.refresh_access_token(body.refresh_token, db)


@router.delete("/logout", response_model=MessageResponse)
async def logout(
    token_payload: dict[str, Any] = Depends(get_current_user_token),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate the current session and end any open "viewing as client" session."""
    await auth_service.logout(token_payload, db)
    return MessageResponse(detail="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def me(
    user: Profile = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    role = user.primary_role
    return MeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=role.value if role is not None else None,
        company_id=user.company_id,
        company_name=user.company.name if user.company is not None else None,
        permissions=sorted(collect_permission_codes(user)),
        viewing_company_id=scope.company_id if scope.viewing_as_client else None,
    )


@router.post("/signup", response_model=ProfileOut, status_code=201)
async def sign_up(body: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """Self-service registration: creates the company and its first client account."""
    profile = await auth_service.sign_up(
        email=body.email,
        password=body.password,
        company_name=body.company_name,
        db=db,
        full_name=body.full_name,
        phone=body.phone,
    )
    return ProfileOut.model_validate(profile)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.request_password_reset(body.email, db)
    # Same answer whether or not the address is registered.
    return MessageResponse(detail="If the email is registered, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(body.token, body.new_password, db)
    return MessageResponse(detail="Password updated successfully")
