"""
Auth request / response schemas.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    email: str
    password: str
    device_id: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    profile_id: str
    role: str
    company_id: str | None = None


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    company_name: str = Field(min_length=1, max_length=256)
    full_name: str | None = None
    phone: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(min_length=8)


class MeResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: str | None = None
    company_id: uuid.UUID | None = None
    company_name: str | None = None
    permissions: list[str] = []
    viewing_company_id: uuid.UUID | None = None
