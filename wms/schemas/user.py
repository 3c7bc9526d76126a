import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from wms.models.user import ProfileStatus
from wms.rbac.roles import UserRole


class ProfileOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    phone: str | None = None
    company_id: uuid.UUID | None = None
    status: ProfileStatus
    primary_role: UserRole | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CreateEmployeeRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = None
    phone: str | None = None
    role: UserRole


class CreateClientUserRequest(BaseModel):
    company_id: uuid.UUID
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = None
    phone: str | None = None
    role: UserRole = UserRole.CLIENT_USER


class UpdateUserRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8)
    role: UserRole | None = None
