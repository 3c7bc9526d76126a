import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActivityOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID | None = None
    company_id: uuid.UUID | None = None
    activity_type: str
    description: str
    details: dict[str, Any] = {}
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StartViewingRequest(BaseModel):
    company_id: uuid.UUID
    notes: str | None = None


class AdminSessionOut(BaseModel):
    id: uuid.UUID
    admin_user_id: uuid.UUID
    viewed_company_id: uuid.UUID
    session_start: datetime
    session_end: datetime | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}
