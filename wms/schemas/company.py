import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

from wms.models.company import LocationType


class CreateCompanyRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    contact_person: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    billing_address: str | None = None
    storage_plan: str | None = None
    max_storage_cubic_feet: Decimal | None = None
    monthly_fee: Decimal | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    location_type: LocationType | None = None
    assigned_floor_zone_id: uuid.UUID | None = None
    assigned_row_id: uuid.UUID | None = None


class UpdateCompanyRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    contact_person: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    billing_address: str | None = None
    storage_plan: str | None = None
    max_storage_cubic_feet: Decimal | None = None
    monthly_fee: Decimal | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    location_type: LocationType | None = None
    assigned_floor_zone_id: uuid.UUID | None = None
    assigned_row_id: uuid.UUID | None = None


class CompanyOut(BaseModel):
    id: uuid.UUID
    name: str
    client_code: str | None = None
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    billing_address: str | None = None
    is_active: bool
    storage_plan: str | None = None
    max_storage_cubic_feet: Decimal | None = None
    monthly_fee: Decimal | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    location_type: LocationType | None = None
    assigned_floor_zone_id: uuid.UUID | None = None
    assigned_row_id: uuid.UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PortalStatsOut(BaseModel):
    company_id: uuid.UUID
    active_products: int
    total_units: int
    pending_check_ins: int
    pending_check_outs: int
    open_orders: int
    unread_messages: int
