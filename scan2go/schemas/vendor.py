"""Vendor Pydantic schemas (request DTOs and response models)."""


from datetime import datetime

from pydantic import Field

from scan2go.schemas.common import CamelModel

class VendorCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    location: str = Field(min_length=1)
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_address: str | None = None

class VendorUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    location: str | None = Field(default=None, min_length=1)
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_address: str | None = None
    is_active: bool | None = None

class VendorOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    location: str
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_address: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

class VendorRef(CamelModel):
    """Compact vendor reference embedded in student payloads."""

    id: str
    name: str
    location: str

class VendorSummary(CamelModel):
    id: str
    name: str
    location: str
    total_students: int
    today_meals: int
    monthly_meals: int

class VendorStudentOut(CamelModel):
    id: str
    name: str
    roll_number: str
    email: str
    qr_code: str | None = None
    last_meal_claimed_at: datetime | None = None

class VendorDashboard(CamelModel):
    vendor: VendorSummary
    students: list[VendorStudentOut]
