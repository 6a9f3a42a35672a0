"""Student Pydantic schemas."""


from datetime import datetime

from pydantic import Field

from scan2go.schemas.common import CamelModel
from scan2go.schemas.vendor import VendorRef

class StudentUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    vendor_id: str | None = Field(default=None, alias="vendor")
    is_active: bool | None = None

class StudentOut(CamelModel):
    id: str
    name: str
    email: str
    roll_number: str
    vendor: VendorRef | None = None
    vendor_location: str | None = None
    is_active: bool
    qr_code: str
    last_meal_claimed_at: datetime | None = None
    last_meal_vendor_id: str | None = None
    created_at: datetime
    updated_at: datetime

class MealHistoryOut(CamelModel):
    id: str
    date: datetime
    vendor_id: str
    vendor_name: str | None = None
    claimed: bool

class MyQRCodeOut(CamelModel):
    qr_code: str
    qr_code_image: str
    name: str
    roll_number: str
    email: str
    vendor: VendorRef
