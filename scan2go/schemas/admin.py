"""Admin dashboard and bulk-operation schemas."""


from datetime import datetime

from pydantic import Field

from scan2go.schemas.common import CamelModel

class BulkDeactivateRequest(CamelModel):
    student_ids: list[str] = Field(default_factory=list)

class BulkDeactivateResponse(CamelModel):
    message: str
    modified_count: int

class ExportedStudent(CamelModel):
    name: str
    email: str
    roll_number: str
    vendor: str | None = None
    qr_code: str
    is_active: bool
    last_meal_claimed: datetime | None = None
    created_at: datetime

class StudentExport(CamelModel):
    students: list[ExportedStudent]
    total: int
    export_date: datetime

class VendorCount(CamelModel):
    vendor_id: str
    vendor_name: str
    count: int

class RecentStudent(CamelModel):
    id: str
    name: str
    email: str
    roll_number: str
    vendor: str | None = None
    updated_at: datetime

class AdminStats(CamelModel):
    total_students: int
    total_vendors: int
    todays_verifications: int
    active_students: int
    students_by_vendor: list[VendorCount]
    recent_students: list[RecentStudent]

class VendorCleanupReport(CamelModel):
    message: str
    total_invalid: int
    fixed: int
    failed: int
    errors: list[str]
