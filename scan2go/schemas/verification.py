"""Verification request/response schemas."""


from datetime import date, datetime
from enum import Enum

from pydantic import Field

from scan2go.schemas.common import CamelModel

class VerificationOutcome(str, Enum):
    NOT_FOUND = "not_found"
    WRONG_VENDOR = "wrong_vendor"
    ALREADY_CLAIMED = "already_claimed"
    VERIFIED = "verified"

class VerifyRequest(CamelModel):
    identifier: str = Field(min_length=1)
    vendor_id: str = Field(min_length=1)

class VerifiedStudent(CamelModel):
    name: str
    roll_number: str
    email: str | None = None
    vendor: str | None = None
    assigned_vendor: str | None = None
    claimed_at: datetime | None = None

class ClaimRef(CamelModel):
    id: str
    claimed_at: datetime

class VerificationResult(CamelModel):
    outcome: VerificationOutcome
    verified: bool
    already_claimed: bool = False
    message: str
    student: VerifiedStudent | None = None
    meal_record: ClaimRef | None = None

class ClaimHistoryItem(CamelModel):
    id: str
    meal_date: date
    meal_type: str
    claimed_at: datetime | None = None
    student_id: str
    student_name: str | None = None
    student_roll_number: str | None = None
    student_email: str | None = None
    claimed_by_name: str | None = None
    claimed_by_email: str | None = None

class HourlyCount(CamelModel):
    hour: int
    count: int

class VerificationStats(CamelModel):
    total_students: int
    claimed_today: int
    not_claimed_today: int
    claim_rate: float
    hourly_stats: list[HourlyCount]
