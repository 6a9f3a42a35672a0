"""Roster import report schemas."""


from scan2go.schemas.common import CamelModel

class ProcessedStudent(CamelModel):
    name: str
    email: str
    roll_number: str
    vendor: str
    status: str  # created | updated

class ReconciliationReport(CamelModel):
    message: str
    total_rows: int
    processed: int
    created: int
    updated: int
    errors: int
    error_details: list[str]
    vendors_created: list[str]
    deactivated_count: int
    deactivation_skipped: bool
    total_active_students: int
    total_inactive_students: int
    processed_students: list[ProcessedStudent]
