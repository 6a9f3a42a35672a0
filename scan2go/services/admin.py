"""Admin operations: roster upload, export, dashboard stats, bulk fixes."""


import csv
import io
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import now_utc, today_local
from scan2go.core.config import settings
from scan2go.core.exceptions import ValidationError
from scan2go.repositories.meal import MealRecordRepository
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.vendor import VendorRepository
from scan2go.schemas.admin import (
    AdminStats,
    ExportedStudent,
    RecentStudent,
    StudentExport,
    VendorCleanupReport,
    VendorCount,
)
from scan2go.schemas.roster import ReconciliationReport
from scan2go.services.roster import RosterReconciler, parse_roster

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "name", "email", "rollNumber", "vendor", "qrCode", "isActive", "lastMealClaimed", "createdAt",
]

class AdminService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._students = StudentRepository(session)
        self._vendors = VendorRepository(session)
        self._meals = MealRecordRepository(session)

    async def import_roster(self, content: bytes) -> ReconciliationReport:
        parsed = parse_roster(content)
        return await RosterReconciler(self._session).reconcile(parsed.rows)

    async def export_students(self, *, active: bool = True, vendor_id: str | None = None) -> StudentExport:
        students = await self._students.export_rows(active=active, vendor_id=vendor_id)
        rows = [
            ExportedStudent(
                name=s.name,
                email=s.email,
                roll_number=s.roll_number,
                vendor=s.vendor.name if s.vendor else None,
                qr_code=s.qr_code,
                is_active=s.is_active,
                last_meal_claimed=s.last_meal_claimed_at,
                created_at=s.created_at,
            )
            for s in students
        ]
        return StudentExport(students=rows, total=len(rows), export_date=now_utc())

    @staticmethod
    def export_as_csv(export: StudentExport) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for row in export.students:
            data = row.model_dump(by_alias=True, mode="json")
            writer.writerow({k: "" if data.get(k) is None else data[k] for k in EXPORT_COLUMNS})
        return buffer.getvalue()

    async def stats(self) -> AdminStats:
        since = now_utc() - timedelta(days=settings.recent_claim_days)
        recent = await self._students.recently_updated(limit=10)
        return AdminStats(
            total_students=await self._students.count({"is_active": True}),
            total_vendors=await self._vendors.count({"is_active": True}),
            todays_verifications=await self._meals.count_claimed(today_local()),
            active_students=await self._students.count_claimed_since(since),
            students_by_vendor=[
                VendorCount(vendor_id=vid, vendor_name=name, count=n)
                for vid, name, n in await self._students.counts_by_vendor()
            ],
            recent_students=[
                RecentStudent(
                    id=s.id,
                    name=s.name,
                    email=s.email,
                    roll_number=s.roll_number,
                    vendor=s.vendor.name if s.vendor else None,
                    updated_at=s.updated_at,
                )
                for s in recent
            ],
        )

    async def bulk_deactivate(self, student_ids: list[str]) -> int:
        if not student_ids:
            raise ValidationError("Student IDs array is required")
        count = await self._students.deactivate_many(student_ids)
        logger.info("Bulk-deactivated %d of %d requested students", count, len(student_ids))
        return count

    async def cleanup_vendors(self) -> VendorCleanupReport:
        """Reassign students whose vendor is missing or retired to a usable vendor.

        A retired vendor is replaced by an active vendor with a matching name
        when one exists, otherwise by the first active vendor.
        """
        broken = await self._students.with_unusable_vendor()
        active = await self._vendors.list_active()
        fixed = 0
        errors: list[str] = []

        for student in broken:
            old_name = student.vendor.name if student.vendor else None
            replacement = None
            if old_name:
                match = await self._vendors.find_by_name_fragment(old_name)
                if match is not None and match.is_active:
                    replacement = match
            if replacement is None and active:
                replacement = active[0]
            if replacement is None:
                errors.append(f"Could not find vendor for student: {student.name}")
                continue
            student.vendor_id = replacement.id
            fixed += 1
            logger.info("Reassigned %s from %r to %r", student.email, old_name, replacement.name)

        await self._session.flush()
        return VendorCleanupReport(
            message="Vendor cleanup completed",
            total_invalid=len(broken),
            fixed=fixed,
            failed=len(errors),
            errors=errors[: settings.import_error_preview],
        )
