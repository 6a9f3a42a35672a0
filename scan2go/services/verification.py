"""Meal-claim verification workflow.

`verify` walks a fixed sequence of checks, each of which can end the request:

  not found → wrong vendor → already claimed → verified

The pre-insert "already claimed" lookup is an optimisation only. The unique
constraint on (student, meal_date, meal_type) is the gate: when two requests
race past the lookup, the loser's insert fails and is reported as
"already claimed" with the winner's timestamp.
"""


import logging
from collections import Counter
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import as_local, now_utc, today_local
from scan2go.core.config import settings
from scan2go.core.exceptions import NotFoundError
from scan2go.domain.meal import MEAL_TYPES, MealRecord
from scan2go.domain.student import Student
from scan2go.repositories.meal import MealRecordRepository
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.vendor import VendorRepository
from scan2go.schemas.verification import (
    ClaimHistoryItem,
    ClaimRef,
    HourlyCount,
    VerificationOutcome,
    VerificationResult,
    VerificationStats,
    VerifiedStudent,
)

logger = logging.getLogger(__name__)

class VerificationService:
    def __init__(self, session: AsyncSession, meal_type: str | None = None):
        self._session = session
        self._students = StudentRepository(session)
        self._vendors = VendorRepository(session)
        self._meals = MealRecordRepository(session)
        self._meal_type = meal_type or settings.default_meal_type
        if self._meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {self._meal_type!r}")

    # ------------------------------------------------------------------
    # verify
    # ------------------------------------------------------------------

    async def verify(self, identifier: str, vendor_id: str, principal_id: str | None) -> VerificationResult:
        vendor = await self._vendors.get_by_id(vendor_id)
        if vendor is None:
            raise NotFoundError("Vendor", vendor_id)

        student = await self._students.find_active_by_identifier(identifier)
        if student is None:
            logger.info("Verification at %s: no active student for %r", vendor.name, identifier)
            return VerificationResult(
                outcome=VerificationOutcome.NOT_FOUND,
                verified=False,
                message="Student not found or inactive",
            )

        if student.vendor_id != vendor_id:
            assigned = student.vendor.name if student.vendor else None
            logger.info(
                "Verification at %s: %s is assigned to %s", vendor.name, student.roll_number, assigned
            )
            return VerificationResult(
                outcome=VerificationOutcome.WRONG_VENDOR,
                verified=False,
                message="Student is not assigned to this vendor",
                student=VerifiedStudent(
                    name=student.name,
                    roll_number=student.roll_number,
                    assigned_vendor=assigned,
                ),
            )

        day = today_local()
        existing = await self._meals.find_claim(student.id, day, self._meal_type)
        if existing is not None:
            logger.info("Verification at %s: %s already claimed %s", vendor.name, student.roll_number, day)
            return self._already_claimed(student, existing)

        claimed_at = now_utc()
        try:
            async with self._session.begin_nested():
                record = await self._meals.create_claim(
                    student_id=student.id,
                    vendor_id=vendor_id,
                    day=day,
                    meal_type=self._meal_type,
                    claimed_at=claimed_at,
                    claimed_by_user_id=principal_id,
                )
        except IntegrityError:
            winner = await self._meals.find_claim(student.id, day, self._meal_type)
            logger.info("Concurrent claim for %s on %s rejected", student.roll_number, day)
            return self._already_claimed(student, winner)

        await self._students.append_meal_history(student.id, vendor_id, claimed_at)
        student.last_meal_claimed_at = claimed_at
        student.last_meal_vendor_id = vendor_id
        await self._session.flush()

        logger.info("Meal claimed: %s at %s", student.roll_number, vendor.name)
        return VerificationResult(
            outcome=VerificationOutcome.VERIFIED,
            verified=True,
            message="Student verified successfully",
            student=VerifiedStudent(
                name=student.name,
                roll_number=student.roll_number,
                email=student.email,
                vendor=vendor.name,
            ),
            meal_record=ClaimRef(id=record.id, claimed_at=record.claimed_at or claimed_at),
        )

    @staticmethod
    def _already_claimed(student: Student, record: MealRecord | None) -> VerificationResult:
        return VerificationResult(
            outcome=VerificationOutcome.ALREADY_CLAIMED,
            verified=False,
            already_claimed=True,
            message="Student has already claimed today's meal",
            student=VerifiedStudent(
                name=student.name,
                roll_number=student.roll_number,
                claimed_at=record.claimed_at if record else None,
            ),
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def history(
        self, vendor_id: str, *, day: date | None, offset: int, limit: int
    ) -> tuple[list[ClaimHistoryItem], int]:
        records, total = await self._meals.history_for_vendor(
            vendor_id, day=day, offset=offset, limit=limit
        )
        items = [
            ClaimHistoryItem(
                id=r.id,
                meal_date=r.meal_date,
                meal_type=r.meal_type,
                claimed_at=r.claimed_at,
                student_id=r.student_id,
                student_name=r.student.name if r.student else None,
                student_roll_number=r.student.roll_number if r.student else None,
                student_email=r.student.email if r.student else None,
                claimed_by_name=r.claimed_by.name if r.claimed_by else None,
                claimed_by_email=r.claimed_by.email if r.claimed_by else None,
            )
            for r in records
        ]
        return items, total

    async def stats(self, vendor_id: str) -> VerificationStats:
        day = today_local()
        total_students = await self._students.count({"vendor_id": vendor_id, "is_active": True})
        claimed_today = await self._meals.count_claimed(day, vendor_id=vendor_id)

        by_hour = Counter(as_local(ts).hour for ts in await self._meals.claim_times(vendor_id, day))
        claim_rate = round(claimed_today / total_students * 100, 2) if total_students else 0.0

        return VerificationStats(
            total_students=total_students,
            claimed_today=claimed_today,
            not_claimed_today=max(total_students - claimed_today, 0),
            claim_rate=claim_rate,
            hourly_stats=[HourlyCount(hour=h, count=c) for h, c in sorted(by_hour.items())],
        )
