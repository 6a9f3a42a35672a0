"""Student repository - registry lookups, search, and roster deactivation."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, or_, select, update

from scan2go.core.clock import now_utc
from scan2go.domain.student import Student, StudentMealHistory
from scan2go.domain.vendor import Vendor
from scan2go.repositories.base import BaseRepository


class StudentRepository(BaseRepository[Student]):
    model = Student

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_by_email(self, email: str) -> Student | None:
        result = await self._session.execute(
            select(Student).where(Student.email == email.strip().lower())
        )
        return result.scalars().first()

    async def get_by_roll_number(self, roll_number: str) -> Student | None:
        result = await self._session.execute(
            select(Student).where(Student.roll_number == roll_number.strip())
        )
        return result.scalars().first()

    async def find_active_by_identifier(self, identifier: str) -> Student | None:
        """Active student whose QR token, roll number or email equals `identifier`."""
        ident = identifier.strip()
        result = await self._session.execute(
            select(Student)
            .where(Student.is_active.is_(True))
            .where(
                or_(
                    Student.qr_code == ident,
                    Student.roll_number == ident,
                    Student.email == ident.lower(),
                )
            )
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    def search_clause(term: str):
        """Case-insensitive "contains" across name, roll number and email."""
        needle = term.strip().lower()
        return or_(
            func.lower(Student.name).contains(needle, autoescape=True),
            func.lower(Student.roll_number).contains(needle, autoescape=True),
            func.lower(Student.email).contains(needle, autoescape=True),
        )

    async def list_for_vendor(self, vendor_id: str, search: str | None = None) -> list[Student]:
        q = (
            select(Student)
            .where(Student.vendor_id == vendor_id)
            .where(Student.is_active.is_(True))
            .order_by(Student.name.asc())
        )
        if search:
            q = q.where(self.search_clause(search))
        return list((await self._session.execute(q)).scalars().all())

    async def export_rows(self, *, active: bool, vendor_id: str | None = None) -> list[Student]:
        q = select(Student).where(Student.is_active.is_(active)).order_by(Student.name.asc())
        if vendor_id:
            q = q.where(Student.vendor_id == vendor_id)
        return list((await self._session.execute(q)).scalars().all())

    async def recently_updated(self, limit: int = 10) -> list[Student]:
        result = await self._session.execute(
            select(Student)
            .where(Student.is_active.is_(True))
            .order_by(Student.updated_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_claimed_since(self, since: datetime) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(Student)
            .where(Student.is_active.is_(True))
            .where(Student.last_meal_claimed_at >= since)
        )
        return result.scalar_one()

    async def counts_by_vendor(self) -> list[tuple[str, str, int]]:
        """(vendor_id, vendor_name, active student count), largest first."""
        result = await self._session.execute(
            select(Vendor.id, Vendor.name, func.count(Student.id))
            .join(Student, Student.vendor_id == Vendor.id)
            .where(Student.is_active.is_(True))
            .group_by(Vendor.id, Vendor.name)
            .order_by(func.count(Student.id).desc(), Vendor.name.asc())
        )
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def with_unusable_vendor(self) -> list[Student]:
        """Students whose vendor reference is dangling or points at an inactive vendor."""
        result = await self._session.execute(
            select(Student)
            .outerjoin(Vendor, Vendor.id == Student.vendor_id)
            .where(or_(Vendor.id.is_(None), Vendor.is_active.is_(False)))
        )
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Meal history
    # ------------------------------------------------------------------

    async def meal_history(
        self, student_id: str, *, offset: int = 0, limit: int = 30
    ) -> tuple[list[StudentMealHistory], int]:
        base = select(StudentMealHistory).where(StudentMealHistory.student_id == student_id)
        total = (
            await self._session.execute(select(func.count()).select_from(base.subquery()))
        ).scalar_one()
        items = (
            await self._session.execute(
                base.order_by(StudentMealHistory.date.desc()).offset(offset).limit(limit)
            )
        ).scalars().all()
        return list(items), total

    async def append_meal_history(
        self, student_id: str, vendor_id: str, when: datetime
    ) -> StudentMealHistory:
        entry = StudentMealHistory(student_id=student_id, vendor_id=vendor_id, date=when, claimed=True)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def count_history_between(self, vendor_id: str, start: datetime, end: datetime) -> int:
        """Meals served to the vendor's active students in [start, end)."""
        result = await self._session.execute(
            select(func.count())
            .select_from(StudentMealHistory)
            .join(Student, Student.id == StudentMealHistory.student_id)
            .where(Student.vendor_id == vendor_id)
            .where(Student.is_active.is_(True))
            .where(StudentMealHistory.vendor_id == vendor_id)
            .where(StudentMealHistory.date >= start)
            .where(StudentMealHistory.date < end)
        )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Bulk writes
    # ------------------------------------------------------------------

    async def deactivate_missing(self, keep_emails: Iterable[str]) -> int:
        """Deactivate every active student whose email is not in `keep_emails`.

        Callers must never pass an empty set: that would deactivate the whole
        registry. An empty set is rejected here as well.
        """
        emails = {e.strip().lower() for e in keep_emails if e and e.strip()}
        if not emails:
            raise ValueError("refusing to deactivate against an empty email set")
        return await self._deactivate_where(Student.email.not_in(emails))

    async def activate_all(self) -> int:
        ids = list(
            (
                await self._session.execute(
                    select(Student.id).where(Student.is_active.is_(False))
                )
            ).scalars().all()
        )
        if not ids:
            return 0
        await self._session.execute(
            update(Student)
            .where(Student.id.in_(ids))
            .values(is_active=True, updated_at=now_utc())
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return len(ids)
