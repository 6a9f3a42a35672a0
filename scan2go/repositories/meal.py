"""Meal Ledger repository. Rows are inserted once and never updated."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func, select

from scan2go.domain.meal import MealRecord
from scan2go.repositories.base import BaseRepository


class MealRecordRepository(BaseRepository[MealRecord]):
    model = MealRecord

    async def find_claim(self, student_id: str, day: date, meal_type: str) -> MealRecord | None:
        result = await self._session.execute(
            select(MealRecord)
            .where(MealRecord.student_id == student_id)
            .where(MealRecord.meal_date == day)
            .where(MealRecord.meal_type == meal_type)
            .where(MealRecord.claimed.is_(True))
        )
        return result.scalars().first()

    async def create_claim(
        self,
        *,
        student_id: str,
        vendor_id: str,
        day: date,
        meal_type: str,
        claimed_at: datetime,
        claimed_by_user_id: str | None,
    ) -> MealRecord:
        """Insert a claimed record. Raises IntegrityError if the day is already claimed."""
        return await self.create(
            student_id=student_id,
            vendor_id=vendor_id,
            meal_date=day,
            meal_type=meal_type,
            claimed=True,
            claimed_at=claimed_at,
            claimed_by_user_id=claimed_by_user_id,
        )

    async def history_for_vendor(
        self,
        vendor_id: str,
        *,
        day: date | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[MealRecord], int]:
        where = [MealRecord.vendor_id == vendor_id, MealRecord.claimed.is_(True)]
        if day is not None:
            where.append(MealRecord.meal_date == day)
        return await self.list(
            offset=offset,
            limit=limit,
            order_by="claimed_at",
            order="desc",
            where=tuple(where),
        )

    async def count_claimed(self, day: date, vendor_id: str | None = None) -> int:
        q = (
            select(func.count())
            .select_from(MealRecord)
            .where(MealRecord.meal_date == day)
            .where(MealRecord.claimed.is_(True))
        )
        if vendor_id:
            q = q.where(MealRecord.vendor_id == vendor_id)
        return (await self._session.execute(q)).scalar_one()

    async def claim_times(self, vendor_id: str, day: date) -> list[datetime]:
        result = await self._session.execute(
            select(MealRecord.claimed_at)
            .where(MealRecord.vendor_id == vendor_id)
            .where(MealRecord.meal_date == day)
            .where(MealRecord.claimed.is_(True))
        )
        return [ts for ts in result.scalars().all() if ts is not None]
