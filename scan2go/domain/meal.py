"""SQLAlchemy ORM model for the Meal Ledger (immutable claim events)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scan2go.db.base import Base
from scan2go.domain.mixins import IdMixin, TimestampMixin

MEAL_TYPES = ("breakfast", "lunch", "dinner")


class MealRecord(Base, IdMixin, TimestampMixin):
    """One claim for one (student, day, meal type). Created once, never updated."""

    __tablename__ = "meal_records"
    __table_args__ = (
        # The authoritative one-claim-per-day gate
        UniqueConstraint("student_id", "meal_date", "meal_type", name="uq_meal_student_day_type"),
        Index("ix_meal_vendor_date", "vendor_id", "meal_date"),
        Index("ix_meal_date_claimed", "meal_date", "claimed"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(String(36), ForeignKey("vendors.id"), nullable=False)

    # Server-local calendar day the claim belongs to
    meal_date: Mapped[date] = mapped_column(Date, nullable=False)
    # "breakfast" | "lunch" | "dinner"
    meal_type: Mapped[str] = mapped_column(String(20), default="lunch", nullable=False)

    claimed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    claimed_by_user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    student: Mapped["Student"] = relationship(lazy="joined")
    claimed_by: Mapped[Optional["User"]] = relationship(lazy="joined")
