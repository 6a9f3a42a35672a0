"""SQLAlchemy ORM models for Students and their append-only meal history."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from scan2go.core.clock import now_utc
from scan2go.db.base import Base
from scan2go.domain.mixins import IdMixin, TimestampMixin


def new_qr_token() -> str:
    return str(uuid.uuid4())


class Student(Base, IdMixin, TimestampMixin):
    """One enrolled student. Deactivation (`is_active = False`) is the only delete."""

    __tablename__ = "students"
    __table_args__ = (Index("ix_students_vendor_active", "vendor_id", "is_active"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    roll_number: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)

    vendor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vendors.id"), nullable=False, index=True
    )
    vendor_location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    qr_code: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True, default=new_qr_token
    )

    # Last-claim cache, refreshed by every successful verification
    last_meal_claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_meal_vendor_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("vendors.id"), nullable=True
    )

    vendor: Mapped["Vendor"] = relationship(
        back_populates="students", lazy="joined", foreign_keys=[vendor_id]
    )
    meal_history: Mapped[List["StudentMealHistory"]] = relationship(
        back_populates="student", lazy="raise", order_by="StudentMealHistory.date"
    )

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return value.strip().lower()

    @validates("qr_code")
    def _freeze_qr_code(self, key: str, value: str) -> str:
        current = self.__dict__.get("qr_code")
        if current and value != current:
            raise ValueError("qr_code is immutable once assigned")
        return value


class StudentMealHistory(Base, IdMixin):
    """One entry per successful claim; rows are never updated or deleted."""

    __tablename__ = "student_meal_history"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    vendor_id: Mapped[str] = mapped_column(String(36), ForeignKey("vendors.id"), nullable=False)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now_utc, nullable=False
    )
    claimed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    student: Mapped["Student"] = relationship(back_populates="meal_history")
    vendor: Mapped["Vendor"] = relationship(lazy="joined")
