"""SQLAlchemy ORM model for login accounts (students, vendor staff, admins)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from scan2go.db.base import Base
from scan2go.domain.mixins import IdMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # "student" | "vendor" | "admin"
    role: Mapped[str] = mapped_column(String(20), default="student", nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Required for vendor staff: the vendor whose counter they operate
    vendor_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("vendors.id"), nullable=True
    )
    vendor: Mapped[Optional["Vendor"]] = relationship(lazy="joined")

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return value.strip().lower()
