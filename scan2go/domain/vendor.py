"""SQLAlchemy ORM model for meal Vendors.

Vendors are never hard-deleted; `is_active = False` retires them while their
students' meal history stays attributable.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scan2go.db.base import Base
from scan2go.domain.mixins import IdMixin, TimestampMixin


class Vendor(Base, IdMixin, TimestampMixin):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)

    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    students: Mapped[List["Student"]] = relationship(
        back_populates="vendor", lazy="noload", foreign_keys="Student.vendor_id"
    )
