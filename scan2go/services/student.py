"""Student Registry service."""


import logging

from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.exceptions import (
    NoVendorAssignedError,
    NotFoundError,
    StudentNotFoundError,
)
from scan2go.domain.student import Student
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.vendor import VendorRepository
from scan2go.schemas.student import MealHistoryOut, MyQRCodeOut, StudentUpdate
from scan2go.schemas.vendor import VendorRef
from scan2go.services.qr import render_qr_png

logger = logging.getLogger(__name__)

class StudentService:
    def __init__(self, session: AsyncSession):
        self._repo = StudentRepository(session)
        self._vendors = VendorRepository(session)

    async def list_students(
        self,
        *,
        offset: int,
        limit: int,
        vendor_id: str | None = None,
        search: str | None = None,
        active: bool | None = None,
    ) -> tuple[list[Student], int]:
        where = (self._repo.search_clause(search),) if search and search.strip() else ()
        return await self._repo.list(
            offset=offset,
            limit=limit,
            order_by="name",
            order="asc",
            filters={"vendor_id": vendor_id, "is_active": active},
            where=where,
        )

    async def get_student(self, student_id: str) -> Student:
        student = await self._repo.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def search_student(self, identifier: str) -> Student:
        student = await self._repo.find_active_by_identifier(identifier)
        if not student:
            raise NotFoundError("Active student", identifier)
        return student

    async def update_student(self, student_id: str, data: StudentUpdate) -> Student:
        await self.get_student(student_id)
        changes = data.model_dump(exclude_none=True, exclude_unset=True)
        if "vendor_id" in changes:
            if not await self._vendors.get_by_id(changes["vendor_id"]):
                raise NotFoundError("Vendor", changes["vendor_id"])
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        updated = await self._repo.update(student_id, **changes)
        return updated  # type: ignore[return-value]

    async def deactivate_student(self, student_id: str) -> None:
        await self.get_student(student_id)
        await self._repo.deactivate_many([student_id])
        logger.info("Student %s deactivated", student_id)

    async def meal_history(
        self, student_id: str, *, offset: int, limit: int
    ) -> tuple[list[MealHistoryOut], int]:
        await self.get_student(student_id)
        entries, total = await self._repo.meal_history(student_id, offset=offset, limit=limit)
        items = [
            MealHistoryOut(
                id=e.id,
                date=e.date,
                vendor_id=e.vendor_id,
                vendor_name=e.vendor.name if e.vendor else None,
                claimed=e.claimed,
            )
            for e in entries
        ]
        return items, total

    async def my_qr_code(self, email: str) -> MyQRCodeOut:
        """QR payload for the student account identified by `email`."""
        student = await self._repo.get_by_email(email)
        if not student or not student.is_active:
            raise StudentNotFoundError()
        vendor = student.vendor
        if vendor is None or not vendor.is_active:
            raise NoVendorAssignedError()

        return MyQRCodeOut(
            qr_code=student.qr_code,
            qr_code_image=render_qr_png(student.qr_code),
            name=student.name,
            roll_number=student.roll_number,
            email=student.email,
            vendor=VendorRef(id=vendor.id, name=vendor.name, location=vendor.location),
        )
