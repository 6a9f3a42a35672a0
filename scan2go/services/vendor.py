"""Vendor Directory service.

Rule: No FastAPI here. Routers call this; this calls repositories.
"""


from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import local_day_bounds, local_month_bounds, today_local
from scan2go.core.exceptions import ConflictError, NotFoundError, ValidationError
from scan2go.domain.vendor import Vendor
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.vendor import VendorRepository
from scan2go.schemas.vendor import (
    VendorCreate,
    VendorDashboard,
    VendorStudentOut,
    VendorSummary,
    VendorUpdate,
)

class VendorService:
    def __init__(self, session: AsyncSession):
        self._repo = VendorRepository(session)
        self._students = StudentRepository(session)

    async def list_vendors(self, include_inactive: bool = False) -> list[Vendor]:
        if include_inactive:
            return await self._repo.list_all()
        return await self._repo.list_active()

    async def get_vendor(self, vendor_id: str) -> Vendor:
        vendor = await self._repo.get_by_id(vendor_id)
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        return vendor

    async def _ensure_name_free(self, name: str, exclude_id: str | None = None) -> None:
        existing = await self._repo.get_by_name_ci(name)
        if existing and existing.id != exclude_id:
            raise ConflictError(f"Vendor '{existing.name}' already exists")

    async def create_vendor(self, data: VendorCreate) -> Vendor:
        payload = data.model_dump(exclude_none=True)
        payload["name"] = payload["name"].strip()
        payload["location"] = payload["location"].strip()
        await self._ensure_name_free(payload["name"])
        return await self._repo.create(**payload)

    async def update_vendor(self, vendor_id: str, data: VendorUpdate) -> Vendor:
        _ = await self.get_vendor(vendor_id)  # raises 404 if missing
        changes = data.model_dump(exclude_none=True, exclude_unset=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            await self._ensure_name_free(changes["name"], exclude_id=vendor_id)
        updated = await self._repo.update(vendor_id, **changes)
        return updated  # type: ignore[return-value]

    async def dashboard(self, vendor_id: str) -> VendorDashboard:
        vendor = await self.get_vendor(vendor_id)
        students = await self._students.list_for_vendor(vendor_id)

        today = today_local()
        day_start, day_end = local_day_bounds(today)
        month_start, month_end = local_month_bounds(today)
        today_meals = await self._students.count_history_between(vendor_id, day_start, day_end)
        monthly_meals = await self._students.count_history_between(vendor_id, month_start, month_end)

        return VendorDashboard(
            vendor=VendorSummary(
                id=vendor.id,
                name=vendor.name,
                location=vendor.location,
                total_students=len(students),
                today_meals=today_meals,
                monthly_meals=monthly_meals,
            ),
            students=[
                VendorStudentOut(
                    id=s.id,
                    name=s.name,
                    roll_number=s.roll_number,
                    email=s.email,
                    last_meal_claimed_at=s.last_meal_claimed_at,
                )
                for s in students
            ],
        )

    async def search_students(self, vendor_id: str, query: str | None) -> list[VendorStudentOut]:
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        await self.get_vendor(vendor_id)
        students = await self._students.list_for_vendor(vendor_id, search=query)
        return [
            VendorStudentOut(
                id=s.id,
                name=s.name,
                roll_number=s.roll_number,
                email=s.email,
                qr_code=s.qr_code,
                last_meal_claimed_at=s.last_meal_claimed_at,
            )
            for s in students
        ]
