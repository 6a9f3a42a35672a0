"""Vendor repository."""

from __future__ import annotations

from sqlalchemy import func, select

from scan2go.domain.vendor import Vendor
from scan2go.repositories.base import BaseRepository


def normalize_vendor_name(name: str) -> str:
    """Lookup key for vendor names: trimmed and lower-cased."""
    return name.strip().lower()


def compact_vendor_name(name: str) -> str:
    """Whitespace-free lookup key, so "Uni World" and "Uniworld" collide."""
    return "".join(normalize_vendor_name(name).split())


class VendorRepository(BaseRepository[Vendor]):
    model = Vendor

    async def list_active(self) -> list[Vendor]:
        result = await self._session.execute(
            select(Vendor).where(Vendor.is_active.is_(True)).order_by(Vendor.name.asc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Vendor]:
        result = await self._session.execute(select(Vendor).order_by(Vendor.name.asc()))
        return list(result.scalars().all())

    async def get_by_name_ci(self, name: str) -> Vendor | None:
        result = await self._session.execute(
            select(Vendor).where(func.lower(func.trim(Vendor.name)) == normalize_vendor_name(name))
        )
        return result.scalars().first()

    async def find_by_name_fragment(self, fragment: str) -> Vendor | None:
        """First vendor (active ones preferred) whose name contains `fragment`, case-insensitive."""
        result = await self._session.execute(
            select(Vendor)
            .where(func.lower(Vendor.name).contains(normalize_vendor_name(fragment), autoescape=True))
            .order_by(Vendor.is_active.desc(), Vendor.name.asc())
            .limit(1)
        )
        return result.scalars().first()

    async def name_index(self) -> dict[str, str]:
        """Build a normalized-name → id lookup table from active vendors."""
        index: dict[str, str] = {}
        for vendor in await self.list_active():
            index.setdefault(normalize_vendor_name(vendor.name), vendor.id)
            index.setdefault(compact_vendor_name(vendor.name), vendor.id)
        return index
