"""Vendor directory router.

Reads are open to any signed-in user so the vendor picker can be populated;
per-vendor dashboards are scoped to the vendor's own staff and admins;
writes are admin-only.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.deps import Principal, ensure_vendor_scope, get_current_principal, require_roles
from scan2go.core.response import DataResponse
from scan2go.db.base import get_db
from scan2go.schemas.vendor import (
    VendorCreate,
    VendorDashboard,
    VendorOut,
    VendorStudentOut,
    VendorUpdate,
)
from scan2go.services.vendor import VendorService

router = APIRouter(prefix="/vendors", tags=["Vendors"])

_staff = require_roles("vendor", "admin")
_admin = require_roles("admin")


@router.get("", response_model=DataResponse[list[VendorOut]])
async def list_vendors(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db),
):
    """List active vendors. Admins may pass ?includeInactive=true."""
    vendors = await VendorService(session).list_vendors(include_inactive and principal.is_admin)
    return {"data": [VendorOut.model_validate(v) for v in vendors]}


@router.post("", response_model=DataResponse[VendorOut], status_code=status.HTTP_201_CREATED)
async def create_vendor(
    body: VendorCreate,
    _principal: Principal = Depends(_admin),
    session: AsyncSession = Depends(get_db),
):
    vendor = await VendorService(session).create_vendor(body)
    return {"data": VendorOut.model_validate(vendor)}


@router.get("/{vendor_id}", response_model=DataResponse[VendorOut])
async def get_vendor(
    vendor_id: str,
    _principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db),
):
    vendor = await VendorService(session).get_vendor(vendor_id)
    return {"data": VendorOut.model_validate(vendor)}


@router.get("/{vendor_id}/dashboard", response_model=DataResponse[VendorDashboard])
async def vendor_dashboard(
    vendor_id: str,
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    ensure_vendor_scope(principal, vendor_id)
    return {"data": await VendorService(session).dashboard(vendor_id)}


@router.get("/{vendor_id}/students/search", response_model=DataResponse[list[VendorStudentOut]])
async def search_vendor_students(
    vendor_id: str,
    query: Optional[str] = Query(default=None),
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    ensure_vendor_scope(principal, vendor_id)
    return {"data": await VendorService(session).search_students(vendor_id, query)}


@router.put("/{vendor_id}", response_model=DataResponse[VendorOut])
async def update_vendor(
    vendor_id: str,
    body: VendorUpdate,
    _principal: Principal = Depends(_admin),
    session: AsyncSession = Depends(get_db),
):
    vendor = await VendorService(session).update_vendor(vendor_id, body)
    return {"data": VendorOut.model_validate(vendor)}
