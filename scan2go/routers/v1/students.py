"""Student registry router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.deps import Principal, ensure_vendor_scope, require_roles
from scan2go.core.pagination import PaginationParams
from scan2go.core.response import DataResponse, ListResponse, paginated
from scan2go.db.base import get_db
from scan2go.schemas.student import MealHistoryOut, MyQRCodeOut, StudentOut, StudentUpdate
from scan2go.services.student import StudentService

router = APIRouter(prefix="/students", tags=["Students"])

_staff = require_roles("vendor", "admin")
_admin = require_roles("admin")


@router.get("", response_model=ListResponse[StudentOut])
async def list_students(
    vendor_id: Optional[str] = Query(default=None, alias="vendor"),
    search: Optional[str] = Query(default=None),
    active: Optional[bool] = Query(default=True, alias="isActive"),
    pagination: PaginationParams = Depends(),
    _principal: Principal = Depends(_admin),
    session: AsyncSession = Depends(get_db),
):
    """List students (paginated, ordered by name). Filter by ?vendor=, ?search=, ?isActive=."""
    items, total = await StudentService(session).list_students(
        offset=pagination.offset,
        limit=pagination.limit,
        vendor_id=vendor_id,
        search=search,
        active=active,
    )
    return paginated(
        [StudentOut.model_validate(s) for s in items],
        total, pagination,
    )


# Declared before /{student_id} so the literal path wins.
@router.get("/my-qr-code", response_model=DataResponse[MyQRCodeOut])
async def my_qr_code(
    principal: Principal = Depends(require_roles("student")),
    session: AsyncSession = Depends(get_db),
):
    return {"data": await StudentService(session).my_qr_code(principal.email)}


@router.get("/search/{identifier}", response_model=DataResponse[StudentOut])
async def search_student(
    identifier: str,
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    """Look up an active student by QR token, roll number or email."""
    student = await StudentService(session).search_student(identifier)
    ensure_vendor_scope(principal, student.vendor_id)
    return {"data": StudentOut.model_validate(student)}


@router.get("/{student_id}", response_model=DataResponse[StudentOut])
async def get_student(
    student_id: str,
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    student = await StudentService(session).get_student(student_id)
    ensure_vendor_scope(principal, student.vendor_id)
    return {"data": StudentOut.model_validate(student)}


@router.put("/{student_id}", response_model=DataResponse[StudentOut])
async def update_student(
    student_id: str,
    body: StudentUpdate,
    _principal: Principal = Depends(_admin),
    session: AsyncSession = Depends(get_db),
):
    student = await StudentService(session).update_student(student_id, body)
    return {"data": StudentOut.model_validate(student)}


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_student(
    student_id: str,
    _principal: Principal = Depends(_admin),
    session: AsyncSession = Depends(get_db),
):
    """Soft-delete: the student is deactivated, never removed."""
    await StudentService(session).deactivate_student(student_id)


@router.get("/{student_id}/meals", response_model=ListResponse[MealHistoryOut])
async def student_meals(
    student_id: str,
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    svc = StudentService(session)
    student = await svc.get_student(student_id)
    ensure_vendor_scope(principal, student.vendor_id)
    items, total = await svc.meal_history(student_id, offset=pagination.offset, limit=pagination.limit)
    return paginated(items, total, pagination)
