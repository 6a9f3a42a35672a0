"""Admin endpoints: roster upload, exports, stats and bulk maintenance."""


import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import today_local
from scan2go.core.config import settings
from scan2go.core.deps import require_roles
from scan2go.core.exceptions import AppException, ValidationError
from scan2go.core.response import DataResponse
from scan2go.db.base import get_db
from scan2go.schemas.admin import (
    AdminStats,
    BulkDeactivateRequest,
    BulkDeactivateResponse,
    StudentExport,
    VendorCleanupReport,
)
from scan2go.schemas.roster import ReconciliationReport
from scan2go.services.admin import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_roles("admin"))],
)

_ALLOWED_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


# ---------------------------------------------------------------------------
# Upload validation (HTTP concern, stays in the router)
# ---------------------------------------------------------------------------

async def _read_csv_upload(file: UploadFile) -> bytes:
    """Return the uploaded bytes after type and size checks.

    Raises ValidationError (400) or a 413 AppException on invalid input.
    """
    filename = (file.filename or "").lower()
    if not filename.endswith(".csv") and (file.content_type or "") not in _ALLOWED_CONTENT_TYPES:
        raise ValidationError("Only CSV files are allowed")

    contents = await file.read()
    if len(contents) == 0:
        raise ValidationError("Uploaded file is empty")
    if len(contents) > settings.max_upload_size_bytes:
        raise AppException(
            f"File size exceeds the {settings.max_upload_size_mb}MB limit",
            status_code=413,
            code="FILE_TOO_LARGE",
        )
    return contents


@router.post("/upload-csv", response_model=DataResponse[ReconciliationReport])
async def upload_csv(
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
):
    """Reconcile the student registry against an uploaded roster CSV."""
    contents = await _read_csv_upload(file)
    logger.info("Roster upload %r (%d bytes)", file.filename, len(contents))
    return {"data": await AdminService(session).import_roster(contents)}


@router.get("/export-students", response_model=DataResponse[StudentExport])
async def export_students(
    vendor_id: Optional[str] = Query(default=None, alias="vendor"),
    active: bool = Query(default=True, alias="isActive"),
    fmt: Literal["json", "csv"] = Query(default="json", alias="format"),
    session: AsyncSession = Depends(get_db),
):
    svc = AdminService(session)
    export = await svc.export_students(active=active, vendor_id=vendor_id)
    if fmt == "csv":
        return Response(
            content=svc.export_as_csv(export),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="students-{today_local().isoformat()}.csv"'
            },
        )
    return {"data": export}


@router.get("/stats", response_model=DataResponse[AdminStats])
async def admin_stats(session: AsyncSession = Depends(get_db)):
    return {"data": await AdminService(session).stats()}


@router.post("/bulk-deactivate", response_model=DataResponse[BulkDeactivateResponse])
async def bulk_deactivate(
    body: BulkDeactivateRequest,
    session: AsyncSession = Depends(get_db),
):
    count = await AdminService(session).bulk_deactivate(body.student_ids)
    return {"data": BulkDeactivateResponse(message=f"{count} students deactivated", modified_count=count)}


@router.post("/cleanup-vendors", response_model=DataResponse[VendorCleanupReport])
async def cleanup_vendors(session: AsyncSession = Depends(get_db)):
    return {"data": await AdminService(session).cleanup_vendors()}
