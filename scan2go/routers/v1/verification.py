"""Meal-claim verification router.

The verify endpoint always answers with the structured result; the HTTP
status tells the outcomes apart for clients that only look at the code.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.deps import Principal, ensure_vendor_scope, require_roles
from scan2go.core.pagination import PaginationParams
from scan2go.core.response import DataResponse, ListResponse, paginated
from scan2go.db.base import get_db
from scan2go.schemas.verification import (
    ClaimHistoryItem,
    VerificationOutcome,
    VerificationResult,
    VerificationStats,
    VerifyRequest,
)
from scan2go.services.verification import VerificationService

router = APIRouter(prefix="/verification", tags=["Verification"])

_staff = require_roles("vendor", "admin")

OUTCOME_STATUS: dict[VerificationOutcome, int] = {
    VerificationOutcome.VERIFIED: 200,
    VerificationOutcome.NOT_FOUND: 404,
    VerificationOutcome.WRONG_VENDOR: 403,
    VerificationOutcome.ALREADY_CLAIMED: 409,
}


@router.post("/verify", response_model=DataResponse[VerificationResult])
async def verify(
    body: VerifyRequest,
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    ensure_vendor_scope(principal, body.vendor_id)
    result = await VerificationService(session).verify(
        body.identifier.strip(), body.vendor_id, principal.user_id
    )
    return JSONResponse(
        status_code=OUTCOME_STATUS[result.outcome],
        content={"data": result.model_dump(mode="json", by_alias=True)},
    )


@router.get("/history/{vendor_id}", response_model=ListResponse[ClaimHistoryItem])
async def verification_history(
    vendor_id: str,
    day: Optional[date] = Query(default=None, alias="date"),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    """Claims recorded at a vendor, newest first. Filter by ?date=YYYY-MM-DD."""
    ensure_vendor_scope(principal, vendor_id)
    items, total = await VerificationService(session).history(
        vendor_id, day=day, offset=pagination.offset, limit=pagination.limit
    )
    return paginated(items, total, pagination)


@router.get("/stats/{vendor_id}", response_model=DataResponse[VerificationStats])
async def verification_stats(
    vendor_id: str,
    principal: Principal = Depends(_staff),
    session: AsyncSession = Depends(get_db),
):
    ensure_vendor_scope(principal, vendor_id)
    return {"data": await VerificationService(session).stats(vendor_id)}
