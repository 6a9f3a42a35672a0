"""FastAPI dependencies for the authenticated principal and role gates."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.exceptions import ForbiddenError, UnauthorizedError
from scan2go.core.security import decode_access_token
from scan2go.db.base import get_db
from scan2go.repositories.user import UserRepository


@dataclass(frozen=True)
class Principal:
    """The authenticated actor behind a request."""

    user_id: str
    role: str
    email: str
    name: str
    vendor_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def get_current_principal(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> Principal:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedError("No token, authorization denied")
    claims = decode_access_token(authorization.split(" ", 1)[1].strip())

    user = await UserRepository(session).get_by_id(str(claims.get("sub")))
    if user is None or not user.is_active:
        raise UnauthorizedError("Token is not valid")
    return Principal(
        user_id=user.id,
        role=user.role,
        email=user.email,
        name=user.name,
        vendor_id=user.vendor_id,
    )


def require_roles(*roles: str):
    """Dependency factory: allow only principals holding one of `roles`."""

    async def _gate(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise ForbiddenError(f"Access denied. Requires role: {' or '.join(roles)}")
        return principal

    return _gate


def ensure_vendor_scope(principal: Principal, vendor_id: str) -> None:
    """Vendor staff may only act for their own vendor; admins act for any."""
    if principal.is_admin:
        return
    if principal.vendor_id != vendor_id:
        raise ForbiddenError("You can only access data for your own vendor")
