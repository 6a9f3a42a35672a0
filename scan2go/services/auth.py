"""Account registration, login and admin-driven user creation."""


import logging

from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import now_utc
from scan2go.core.config import settings
from scan2go.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from scan2go.core.security import create_access_token, hash_password, verify_password
from scan2go.domain.user import User
from scan2go.repositories.user import UserRepository
from scan2go.repositories.vendor import VendorRepository
from scan2go.schemas.auth import CreateUserRequest, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self._users = UserRepository(session)
        self._vendors = VendorRepository(session)

    def _require_institutional(self, email: str) -> None:
        if not settings.is_institutional_email(email):
            raise ValidationError(f"Only {settings.email_suffix} emails are allowed")

    async def _ensure_email_free(self, email: str) -> None:
        if await self._users.get_by_email(email):
            raise ConflictError("User already exists")

    async def register(self, data: RegisterRequest) -> tuple[User, str]:
        """Public self-registration; always creates a student account."""
        self._require_institutional(data.email)
        if data.role and data.role != "student":
            raise ForbiddenError(
                "Only students can register through this endpoint. "
                "Vendor and admin accounts must be created by existing admins."
            )
        await self._ensure_email_free(data.email)

        user = await self._users.create(
            name=data.name.strip(),
            email=data.email,
            password_hash=hash_password(data.password),
            role="student",
        )
        logger.info("Student account registered: %s", user.email)
        return user, create_access_token(user.id, user.email, user.role)

    async def login(self, data: LoginRequest) -> tuple[User, str]:
        self._require_institutional(data.email)
        user = await self._users.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            raise ValidationError("Invalid credentials")
        if not user.is_active:
            raise ValidationError("Account is deactivated")

        user.last_login = now_utc()
        return user, create_access_token(user.id, user.email, user.role)

    async def get_user(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def create_user(self, data: CreateUserRequest) -> User:
        """Admin-only creation of student, vendor-staff or admin accounts."""
        self._require_institutional(data.email)
        await self._ensure_email_free(data.email)

        vendor_id = None
        if data.role == "vendor":
            if not data.vendor_id:
                raise ValidationError("Vendor accounts require a vendorId")
            if not await self._vendors.get_by_id(data.vendor_id):
                raise NotFoundError("Vendor", data.vendor_id)
            vendor_id = data.vendor_id

        user = await self._users.create(
            name=data.name.strip(),
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            vendor_id=vendor_id,
        )
        logger.info("Admin created %s account: %s", user.role, user.email)
        return user
