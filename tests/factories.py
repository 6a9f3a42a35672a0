"""Seed helpers shared by the test modules. Each helper commits in its own session."""

from __future__ import annotations

from scan2go.core.security import create_access_token, hash_password
from scan2go.repositories.student import StudentRepository
from scan2go.repositories.user import UserRepository
from scan2go.repositories.vendor import VendorRepository

TEST_PASSWORD = "secret123"
# Cheap hashing for fixtures; verify_password reads the round count from the hash
FAST_ROUNDS = 1_000

ROSTER_HEADER = "Full Name,Email Address,Batch,Vendor,Hostel :"


async def make_vendor(session_factory, name: str, *, location: str = "Block A", is_active: bool = True):
    async with session_factory() as s:
        vendor = await VendorRepository(s).create(name=name, location=location, is_active=is_active)
        await s.commit()
    return vendor


async def make_student(
    session_factory,
    *,
    name: str,
    email: str,
    roll_number: str,
    vendor_id: str,
    is_active: bool = True,
):
    async with session_factory() as s:
        student = await StudentRepository(s).create(
            name=name, email=email, roll_number=roll_number, vendor_id=vendor_id, is_active=is_active
        )
        await s.commit()
    return student


async def make_user(
    session_factory,
    *,
    role: str,
    email: str,
    vendor_id: str | None = None,
    name: str = "Test User",
):
    """Create an account and return (user, bearer headers)."""
    async with session_factory() as s:
        user = await UserRepository(s).create(
            name=name,
            email=email,
            password_hash=hash_password(TEST_PASSWORD, rounds=FAST_ROUNDS),
            role=role,
            vendor_id=vendor_id,
        )
        await s.commit()
    token = create_access_token(user.id, user.email, user.role)
    return user, {"Authorization": f"Bearer {token}"}


def roster_csv(*rows: tuple[str, ...], header: str = ROSTER_HEADER) -> bytes:
    lines = [header] + [",".join(r) for r in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")
