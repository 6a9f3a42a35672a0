"""Password hashing and bearer-token issuance."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from scan2go.core.config import settings
from scan2go.core.exceptions import UnauthorizedError

PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ROUNDS = 260_000


def hash_password(password: str, rounds: int = PASSWORD_HASH_ROUNDS) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds)
    return f"{PASSWORD_HASH_ALGO}${rounds}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, rounds_text, salt, expected = password_hash.split("$", 3)
        rounds = int(rounds_text)
    except ValueError:
        return False
    if algo != PASSWORD_HASH_ALGO:
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds
    )
    return hmac.compare_digest(candidate.hex(), expected)


def create_access_token(user_id: str, email: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")
