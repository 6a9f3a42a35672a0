"""Authentication request/response schemas."""


from datetime import datetime
from typing import Literal

from pydantic import Field

from scan2go.schemas.common import CamelModel

Role = Literal["student", "vendor", "admin"]

class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    role: str | None = None

class LoginRequest(CamelModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)

class CreateUserRequest(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    role: Role
    vendor_id: str | None = None

class UserOut(CamelModel):
    id: str
    name: str
    email: str
    role: str
    vendor_id: str | None = None
    is_active: bool = True
    last_login: datetime | None = None

class TokenResponse(CamelModel):
    message: str
    token: str
    user: UserOut

class MessageResponse(CamelModel):
    message: str
