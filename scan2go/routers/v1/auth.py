"""Authentication endpoints: self-registration, login, current user, admin user creation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.deps import Principal, get_current_principal, require_roles
from scan2go.core.response import DataResponse
from scan2go.db.base import get_db
from scan2go.schemas.auth import (
    CreateUserRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from scan2go.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=DataResponse[TokenResponse], status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, session: AsyncSession = Depends(get_db)):
    """Student self-registration. Vendor and admin accounts are created by admins."""
    user, token = await AuthService(session).register(body)
    return {"data": TokenResponse(message="User registered successfully", token=token, user=UserOut.model_validate(user))}


@router.post("/login", response_model=DataResponse[TokenResponse])
async def login(body: LoginRequest, session: AsyncSession = Depends(get_db)):
    user, token = await AuthService(session).login(body)
    return {"data": TokenResponse(message="Login successful", token=token, user=UserOut.model_validate(user))}


@router.get("/me", response_model=DataResponse[UserOut])
async def me(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db),
):
    user = await AuthService(session).get_user(principal.user_id)
    return {"data": UserOut.model_validate(user)}


@router.post("/logout", response_model=DataResponse[MessageResponse])
async def logout(principal: Principal = Depends(get_current_principal)):
    # Tokens are stateless; the client discards its copy.
    return {"data": MessageResponse(message="Logged out successfully")}


@router.post("/create-user", response_model=DataResponse[UserOut], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    _admin: Principal = Depends(require_roles("admin")),
    session: AsyncSession = Depends(get_db),
):
    user = await AuthService(session).create_user(body)
    return {"data": UserOut.model_validate(user)}
