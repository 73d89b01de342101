"""
Admin credential endpoints: login, profile, password and email rotation.

Login is rate limited per client address. Rotation endpoints require the
current password.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, EmailStr, Field

from ..context import AppContext, get_context
from ..errors import CapabilityUnavailable
from ..rate_limit import limiter, login_limit


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# --- Request/Response Models ---


class LoginRequest(BaseModel):
    """Admin login attempt."""
    password: str = Field(..., min_length=1, description="Admin password")


class LoginResponse(BaseModel):
    success: bool = Field(..., description="True when the password matched")
    email: str = Field(..., description="Admin email address")


class ProfileResponse(BaseModel):
    """Admin profile (never includes the password digest)."""
    email: str = Field(..., description="Admin email address")
    updatedAt: Optional[str] = Field(None, description="Last credential change")
    usingFallback: bool = Field(..., description="True when the admin record lives in memory only")
    hashingAvailable: bool = Field(..., description="False when bcrypt could not be loaded")


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1, description="Current admin password")
    newPassword: str = Field(..., min_length=6, max_length=72, description="New admin password (bcrypt uses at most 72 bytes)")


class ChangeEmailRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1, description="Current admin password")
    email: EmailStr = Field(..., description="New admin email address")


class UpdateResponse(BaseModel):
    success: bool


# --- Helpers ---


async def _require_password(ctx: AppContext, password: str) -> None:
    if not await ctx.credentials.verify(password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect.",
        )


# --- Endpoints ---


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_limit)
async def login(
    request: Request,  # Required for rate limiter
    body: LoginRequest,
    ctx: AppContext = Depends(get_context),
):
    """Check the admin password."""
    if not await ctx.credentials.verify(body.password):
        logger.warning(f"[admin] Failed login attempt from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password.",
        )
    admin = await ctx.credentials.get_admin()
    return LoginResponse(success=True, email=admin["email"] if admin else "")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(ctx: AppContext = Depends(get_context)):
    admin = await ctx.credentials.get_admin()
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin user not initialized.",
        )
    return ProfileResponse(
        email=admin["email"],
        updatedAt=admin.get("updated_at"),
        usingFallback=ctx.credentials.using_fallback,
        hashingAvailable=ctx.credentials.hashing_available,
    )


@router.put("/password", response_model=UpdateResponse)
async def change_password(
    body: ChangePasswordRequest,
    ctx: AppContext = Depends(get_context),
):
    """
    Rotate the admin password.

    Refused with 503 while bcrypt is unavailable: a plain-text digest must
    never replace a hashed one.
    """
    if not ctx.credentials.hashing_available:
        raise CapabilityUnavailable("bcrypt is not installed")
    await _require_password(ctx, body.currentPassword)

    if not await ctx.credentials.update_password(body.newPassword):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update password.",
        )
    logger.info("[admin] Admin password updated")
    return UpdateResponse(success=True)


@router.put("/email", response_model=UpdateResponse)
async def change_email(
    body: ChangeEmailRequest,
    ctx: AppContext = Depends(get_context),
):
    await _require_password(ctx, body.currentPassword)

    if not await ctx.credentials.update_email(str(body.email)):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update email.",
        )
    logger.info("[admin] Admin email updated")
    return UpdateResponse(success=True)
