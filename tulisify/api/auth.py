"""
Authentication API router
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.core.config import settings
from tulisify.core.database import get_db
from tulisify.core.exceptions import ValidationFailed
from tulisify.core.rate_limit import check_rate_limit
from tulisify.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    verify_token,
    revoke_token,
    get_current_user,
    get_token_payload,
)
from tulisify.models.user import User
from tulisify.schemas import ApiResponse, ok
from tulisify.schemas.auth import AuthPayload, RefreshTokenRequest
from tulisify.schemas.user import UserCreate, UserLogin, UserResponse
from tulisify.services.user_service import get_user_by_email, get_user_by_id, create_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user: User) -> AuthPayload:
    claims = {"sub": str(user.id), "role": user.role}
    return AuthPayload(
        user=UserResponse.model_validate(user),
        token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a reader account"""
    if await get_user_by_email(db, user_data.email):
        raise ValidationFailed({"email": ["The email has already been taken."]})

    user = await create_user(
        db=db,
        name=user_data.name,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
    )
    logger.info(f"[auth] registered {user.email}")
    return ok(_issue_tokens(user), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    user_data: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Log in with email and password"""
    client_ip = request.client.host if request.client else "unknown"
    allowed, _ = await check_rate_limit(f"login:{client_ip}", settings.LOGIN_RATE_LIMIT_PER_MINUTE)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts"
        )

    user = await get_user_by_email(db, user_data.email)
    if not user or not verify_password(user_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ok(_issue_tokens(user), "Login successful")


@router.post("/logout", response_model=ApiResponse[None])
async def logout(payload: dict = Depends(get_token_payload)):
    """Revoke the current access token"""
    await revoke_token(payload)
    return ok(message="Successfully logged out")


@router.post("/refresh", response_model=ApiResponse[AuthPayload])
async def refresh_token(
    token_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = verify_token(token_data.refresh_token, "refresh")
    user = await get_user_by_id(db, payload["sub"]) if payload and payload.get("sub") else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ok(_issue_tokens(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(current_user: User = Depends(get_current_user)):
    """Current user profile"""
    return ok(UserResponse.model_validate(current_user))
