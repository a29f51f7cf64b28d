"""
Security utilities: password hashing, JWTs and auth dependencies
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.core.config import settings
from tulisify.core.database import get_db
from tulisify.core.redis_client import get_redis_client
from tulisify.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

# auto_error=False so a missing header is a 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)

REVOKED_PREFIX = "jwt:revoked:"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(data: dict, token_type: str, expire: datetime) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": expire, "type": token_type, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an access token"""
    delta = expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", datetime.now(timezone.utc) + delta)


def create_refresh_token(data: dict) -> str:
    """Issue a refresh token"""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, "refresh", expire)


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """Decode a token; None if invalid, expired or of the wrong type"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


async def revoke_token(payload: dict) -> bool:
    """Deny-list a token's jti until it expires. False when Redis is off."""
    client = get_redis_client()
    jti = payload.get("jti")
    if client is None or not jti:
        return False
    ttl = int(payload.get("exp", 0) - datetime.now(timezone.utc).timestamp())
    if ttl <= 0:
        return True
    try:
        await client.set(f"{REVOKED_PREFIX}{jti}", "1", ex=ttl)
        return True
    except Exception as e:
        logger.warning(f"[auth] could not revoke token: {e}")
        return False


async def is_token_revoked(payload: dict) -> bool:
    client = get_redis_client()
    jti = payload.get("jti")
    if client is None or not jti:
        return False
    try:
        return bool(await client.exists(f"{REVOKED_PREFIX}{jti}"))
    except Exception as e:
        # Redis outage: accept the token
        logger.warning(f"[auth] revocation check skipped: {e}")
        return False


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthenticated.",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Validated access-token claims of the current request"""
    if credentials is None:
        raise _credentials_exception()
    payload = verify_token(credentials.credentials, "access")
    if payload is None or payload.get("sub") is None:
        raise _credentials_exception()
    if await is_token_revoked(payload):
        raise _credentials_exception()
    return payload


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Current authenticated user"""
    from tulisify.services.user_service import get_user_by_id
    user = await get_user_by_id(db, payload["sub"])
    if user is None:
        raise _credentials_exception()
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Current user, who must be an admin"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access only"
        )
    return current_user
