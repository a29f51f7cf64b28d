"""
User service
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.models.user import User, ROLE_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: Union[str, uuid.UUID]) -> Optional[User]:
    """Look a user up by id"""
    try:
        user_uuid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
    except ValueError:
        return None
    result = await db.execute(select(User).where(User.id == user_uuid))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Look a user up by email (case-insensitive)"""
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password_hash: str,
    role: str = ROLE_USER,
) -> User:
    """Create a user"""
    user = User(
        name=name,
        email=email.strip().lower(),
        hashed_password=password_hash,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def set_role(db: AsyncSession, user_id: Union[str, uuid.UUID], role: str) -> Optional[User]:
    await db.execute(update(User).where(User.id == user_id).values(role=role))
    await db.commit()
    return await get_user_by_id(db, user_id)


async def ensure_admin_user(db: AsyncSession, email: str, password_hash: str, name: str = "Admin") -> User:
    """Create the bootstrap admin if the email is unused; promote it otherwise."""
    user = await get_user_by_email(db, email)
    if user is None:
        user = await create_user(db, name=name, email=email, password_hash=password_hash, role=ROLE_ADMIN)
        logger.info(f"Admin account created: {user.email}")
    elif user.role != ROLE_ADMIN:
        user = await set_role(db, user.id, ROLE_ADMIN)
        logger.info(f"Existing account promoted to admin: {user.email}")
    return user
