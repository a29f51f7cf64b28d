"""
Download tracking: one record per (user, book) pair
"""

import logging
import uuid
from typing import Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.models.download import BookDownload

logger = logging.getLogger(__name__)


async def has_downloaded(db: AsyncSession, user_id: Union[str, uuid.UUID], book_id: Union[str, uuid.UUID]) -> bool:
    result = await db.execute(
        select(BookDownload.id).where(BookDownload.user_id == user_id, BookDownload.book_id == book_id)
    )
    return result.first() is not None


async def record_download(db: AsyncSession, user_id: Union[str, uuid.UUID], book_id: Union[str, uuid.UUID]) -> bool:
    """Insert the download marker. Returns False if it already existed."""
    if await has_downloaded(db, user_id, book_id):
        return False

    db.add(BookDownload(user_id=user_id, book_id=book_id))
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent first download won the unique constraint
        await db.rollback()
        logger.info(f"[downloads] duplicate record ignored user={user_id} book={book_id}")
        return False
    return True
