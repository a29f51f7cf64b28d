"""
Read-only admin aggregates
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.models.book import Book
from tulisify.models.download import BookDownload
from tulisify.models.user import User, ROLE_USER
from tulisify.schemas.admin import DashboardStats
from tulisify.schemas.book import BookSummary, DownloadStatItem
from tulisify.schemas.user import UserResponse, UserWithDownloads
from tulisify.services.book_service import like_pattern, paginate

RECENT_LIMIT = 5


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one() or 0


async def dashboard_stats(db: AsyncSession) -> DashboardStats:
    total_books = await _count(db, select(func.count(Book.id)).where(Book.deleted_at.is_(None)))
    active_books = await _count(db, select(func.count(Book.id)).where(Book.is_visible))
    total_users = await _count(db, select(func.count(User.id)).where(User.role == ROLE_USER))
    total_downloads = await _count(db, select(func.count(BookDownload.id)))

    recent_books = (await db.execute(
        select(Book).where(Book.deleted_at.is_(None)).order_by(Book.created_at.desc()).limit(RECENT_LIMIT)
    )).scalars().all()
    recent_users = (await db.execute(
        select(User).where(User.role == ROLE_USER).order_by(User.created_at.desc()).limit(RECENT_LIMIT)
    )).scalars().all()

    return DashboardStats(
        total_books=total_books,
        active_books=active_books,
        total_users=total_users,
        total_downloads=total_downloads,
        recent_books=[BookSummary.model_validate(b) for b in recent_books],
        recent_users=[UserResponse.model_validate(u) for u in recent_users],
    )


async def top_downloaded(db: AsyncSession, limit: int = 10) -> List[DownloadStatItem]:
    """Books ranked by number of download records"""
    download_count = func.count(BookDownload.id).label("download_count")
    result = await db.execute(
        select(Book.id, Book.title, Book.author, download_count)
        .join(BookDownload, BookDownload.book_id == Book.id)
        .group_by(Book.id, Book.title, Book.author)
        .order_by(download_count.desc())
        .limit(limit)
    )
    return [
        DownloadStatItem(id=row.id, title=row.title, author=row.author, download_count=row.download_count)
        for row in result.all()
    ]


async def list_users(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 15,
) -> Dict[str, Any]:
    """Non-admin accounts with their download counts, newest first."""
    downloads_count = (
        select(func.count(BookDownload.id))
        .where(BookDownload.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    stmt = select(User, downloads_count.label("downloads_count")).where(User.role == ROLE_USER)
    if search and search.strip():
        pattern = like_pattern(search.strip())
        stmt = stmt.where(or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\")))
    stmt = stmt.order_by(User.created_at.desc())

    def _row(row):
        user, count = row
        item = UserWithDownloads.model_validate(user)
        item.downloads_count = int(count or 0)
        return item

    return await paginate(db, stmt, page=page, per_page=per_page, transform=_row, scalars=False)
