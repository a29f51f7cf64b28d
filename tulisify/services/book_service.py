"""
Book catalog service: queries, pagination and record lifecycle
"""

import logging
import math
import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy import select, func, or_, distinct
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from tulisify.core.database import utcnow
from tulisify.core.exceptions import ValidationFailed
from tulisify.models.book import Book, DEFAULT_LANGUAGE
from tulisify.schemas.book import BookResponse
from tulisify.services.storage import Storage, delete_quietly
from tulisify.services.uploads import ReadUpload, cover_key, pdf_key

logger = logging.getLogger(__name__)

ADMIN_STATUSES = ("active", "inactive", "deleted")
SIZE_UNITS = ["B", "KB", "MB", "GB"]


def format_file_size(size: Optional[int]) -> Optional[str]:
    """Human readable size, e.g. 1572864 -> '1.5 MB'."""
    if not size:
        return None
    value = float(size)
    i = 0
    while value > 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def serialize_book(book: Book, storage: Storage) -> BookResponse:
    item = BookResponse.model_validate(book)
    item.cover_image_url = storage.url(book.cover_image)
    item.pdf_file_url = storage.url(book.pdf_file)
    item.formatted_file_size = format_file_size(book.file_size)
    return item


def like_pattern(search: str) -> str:
    """Substring LIKE pattern; % and _ in the search text match literally."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_predicate(search: Optional[str]):
    """Case-insensitive substring match on title OR author."""
    if not search or not search.strip():
        return None
    pattern = like_pattern(search.strip())
    return or_(Book.title.ilike(pattern, escape="\\"), Book.author.ilike(pattern, escape="\\"))


def apply_filters(stmt: Select, *predicates) -> Select:
    """AND every non-empty predicate into the statement."""
    for predicate in predicates:
        if predicate is not None:
            stmt = stmt.where(predicate)
    return stmt


async def paginate(
    db: AsyncSession,
    stmt: Select,
    *,
    page: int,
    per_page: int,
    transform: Callable[[Any], Any],
    scalars: bool = True,
) -> Dict[str, Any]:
    """Run an offset-paginated query and build the page payload."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(stmt.offset((page - 1) * per_page).limit(per_page))
    rows = result.scalars().all() if scalars else result.all()
    return {
        "data": [transform(row) for row in rows],
        "current_page": page,
        "per_page": per_page,
        "total": total,
        "last_page": max(1, math.ceil(total / per_page)),
    }


async def list_books(
    db: AsyncSession,
    storage: Storage,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    age_category: Optional[str] = None,
    page: int = 1,
    per_page: int = 12,
) -> Dict[str, Any]:
    """Reader listing: visible books only, newest first."""
    stmt = apply_filters(
        select(Book).where(Book.is_visible),
        Book.category == category if category else None,
        Book.age_category == age_category if age_category else None,
        search_predicate(search),
    ).order_by(Book.created_at.desc())
    return await paginate(db, stmt, page=page, per_page=per_page,
                          transform=lambda b: serialize_book(b, storage))


def status_predicate(status: Optional[str]):
    if not status:
        return Book.deleted_at.is_(None)
    if status == "active":
        return Book.is_visible
    if status == "inactive":
        return (Book.is_active.is_(False)) & (Book.deleted_at.is_(None))
    if status == "deleted":
        return Book.is_deleted
    raise ValidationFailed({"status": [f"The selected status is invalid. Allowed: {', '.join(ADMIN_STATUSES)}."]})


async def list_admin_books(
    db: AsyncSession,
    storage: Storage,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    per_page: int = 15,
) -> Dict[str, Any]:
    """Admin listing; `status` picks active, inactive or soft-deleted books."""
    stmt = apply_filters(
        select(Book),
        status_predicate(status),
        search_predicate(search),
    ).order_by(Book.created_at.desc())
    return await paginate(db, stmt, page=page, per_page=per_page,
                          transform=lambda b: serialize_book(b, storage))


async def get_visible_book(db: AsyncSession, book_id: Union[str, uuid.UUID]) -> Optional[Book]:
    """Reader lookup: None when the book is missing, inactive or deleted."""
    result = await db.execute(select(Book).where(Book.id == book_id, Book.is_visible))
    return result.scalar_one_or_none()


async def get_book(db: AsyncSession, book_id: Union[str, uuid.UUID]) -> Optional[Book]:
    """Admin lookup: any live book, active or not."""
    result = await db.execute(select(Book).where(Book.id == book_id, Book.deleted_at.is_(None)))
    return result.scalar_one_or_none()


async def list_categories(db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(distinct(Book.category))
        .where(Book.is_visible, Book.category.is_not(None), Book.category != "")
        .order_by(Book.category)
    )
    return [c for c in result.scalars().all() if c]


async def create_book(
    db: AsyncSession,
    storage: Storage,
    fields: Dict[str, Any],
    *,
    pdf: ReadUpload,
    cover: Optional[ReadUpload] = None,
) -> Book:
    """Store the uploads and persist a new active book."""
    data = dict(fields)
    if not data.get("language"):
        data["language"] = DEFAULT_LANGUAGE

    written: List[str] = []
    try:
        if cover is not None:
            data["cover_image"] = storage.put(cover_key(cover), cover.data, content_type=cover.content_type)
            written.append(data["cover_image"])
        data["pdf_file"] = storage.put(pdf_key(), pdf.data, content_type="application/pdf")
        written.append(data["pdf_file"])
    except Exception:
        for key in written:
            delete_quietly(storage, key)
        raise
    data["file_size"] = pdf.size
    data["is_active"] = True

    book = Book(**data)
    db.add(book)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        for key in written:
            delete_quietly(storage, key)
        raise
    await db.refresh(book)
    logger.info(f"[books] created {book.id} ({book.title})")
    return book


async def update_book(
    db: AsyncSession,
    storage: Storage,
    book: Book,
    fields: Dict[str, Any],
    *,
    cover: Optional[ReadUpload] = None,
    pdf: Optional[ReadUpload] = None,
) -> Book:
    """Apply a partial update, replacing blobs for any new upload."""
    new_cover = new_pdf = None
    try:
        if cover is not None:
            new_cover = storage.put(cover_key(cover), cover.data, content_type=cover.content_type)
        if pdf is not None:
            new_pdf = storage.put(pdf_key(), pdf.data, content_type="application/pdf")
    except Exception:
        delete_quietly(storage, new_cover)
        raise

    # the old blob goes before the new reference is committed
    if new_cover is not None:
        delete_quietly(storage, book.cover_image)
        book.cover_image = new_cover
    if new_pdf is not None:
        delete_quietly(storage, book.pdf_file)
        book.pdf_file = new_pdf
        book.file_size = pdf.size

    for name, value in fields.items():
        setattr(book, name, value)

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        delete_quietly(storage, new_cover)
        delete_quietly(storage, new_pdf)
        raise
    await db.refresh(book)
    return book


async def soft_delete_book(db: AsyncSession, storage: Storage, book: Book) -> None:
    """Drop both blobs, then mark the record deleted. Download history stays."""
    delete_quietly(storage, book.cover_image)
    delete_quietly(storage, book.pdf_file)
    book.deleted_at = utcnow()
    await db.commit()
    logger.info(f"[books] soft-deleted {book.id}")
