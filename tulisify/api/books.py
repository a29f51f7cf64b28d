"""
Public book API

- Readers: list/detail/categories
- Authenticated: download
"""

import logging
import uuid
from typing import Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.core.analytics import track_event
from tulisify.core.config import settings
from tulisify.core.database import get_db
from tulisify.core.security import get_current_user
from tulisify.models.book import AGE_CATEGORIES
from tulisify.models.user import User
from tulisify.schemas import ApiResponse, Page, ok
from tulisify.schemas.book import AgeCategory, BookResponse
from tulisify.services import book_service
from tulisify.services.download_service import record_download
from tulisify.services.storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_book_id(book_id: str) -> uuid.UUID:
    """Malformed ids are reported the same way as unknown ones"""
    try:
        return uuid.UUID(book_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Book not found")


def attachment_header(filename: str) -> str:
    filename = filename.replace('"', "").replace("/", "-").replace("\\", "-")
    if not filename.isascii():
        return f"attachment; filename*=utf-8''{quote(filename)}"
    return f'attachment; filename="{filename}"'


@router.get("", response_model=ApiResponse[Page[BookResponse]])
async def list_books(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    age_category: Optional[AgeCategory] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.MAX_PER_PAGE),
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """Active books, newest first"""
    result = await book_service.list_books(
        db,
        storage,
        search=search,
        category=category,
        age_category=age_category,
        page=page,
        per_page=per_page or settings.BOOKS_PER_PAGE,
    )
    return ok(result)


@router.get("/categories/list", response_model=ApiResponse[List[str]])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Distinct categories of active books"""
    return ok(await book_service.list_categories(db))


@router.get("/age-categories/list", response_model=ApiResponse[Dict[str, str]])
async def list_age_categories():
    """Fixed age category labels"""
    return ok(AGE_CATEGORIES)


@router.get("/{book_id}", response_model=ApiResponse[BookResponse])
async def get_book(
    book_id: str,
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """Single active book"""
    book = await book_service.get_visible_book(db, parse_book_id(book_id))
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return ok(book_service.serialize_book(book, storage))


@router.get("/{book_id}/download")
async def download_book(
    book_id: str,
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Stream the PDF and remember that this user downloaded it"""
    book = await book_service.get_visible_book(db, parse_book_id(book_id))
    if not book or not book.pdf_file:
        raise HTTPException(status_code=404, detail="Book or file not found")
    if not storage.exists(book.pdf_file):
        logger.warning(f"[books] pdf blob missing for {book.id}: {book.pdf_file}")
        raise HTTPException(status_code=404, detail="File not found on server")

    # read before record_download: a rollback there expires loaded rows
    pdf_key, filename, user_id, book_uuid = book.pdf_file, f"{book.title}.pdf", current_user.id, book.id

    await record_download(db, user_id, book_uuid)
    await track_event("book_download", {"book_id": str(book_uuid), "user_id": str(user_id)})

    return StreamingResponse(
        storage.iter_chunks(pdf_key),
        media_type="application/pdf",
        headers={"Content-Disposition": attachment_header(filename)},
    )
