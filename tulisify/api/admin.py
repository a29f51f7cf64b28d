"""
Admin API

- Book management: create/update/soft delete (multipart)
- Catalog and user listings, dashboard aggregates
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from tulisify.api.books import parse_book_id
from tulisify.core.config import settings
from tulisify.core.database import get_db
from tulisify.core.exceptions import StorageError, ValidationFailed, collect_field_errors, merge_errors
from tulisify.core.security import get_current_admin
from tulisify.schemas import ApiResponse, Page, ok
from tulisify.schemas.admin import DashboardStats
from tulisify.schemas.book import BookCreate, BookUpdate, BookResponse, DownloadStatItem
from tulisify.schemas.user import UserWithDownloads
from tulisify.services import admin_service, book_service
from tulisify.services.storage import Storage, get_storage
from tulisify.services.uploads import clean_form, read_upload, validate_uploads

logger = logging.getLogger(__name__)

# every route here requires an admin
router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("/dashboard", response_model=ApiResponse[DashboardStats])
async def dashboard(db: AsyncSession = Depends(get_db)):
    """Catalog, user and download totals"""
    return ok(await admin_service.dashboard_stats(db))


@router.get("/download-stats", response_model=ApiResponse[List[DownloadStatItem]])
async def download_stats(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Most downloaded books"""
    return ok(await admin_service.top_downloaded(db, limit=limit))


@router.get("/users", response_model=ApiResponse[Page[UserWithDownloads]])
async def list_users(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.MAX_PER_PAGE),
    db: AsyncSession = Depends(get_db),
):
    """Reader accounts with download counts"""
    result = await admin_service.list_users(
        db, search=search, page=page, per_page=per_page or settings.ADMIN_PER_PAGE
    )
    return ok(result)


@router.get("/books", response_model=ApiResponse[Page[BookResponse]])
async def list_books(
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.MAX_PER_PAGE),
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """All books; status=active|inactive|deleted narrows the list"""
    result = await book_service.list_admin_books(
        db,
        storage,
        search=search,
        status=status_filter,
        page=page,
        per_page=per_page or settings.ADMIN_PER_PAGE,
    )
    return ok(result)


@router.post("/books", response_model=ApiResponse[BookResponse], status_code=status.HTTP_201_CREATED)
async def create_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    age_category: Optional[str] = Form(None),
    published_year: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
    pages: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    pdf_file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """Upload a new book (pdf_file required)"""
    form = clean_form({
        "title": title, "author": author, "description": description,
        "category": category, "age_category": age_category,
        "published_year": published_year, "isbn": isbn,
        "language": language, "pages": pages,
    }, drop_empty=True)

    field_errors = {}
    payload = None
    try:
        payload = BookCreate.model_validate(form)
    except ValidationError as e:
        field_errors = collect_field_errors(e.errors())

    cover = await read_upload(cover_image, settings.MAX_COVER_SIZE_KB * 1024)
    pdf = await read_upload(pdf_file, settings.MAX_PDF_SIZE_KB * 1024)
    errors = merge_errors(field_errors, validate_uploads(cover, pdf, pdf_required=True))
    if errors:
        raise ValidationFailed(errors)

    try:
        book = await book_service.create_book(db, storage, payload.model_dump(), pdf=pdf, cover=cover)
    except StorageError as e:
        logger.exception(f"[admin] storing uploads failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to store uploaded file")
    return ok(book_service.serialize_book(book, storage), "Book created successfully")


@router.put("/books/{book_id}", response_model=ApiResponse[BookResponse])
async def update_book(
    book_id: str,
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    age_category: Optional[str] = Form(None),
    published_year: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
    pages: Optional[str] = Form(None),
    is_active: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    pdf_file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """Partial update; new uploads replace the stored blobs"""
    book = await book_service.get_book(db, parse_book_id(book_id))
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")

    form = clean_form({
        "title": title, "author": author, "description": description,
        "category": category, "age_category": age_category,
        "published_year": published_year, "isbn": isbn,
        "language": language, "pages": pages, "is_active": is_active,
    }, drop_empty=False)

    field_errors = {}
    fields = {}
    try:
        fields = BookUpdate.model_validate(form).model_dump(exclude_unset=True)
    except ValidationError as e:
        field_errors = collect_field_errors(e.errors())

    cover = await read_upload(cover_image, settings.MAX_COVER_SIZE_KB * 1024)
    pdf = await read_upload(pdf_file, settings.MAX_PDF_SIZE_KB * 1024)
    errors = merge_errors(field_errors, validate_uploads(cover, pdf, pdf_required=False))
    if errors:
        raise ValidationFailed(errors)

    try:
        book = await book_service.update_book(db, storage, book, fields, cover=cover, pdf=pdf)
    except StorageError as e:
        logger.exception(f"[admin] storing uploads failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to store uploaded file")
    return ok(book_service.serialize_book(book, storage), "Book updated successfully")


@router.delete("/books/{book_id}", response_model=ApiResponse[None])
async def delete_book(
    book_id: str,
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    """Soft delete; the blobs are removed, the record is kept"""
    book = await book_service.get_book(db, parse_book_id(book_id))
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    await book_service.soft_delete_book(db, storage, book)
    return ok(message="Book deleted successfully")
