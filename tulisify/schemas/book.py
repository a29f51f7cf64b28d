"""
Book schemas
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime, date
import uuid


AgeCategory = Literal["children", "teen", "adult", "all"]

MIN_PUBLISHED_YEAR = 1900


def _check_published_year(value: Optional[int]) -> Optional[int]:
    if value is None:
        return value
    current_year = date.today().year
    if value < MIN_PUBLISHED_YEAR or value > current_year:
        raise ValueError(f"The published year must be between {MIN_PUBLISHED_YEAR} and {current_year}.")
    return value


class BookCreate(BaseModel):
    """Metadata accepted when an admin uploads a book"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    age_category: AgeCategory
    published_year: Optional[int] = None
    isbn: Optional[str] = Field(None, max_length=20)
    language: Optional[str] = Field(None, max_length=50)
    pages: Optional[int] = Field(None, ge=1)

    @field_validator("published_year")
    @classmethod
    def published_year_in_range(cls, v):
        return _check_published_year(v)


class BookUpdate(BaseModel):
    """Partial update; only fields present in the request are applied"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    age_category: Optional[AgeCategory] = None
    published_year: Optional[int] = None
    isbn: Optional[str] = Field(None, max_length=20)
    language: Optional[str] = Field(None, max_length=50)
    pages: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("published_year")
    @classmethod
    def published_year_in_range(cls, v):
        return _check_published_year(v)

    @field_validator("title", "author", "description", "category", "age_category", "is_active")
    @classmethod
    def not_null_when_sent(cls, v, info):
        # nullable columns may be cleared, these may not
        if v is None:
            raise ValueError(f"The {info.field_name} field is required.")
        return v


class BookResponse(BaseModel):
    """Book as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    author: str
    description: str
    category: str
    age_category: str
    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None
    file_size: Optional[int] = None
    pages: Optional[int] = None
    published_year: Optional[int] = None
    isbn: Optional[str] = None
    language: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    # derived
    cover_image_url: Optional[str] = None
    pdf_file_url: Optional[str] = None
    formatted_file_size: Optional[str] = None


class BookSummary(BaseModel):
    """Compact book row used in dashboard lists"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    author: str
    category: str
    is_active: bool
    created_at: datetime


class DownloadStatItem(BaseModel):
    id: uuid.UUID
    title: str
    author: str
    download_count: int
