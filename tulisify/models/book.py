"""
Book model
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime, Integer, BigInteger, Index, and_
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
import uuid

from tulisify.core.database import Base, UUID, utcnow


# Stored value -> display label
AGE_CATEGORIES = {
    "children": "Children",
    "teen": "Teen",
    "adult": "Adult",
    "all": "All Ages",
}

DEFAULT_LANGUAGE = "Indonesian"


class Book(Base):
    """Catalog entry with its cover image and PDF blob keys"""
    __tablename__ = "books"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    age_category = Column(String(20), nullable=False, default="all")

    cover_image = Column(String(500))
    pdf_file = Column(String(500), nullable=False)
    file_size = Column(BigInteger)  # bytes, only when pdf_file is set

    pages = Column(Integer)
    published_year = Column(Integer)
    isbn = Column(String(20))
    language = Column(String(50), nullable=False, default=DEFAULT_LANGUAGE)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    downloads = relationship("BookDownload", back_populates="book", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_books_category_age_category", "category", "age_category"),
        Index("ix_books_is_active", "is_active"),
    )

    @hybrid_property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @is_deleted.expression
    def is_deleted(cls):
        return cls.deleted_at.is_not(None)

    @hybrid_property
    def is_visible(self) -> bool:
        """Live and active: the only books readers can see."""
        return self.deleted_at is None and bool(self.is_active)

    @is_visible.expression
    def is_visible(cls):
        return and_(cls.deleted_at.is_(None), cls.is_active.is_(True))

    def __repr__(self):
        return f"<Book(id={self.id}, title={self.title})>"
