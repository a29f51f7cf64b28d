"""
Download record model
"""

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from tulisify.core.database import Base, UUID, utcnow


class BookDownload(Base):
    """Marks that a user has downloaded a book at least once"""
    __tablename__ = "book_downloads"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(UUID(), ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # One record per (user, book); enforced by the database, not in memory
    __table_args__ = (
        UniqueConstraint('user_id', 'book_id', name='uq_book_download_user_book'),
    )

    user = relationship("User", back_populates="downloads")
    book = relationship("Book", back_populates="downloads")

    def __repr__(self):
        return f"<BookDownload(user_id={self.user_id}, book_id={self.book_id})>"
