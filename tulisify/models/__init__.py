"""
Models package
"""

from .user import User
from .book import Book
from .download import BookDownload

__all__ = [
    "User",
    "Book",
    "BookDownload",
]
