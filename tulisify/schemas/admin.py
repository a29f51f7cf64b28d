"""
Admin dashboard schemas
"""

from pydantic import BaseModel
from typing import List

from tulisify.schemas.book import BookSummary
from tulisify.schemas.user import UserResponse


class DashboardStats(BaseModel):
    total_books: int = 0
    active_books: int = 0
    total_users: int = 0
    total_downloads: int = 0
    recent_books: List[BookSummary] = []
    recent_users: List[UserResponse] = []
