"""
Pydantic schemas package
"""

from .common import ApiResponse, Page, ok, fail
from .user import UserCreate, UserLogin, UserResponse, UserWithDownloads
from .auth import AuthPayload, RefreshTokenRequest
from .book import BookCreate, BookUpdate, BookResponse, BookSummary, DownloadStatItem
from .admin import DashboardStats

__all__ = [
    "ApiResponse",
    "Page",
    "ok",
    "fail",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserWithDownloads",
    "AuthPayload",
    "RefreshTokenRequest",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookSummary",
    "DownloadStatItem",
    "DashboardStats",
]
