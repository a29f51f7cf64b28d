"""
Response envelope and pagination schemas shared by every endpoint
"""

from pydantic import BaseModel
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """{success, data?, message?, errors?}"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None


class Page(BaseModel, Generic[T]):
    """Offset pagination result"""
    data: List[T]
    current_page: int
    per_page: int
    total: int
    last_page: int


def ok(data=None, message: Optional[str] = None) -> dict:
    """Success envelope; routes return it through their response_model."""
    payload = {"success": True, "data": data}
    if message is not None:
        payload["message"] = message
    return payload


def fail(message: str, errors: Optional[Dict[str, List[str]]] = None) -> dict:
    payload = {"success": False, "message": message}
    if errors:
        payload["errors"] = errors
    return payload
