"""
User schemas
"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Literal
from datetime import datetime
import uuid


class UserCreate(BaseModel):
    """Registration payload"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v, info):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("The password confirmation does not match.")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """User as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: Literal["admin", "user"]
    created_at: datetime
    updated_at: datetime


class UserWithDownloads(UserResponse):
    """Admin user listing row"""
    downloads_count: int = 0
