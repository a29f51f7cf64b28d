"""
Authentication schemas
"""

from pydantic import BaseModel

from tulisify.schemas.user import UserResponse


class AuthPayload(BaseModel):
    """Issued after register/login/refresh"""
    user: UserResponse
    token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseModel):
    refresh_token: str
