"""
Application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from pathlib import Path
from dotenv import load_dotenv


"""env loading order
1) OS environment variables
2) .env at the repository root
3) .env in the current working directory (pydantic-settings env_file)
"""

_here = Path(__file__).resolve()
_repo_root_env = _here.parents[2] / ".env"
if _repo_root_env.exists():
    load_dotenv(dotenv_path=str(_repo_root_env), override=False)


JWT_SECRET_PLACEHOLDER = "change-this-jwt-secret-in-production"


class Settings(BaseSettings):
    """Application settings"""
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite+aiosqlite:///./data/tulisify.db"
    # Empty or unset disables token revocation, rate limiting and analytics
    REDIS_URL: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = JWT_SECRET_PLACEHOLDER
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # Blob storage
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIRECTORY: Optional[str] = None
    PUBLIC_STORAGE_PATH: str = "/storage"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET: Optional[str] = None
    S3_REGION: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # Upload limits (kilobytes)
    MAX_COVER_SIZE_KB: int = 2048
    MAX_PDF_SIZE_KB: int = 50000

    # Pagination
    BOOKS_PER_PAGE: int = 12
    ADMIN_PER_PAGE: int = 15
    MAX_PER_PAGE: int = 100

    LOGIN_RATE_LIMIT_PER_MINUTE: int = 10
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Admin account created on startup when missing
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_NAME: str = "Admin"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def validate_settings(current: Settings = settings):
    """Reject configurations that must never reach production."""
    if current.ENVIRONMENT == "production":
        if current.JWT_SECRET_KEY == JWT_SECRET_PLACEHOLDER:
            raise ValueError("JWT_SECRET_KEY must be changed in production.")
    if current.STORAGE_BACKEND.lower() == "s3":
        if not (current.S3_ENDPOINT_URL and current.S3_ACCESS_KEY_ID
                and current.S3_SECRET_ACCESS_KEY and current.S3_BUCKET):
            raise ValueError("S3 storage requires endpoint, credentials and bucket.")
    return True


validate_settings()
