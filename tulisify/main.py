"""
Tulisify digital library - FastAPI application
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

from tulisify.core.config import settings
from tulisify.core.database import engine, Base, AsyncSessionLocal
from tulisify.core.exceptions import ValidationFailed, collect_field_errors
from tulisify.core.paths import get_upload_dir
from tulisify.core.security import get_password_hash
from tulisify.schemas.common import fail
from tulisify.services.user_service import ensure_admin_user
import tulisify.models  # noqa: F401  registers the tables on Base.metadata

from tulisify.api.auth import router as auth_router
from tulisify.api.books import router as books_router
from tulisify.api.admin import router as admin_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown"""
    logger.info("Tulisify library API starting")

    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        async with AsyncSessionLocal() as db:
            await ensure_admin_user(
                db,
                email=settings.ADMIN_EMAIL,
                password_hash=get_password_hash(settings.ADMIN_PASSWORD),
                name=settings.ADMIN_NAME,
            )

    yield

    await engine.dispose()
    logger.info("Tulisify library API stopped")


app = FastAPI(
    title="Tulisify Library API",
    description="Digital library: catalog browsing, PDF downloads and admin management",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan
)

if settings.STORAGE_BACKEND.lower() == "local":
    app.mount(settings.PUBLIC_STORAGE_PATH, StaticFiles(directory=get_upload_dir()), name="storage")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content=fail(exc.message, exc.errors))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=fail("Validation failed", collect_field_errors(exc.errors())))


app.include_router(auth_router, prefix="", tags=["auth"])
app.include_router(books_router, prefix="/books", tags=["books"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])


@app.get("/")
async def root():
    return {
        "message": "Tulisify Library API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "storage": settings.STORAGE_BACKEND,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tulisify.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development"
    )
