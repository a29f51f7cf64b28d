"""
Pytest configuration.

Points the settings at throwaway locations before the application is
imported, then gives every test its own SQLite database and blob directory.
"""

import asyncio
import os
import tempfile

_tmp_root = tempfile.mkdtemp(prefix="tulisify-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_root}/app.db"
os.environ["UPLOAD_DIRECTORY"] = os.path.join(_tmp_root, "storage")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["REDIS_URL"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from tulisify.core.database import Base, get_db
from tulisify.core.security import create_access_token, get_password_hash
from tulisify.main import app
from tulisify.models.user import ROLE_ADMIN, ROLE_USER
from tulisify.services.storage import LocalStorage, get_storage
from tulisify.services.user_service import create_user
from tests.dsl import AdminApi, ReaderApi


def run(coro):
    """Run a coroutine from synchronous test code."""
    return asyncio.run(coro)


@pytest.fixture()
def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'library.db'}", poolclass=NullPool)

    async def _create():
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(_create())
    yield eng
    run(eng.dispose())


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(base_dir=str(tmp_path / "blobs"), public_base="/storage")


@pytest.fixture()
def client(session_factory, storage) -> TestClient:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session_factory):
    """Create an account and return (user, bearer token)."""

    def _make(email: str, role: str = ROLE_USER, name: str = "Test User", password: str = "password123"):
        async def _create():
            async with session_factory() as db:
                return await create_user(db, name=name, email=email,
                                         password_hash=get_password_hash(password), role=role)

        user = run(_create())
        return user, create_access_token({"sub": str(user.id)})

    return _make


@pytest.fixture()
def admin_token(make_user) -> str:
    _, token = make_user("admin@tulisify.com", role=ROLE_ADMIN, name="Admin Tulisify")
    return token


@pytest.fixture()
def user_token(make_user) -> str:
    _, token = make_user("user@tulisify.com", name="User Demo")
    return token


@pytest.fixture()
def admin_api(client, admin_token) -> AdminApi:
    return AdminApi(client, admin_token)


@pytest.fixture()
def reader_api(client, user_token) -> ReaderApi:
    return ReaderApi(client, user_token)
