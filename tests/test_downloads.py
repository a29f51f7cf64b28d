"""
Authenticated PDF downloads and per-user download tracking.
"""

import asyncio
import uuid

from sqlalchemy import func, select

from tests.dsl import AdminApi, ReaderApi, PDF_BYTES
from tulisify.models.download import BookDownload
from tulisify.services.download_service import has_downloaded, record_download


def _download_rows(session_factory) -> int:
    async def _count():
        async with session_factory() as db:
            return (await db.execute(select(func.count(BookDownload.id)))).scalar_one()

    return asyncio.run(_count())


def test_download_streams_pdf_with_title_filename(admin_api: AdminApi, reader_api: ReaderApi):
    book = admin_api.add_book(title="X")

    response = reader_api.download(book["id"])

    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="X.pdf"'


def test_non_ascii_title_uses_encoded_filename(admin_api: AdminApi, reader_api: ReaderApi):
    book = admin_api.add_book(title="Cerita Ának")

    response = reader_api.download(book["id"])

    assert response.status_code == 200
    assert response.headers["content-disposition"] == "attachment; filename*=utf-8''Cerita%20%C3%81nak.pdf"


def test_repeat_downloads_are_recorded_once(admin_api: AdminApi, reader_api: ReaderApi, session_factory):
    book = admin_api.add_book()

    assert reader_api.download(book["id"]).status_code == 200
    assert reader_api.download(book["id"]).status_code == 200

    assert _download_rows(session_factory) == 1
    assert admin_api.dashboard().json()["data"]["total_downloads"] == 1


def test_download_requires_token(client, admin_api: AdminApi):
    book = admin_api.add_book()

    response = ReaderApi(client).download(book["id"])

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_download_rejects_garbage_token(client, admin_api: AdminApi):
    book = admin_api.add_book()

    response = ReaderApi(client, "not.a.jwt").download(book["id"])

    assert response.status_code == 401


def test_download_of_missing_book(reader_api: ReaderApi):
    response = reader_api.download(str(uuid.uuid4()))

    assert response.status_code == 404
    assert response.json()["message"] == "Book or file not found"


def test_download_of_hidden_book(admin_api: AdminApi, reader_api: ReaderApi, session_factory):
    inactive = admin_api.add_book(title="Inactive")
    admin_api.update(inactive["id"], {"is_active": "0"})
    deleted = admin_api.add_book(title="Deleted")
    admin_api.delete(deleted["id"])

    assert reader_api.download(inactive["id"]).status_code == 404
    assert reader_api.download(deleted["id"]).status_code == 404
    assert _download_rows(session_factory) == 0


def test_download_with_missing_blob(admin_api: AdminApi, reader_api: ReaderApi, storage, session_factory):
    book = admin_api.add_book()
    storage.delete(book["pdf_file"])

    response = reader_api.download(book["id"])

    assert response.status_code == 404
    assert response.json()["message"] == "File not found on server"
    assert _download_rows(session_factory) == 0


def test_admin_can_download_too(admin_api: AdminApi, client):
    book = admin_api.add_book()

    response = ReaderApi(client, admin_api.token).download(book["id"])

    assert response.status_code == 200


def test_record_download_is_idempotent(make_user, session_factory, admin_api: AdminApi):
    user, _ = make_user("reader@tulisify.com")
    book_id = uuid.UUID(admin_api.add_book()["id"])

    async def _scenario():
        async with session_factory() as db:
            assert not await has_downloaded(db, user.id, book_id)
            assert await record_download(db, user.id, book_id) is True
            assert await record_download(db, user.id, book_id) is False
            assert await has_downloaded(db, user.id, book_id)

    asyncio.run(_scenario())
    assert _download_rows(session_factory) == 1


def test_unique_constraint_backs_up_the_check(make_user, session_factory, admin_api: AdminApi):
    user, _ = make_user("racer@tulisify.com")
    book_id = uuid.UUID(admin_api.add_book()["id"])

    async def _scenario():
        async with session_factory() as db:
            db.add(BookDownload(user_id=user.id, book_id=book_id))
            await db.commit()
        async with session_factory() as db:
            # simulate losing the race: skip the existence check
            db.add(BookDownload(user_id=user.id, book_id=book_id))
            try:
                await db.commit()
            except Exception as e:
                await db.rollback()
                return type(e).__name__
        return None

    assert asyncio.run(_scenario()) == "IntegrityError"
    assert _download_rows(session_factory) == 1
