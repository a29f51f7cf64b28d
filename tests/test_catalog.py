"""
Reader-facing catalog: listing, filters, search, lookups and categories.
"""

import uuid

from tests.dsl import AdminApi, ReaderApi


def test_create_then_filter_by_age_category(admin_api: AdminApi, reader_api: ReaderApi):
    response = admin_api.create()

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    book = body["data"]
    assert book["is_active"] is True
    assert book["language"] == "Indonesian"
    assert book["file_size"] > 0
    assert book["pdf_file"].startswith("books/") and book["pdf_file"].endswith(".pdf")

    assert book["id"] in reader_api.listed_ids(age_category="teen")
    assert book["id"] not in reader_api.listed_ids(age_category="adult")


def test_file_size_matches_uploaded_bytes(admin_api: AdminApi):
    pdf = b"%PDF-1.7\n" + b"x" * 2048
    response = admin_api.create(pdf=pdf)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["file_size"] == len(pdf)
    assert data["formatted_file_size"] == "2.01 KB"
    assert data["pdf_file_url"] == f"/storage/{data['pdf_file']}"
    assert data["cover_image"] is None
    assert data["cover_image_url"] is None


def test_list_includes_every_active_book_once(admin_api: AdminApi, reader_api: ReaderApi):
    created = [admin_api.add_book(title=f"Book {i}")["id"] for i in range(3)]

    ids = reader_api.listed_ids()

    assert sorted(ids) == sorted(created)
    assert len(ids) == len(set(ids))


def test_list_is_newest_first_and_paginated(admin_api: AdminApi, reader_api: ReaderApi):
    created = [admin_api.add_book(title=f"Book {i}")["id"] for i in range(3)]

    first = reader_api.list(per_page=2, page=1).json()["data"]
    second = reader_api.list(per_page=2, page=2).json()["data"]

    assert [b["id"] for b in first["data"]] == [created[2], created[1]]
    assert [b["id"] for b in second["data"]] == [created[0]]
    assert first["total"] == 3
    assert first["last_page"] == 2
    assert first["current_page"] == 1
    assert second["current_page"] == 2


def test_default_page_size_is_twelve(admin_api: AdminApi, reader_api: ReaderApi):
    for i in range(13):
        admin_api.add_book(title=f"Book {i}")

    page = reader_api.list().json()["data"]

    assert page["per_page"] == 12
    assert len(page["data"]) == 12
    assert page["total"] == 13


def test_search_is_case_insensitive_on_title_or_author(admin_api: AdminApi, reader_api: ReaderApi):
    laravel = admin_api.add_book(title="Belajar Laravel untuk Pemula", author="John Doe")["id"]
    by_author = admin_api.add_book(title="Cerita Anak Nusantara", author="Jane Smith")["id"]
    admin_api.add_book(title="Panduan Remaja Sukses", author="Ahmad Rahman")

    assert reader_api.listed_ids(search="laravel") == [laravel]
    assert reader_api.listed_ids(search="LARAVEL") == [laravel]
    assert reader_api.listed_ids(search="smith") == [by_author]


def test_filters_are_combined_with_and(admin_api: AdminApi, reader_api: ReaderApi):
    match = admin_api.add_book(title="Dongeng", category="Children Story", age_category="children")["id"]
    admin_api.add_book(title="Dongeng Dewasa", category="Children Story", age_category="adult")
    admin_api.add_book(title="Dongeng Lain", category="Folklore", age_category="children")

    ids = reader_api.listed_ids(search="dongeng", category="Children Story", age_category="children")

    assert ids == [match]


def test_invalid_age_category_filter_is_rejected(reader_api: ReaderApi):
    response = reader_api.list(age_category="elderly")

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "age_category" in body["errors"]


def test_page_must_be_positive(reader_api: ReaderApi):
    response = reader_api.list(page=0)

    assert response.status_code == 422
    assert "page" in response.json()["errors"]


def test_get_returns_active_book(admin_api: AdminApi, reader_api: ReaderApi):
    book = admin_api.add_book(title="Visible")

    response = reader_api.get(book["id"])

    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Visible"


def test_get_unknown_or_malformed_id_is_not_found(reader_api: ReaderApi):
    for book_id in (str(uuid.uuid4()), "42", "not-a-uuid"):
        response = reader_api.get(book_id)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Book not found"}


def test_inactive_book_is_hidden_from_readers(admin_api: AdminApi, reader_api: ReaderApi):
    book = admin_api.add_book(title="Hidden")

    response = admin_api.update(book["id"], {"is_active": "0"})
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False

    assert book["id"] not in reader_api.listed_ids()
    assert reader_api.get(book["id"]).status_code == 404
    assert book["id"] in admin_api.listed_ids()


def test_soft_deleted_book_is_hidden_from_readers(admin_api: AdminApi, reader_api: ReaderApi):
    book = admin_api.add_book(title="Gone")

    assert admin_api.delete(book["id"]).status_code == 200

    assert book["id"] not in reader_api.listed_ids()
    assert reader_api.get(book["id"]).status_code == 404


def test_categories_are_distinct_and_skip_hidden_books(admin_api: AdminApi, reader_api: ReaderApi):
    admin_api.add_book(title="A", category="Programming")
    admin_api.add_book(title="B", category="Programming")
    admin_api.add_book(title="C", category="Self Development")
    hidden = admin_api.add_book(title="D", category="Secret")
    admin_api.update(hidden["id"], {"is_active": "false"})
    deleted = admin_api.add_book(title="E", category="Removed")
    admin_api.delete(deleted["id"])

    response = reader_api.categories()

    assert response.status_code == 200
    assert response.json()["data"] == ["Programming", "Self Development"]


def test_age_categories_are_fixed(client):
    response = client.get("/books/age-categories/list")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "children": "Children",
        "teen": "Teen",
        "adult": "Adult",
        "all": "All Ages",
    }


def test_search_treats_wildcards_literally(admin_api: AdminApi, reader_api: ReaderApi):
    admin_api.add_book(title="Plain title")
    percent = admin_api.add_book(title="100% Pure")["id"]
    underscore = admin_api.add_book(title="snake_case basics")["id"]

    assert reader_api.listed_ids(search="%") == [percent]
    assert reader_api.listed_ids(search="_") == [underscore]
    assert reader_api.listed_ids(search="\\") == []
