from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi.testclient import TestClient

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def book_form(**overrides) -> Dict[str, str]:
    form = {
        "title": "X",
        "author": "Y",
        "description": "Z",
        "category": "Fiction",
        "age_category": "teen",
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


def _auth(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


@dataclass
class ReaderApi:
    _client: TestClient
    token: Optional[str] = None

    def list(self, **params):
        return self._client.get("/books", params=params)

    def get(self, book_id: str):
        return self._client.get(f"/books/{book_id}")

    def categories(self):
        return self._client.get("/books/categories/list")

    def download(self, book_id: str):
        return self._client.get(f"/books/{book_id}/download", headers=_auth(self.token))

    def listed_ids(self, **params):
        response = self.list(**params)
        assert response.status_code == 200, response.text
        return [item["id"] for item in response.json()["data"]["data"]]


@dataclass
class AdminApi:
    _client: TestClient
    token: str
    headers: Dict[str, str] = field(init=False)

    def __post_init__(self):
        self.headers = _auth(self.token)

    def create(self, form: Optional[Dict[str, str]] = None, *, pdf: Optional[bytes] = PDF_BYTES,
               cover: Optional[bytes] = None, pdf_name: str = "book.pdf", cover_name: str = "cover.png"):
        files = {}
        if pdf is not None:
            files["pdf_file"] = (pdf_name, pdf, "application/pdf")
        if cover is not None:
            files["cover_image"] = (cover_name, cover, "image/png")
        return self._client.post("/admin/books", data=form if form is not None else book_form(),
                                 files=files or None, headers=self.headers)

    def add_book(self, **overrides) -> dict:
        """Create a book and return its payload"""
        response = self.create(book_form(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    def update(self, book_id: str, form: Optional[Dict[str, str]] = None, *,
               pdf: Optional[bytes] = None, cover: Optional[bytes] = None, cover_name: str = "cover.png"):
        files = {}
        if pdf is not None:
            files["pdf_file"] = ("new.pdf", pdf, "application/pdf")
        if cover is not None:
            files["cover_image"] = (cover_name, cover, "image/png")
        return self._client.put(f"/admin/books/{book_id}", data=form or {},
                                files=files or None, headers=self.headers)

    def delete(self, book_id: str):
        return self._client.delete(f"/admin/books/{book_id}", headers=self.headers)

    def list(self, **params):
        return self._client.get("/admin/books", params=params, headers=self.headers)

    def listed_ids(self, **params):
        response = self.list(**params)
        assert response.status_code == 200, response.text
        return [item["id"] for item in response.json()["data"]["data"]]

    def users(self, **params):
        return self._client.get("/admin/users", params=params, headers=self.headers)

    def dashboard(self):
        return self._client.get("/admin/dashboard", headers=self.headers)

    def download_stats(self):
        return self._client.get("/admin/download-stats", headers=self.headers)
