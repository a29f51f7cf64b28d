"""
Demo data: an admin, a reader and three sample books with placeholder PDFs.

Safe to run repeatedly; existing accounts and titles are skipped.
"""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select

from tulisify.core.database import AsyncSessionLocal, Base, engine
from tulisify.core.security import get_password_hash
from tulisify.models.book import Book
from tulisify.models.user import ROLE_ADMIN, ROLE_USER
from tulisify.services.book_service import create_book
from tulisify.services.storage import get_storage
from tulisify.services.uploads import ReadUpload
from tulisify.services.user_service import create_user, get_user_by_email
import tulisify.models  # noqa: F401


DEMO_PASSWORD = "password"

SAMPLE_USERS = [
    {"name": "Admin Tulisify", "email": "admin@tulisify.com", "role": ROLE_ADMIN},
    {"name": "User Demo", "email": "user@tulisify.com", "role": ROLE_USER},
]

SAMPLE_BOOKS = [
    {
        "title": "Belajar Laravel untuk Pemula",
        "author": "John Doe",
        "description": "Panduan lengkap belajar Laravel dari dasar hingga mahir.",
        "category": "Programming",
        "age_category": "adult",
        "published_year": 2023,
        "language": "Indonesian",
        "pages": 250,
    },
    {
        "title": "Cerita Anak Nusantara",
        "author": "Jane Smith",
        "description": "Kumpulan cerita rakyat Indonesia untuk anak-anak.",
        "category": "Children Story",
        "age_category": "children",
        "published_year": 2022,
        "language": "Indonesian",
        "pages": 120,
    },
    {
        "title": "Panduan Remaja Sukses",
        "author": "Ahmad Rahman",
        "description": "Tips dan trik untuk remaja meraih kesuksesan.",
        "category": "Self Development",
        "age_category": "teen",
        "published_year": 2023,
        "language": "Indonesian",
        "pages": 180,
    },
]


def placeholder_pdf(title: str) -> bytes:
    """A tiny single-page PDF whose only content is the title."""
    text = title.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    stream = f"BT /F1 18 Tf 72 720 Td ({text}) Tj ET".encode("latin-1", "replace")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref}\n%%EOF\n".encode()
    return bytes(out)


async def seed():
    """Insert whatever demo rows are missing"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    storage = get_storage()
    async with AsyncSessionLocal() as db:
        for user_data in SAMPLE_USERS:
            if await get_user_by_email(db, user_data["email"]):
                print(f"- {user_data['email']} already exists, skipped")
                continue
            await create_user(
                db,
                name=user_data["name"],
                email=user_data["email"],
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=user_data["role"],
            )
            print(f"+ {user_data['email']} ({user_data['role']})")

        for book_data in SAMPLE_BOOKS:
            existing = await db.execute(
                select(Book.id).where(Book.title == book_data["title"], Book.deleted_at.is_(None))
            )
            if existing.first():
                print(f"- '{book_data['title']}' already exists, skipped")
                continue
            pdf = ReadUpload(
                filename=f"{book_data['title']}.pdf",
                content_type="application/pdf",
                data=placeholder_pdf(book_data["title"]),
            )
            await create_book(db, storage, book_data, pdf=pdf)
            print(f"+ '{book_data['title']}'")

    await engine.dispose()
    print(f"\nDone. Demo accounts use the password '{DEMO_PASSWORD}'.")


if __name__ == "__main__":
    asyncio.run(seed())
