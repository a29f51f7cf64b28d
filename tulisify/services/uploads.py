"""
Upload validation and blob key generation
"""

import os
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import UploadFile

from tulisify.core.config import settings


COVER_EXTENSIONS = {".jpg", ".jpeg", ".png"}
PDF_EXTENSIONS = {".pdf"}

PDF_SIGNATURE = b"%PDF"
JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SIGNATURE_BYTES = len(PNG_SIGNATURE)

READ_CHUNK_SIZE = 64 * 1024


@dataclass
class ReadUpload:
    """An uploaded file held in memory"""
    filename: str
    content_type: Optional[str]
    data: bytes
    # reading stopped at the size limit; data holds only the first bytes
    too_large: bool = False

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or "")[1].lower()

    @property
    def size(self) -> int:
        return len(self.data)


async def read_upload(upload: Optional[UploadFile], max_bytes: Optional[int] = None) -> Optional[ReadUpload]:
    """Read an UploadFile; an empty file input counts as no upload.

    With ``max_bytes`` set, an oversized file is not buffered: only enough is
    kept to check its type, and the result is flagged ``too_large``.
    """
    if upload is None or not upload.filename:
        return None

    def _result(data: bytes, too_large: bool = False) -> ReadUpload:
        return ReadUpload(filename=upload.filename, content_type=upload.content_type,
                          data=data, too_large=too_large)

    try:
        if max_bytes is not None and upload.size is not None and upload.size > max_bytes:
            return _result(await upload.read(SIGNATURE_BYTES), too_large=True)

        chunks: List[bytes] = []
        total = 0
        while True:
            chunk = await upload.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            total += len(chunk)
            if max_bytes is not None and total > max_bytes:
                return _result(b"".join(chunks)[:SIGNATURE_BYTES], too_large=True)
        return _result(b"".join(chunks))
    finally:
        await upload.close()


def _is_image(data: bytes) -> bool:
    return data.startswith(JPEG_SIGNATURE) or data.startswith(PNG_SIGNATURE)


def validate_cover(upload: ReadUpload) -> List[str]:
    errors = []
    if upload.extension not in COVER_EXTENSIONS or not _is_image(upload.data):
        errors.append("The cover image must be a file of type: jpeg, png, jpg.")
    if upload.too_large or upload.size > settings.MAX_COVER_SIZE_KB * 1024:
        errors.append(f"The cover image may not be greater than {settings.MAX_COVER_SIZE_KB} kilobytes.")
    return errors


def validate_pdf(upload: ReadUpload) -> List[str]:
    errors = []
    if upload.extension not in PDF_EXTENSIONS or not upload.data.startswith(PDF_SIGNATURE):
        errors.append("The pdf file must be a file of type: pdf.")
    if upload.too_large or upload.size > settings.MAX_PDF_SIZE_KB * 1024:
        errors.append(f"The pdf file may not be greater than {settings.MAX_PDF_SIZE_KB} kilobytes.")
    return errors


def validate_uploads(cover: Optional[ReadUpload], pdf: Optional[ReadUpload], *, pdf_required: bool) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    if cover is not None:
        cover_errors = validate_cover(cover)
        if cover_errors:
            errors["cover_image"] = cover_errors
    if pdf is None:
        if pdf_required:
            errors["pdf_file"] = ["The pdf file field is required."]
    else:
        pdf_errors = validate_pdf(pdf)
        if pdf_errors:
            errors["pdf_file"] = pdf_errors
    return errors


def cover_key(upload: ReadUpload) -> str:
    ext = upload.extension if upload.extension in COVER_EXTENSIONS else ".jpg"
    return f"covers/{uuid.uuid4()}{ext}"


def pdf_key() -> str:
    return f"books/{uuid.uuid4()}.pdf"


def clean_form(form: Dict[str, Optional[str]], *, drop_empty: bool) -> Dict[str, Optional[str]]:
    """Normalize submitted form fields.

    Fields that were not sent are dropped. Empty strings become None, or
    are dropped entirely when ``drop_empty`` is set.
    """
    out: Dict[str, Optional[str]] = {}
    for key, value in form.items():
        if value is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            if drop_empty:
                continue
            out[key] = None
        else:
            out[key] = value
    return out
