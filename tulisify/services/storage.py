import os
import logging
from typing import BinaryIO, Iterator, Optional

from tulisify.core.config import settings
from tulisify.core.exceptions import StorageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class Storage:
    """Blob store keyed by generated names such as ``books/<uuid>.pdf``."""

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def open(self, key: str) -> BinaryIO:
        raise NotImplementedError

    def url(self, key: Optional[str]) -> Optional[str]:
        raise NotImplementedError

    def iter_chunks(self, key: str, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        stream = self.open(key)
        try:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            stream.close()


class LocalStorage(Storage):
    def __init__(self, base_dir: str, public_base: str = "/storage") -> None:
        self.base_dir = os.path.abspath(base_dir)
        self.public_base = public_base.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.base_dir, key))
        if os.path.commonpath([path, self.base_dir]) != self.base_dir:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None) -> str:
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e
        return key

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return os.path.isfile(self._path(key))

    def open(self, key: str) -> BinaryIO:
        try:
            return open(self._path(key), "rb")
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def url(self, key: Optional[str]) -> Optional[str]:
        if not key:
            return None
        return f"{self.public_base}/{key}"


class S3Storage(Storage):
    def __init__(self, *, endpoint_url: str, access_key: str, secret_key: str, bucket: str, region: Optional[str] = None, public_base_url: Optional[str] = None) -> None:
        import boto3
        from botocore.config import Config

        addressing_style = (os.getenv("S3_ADDRESSING_STYLE") or "path").lower()
        cfg = Config(signature_version="s3v4", s3={"addressing_style": addressing_style})
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=cfg,
        )
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def put(self, key: str, data: bytes, *, content_type: Optional[str] = None) -> str:
        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
        except Exception as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        return key

    def delete(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to stat {key}: {e}") from e

    def open(self, key: str) -> BinaryIO:
        try:
            return self.client.get_object(Bucket=self.bucket, Key=key)["Body"]
        except Exception as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def url(self, key: Optional[str]) -> Optional[str]:
        if not key:
            return None
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        # path-style: endpoint/bucket/key
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"


_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Storage dependency; the backend is chosen by STORAGE_BACKEND."""
    global _storage
    if _storage is not None:
        return _storage

    backend = settings.STORAGE_BACKEND.lower()
    if backend == "s3":
        _storage = S3Storage(
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            public_base_url=settings.S3_PUBLIC_BASE_URL,
        )
    else:
        from tulisify.core.paths import get_upload_dir
        _storage = LocalStorage(base_dir=get_upload_dir(), public_base=settings.PUBLIC_STORAGE_PATH)
    logger.info(f"Blob storage backend: {type(_storage).__name__}")
    return _storage


def delete_quietly(storage: Storage, key: Optional[str]) -> None:
    """Remove a stale blob; failures are logged and swallowed."""
    if not key:
        return
    try:
        storage.delete(key)
    except StorageError as e:
        logger.warning(f"[storage] could not delete stale blob {key}: {e}")
