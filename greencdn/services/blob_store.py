"""
Blob store: where image bytes live. Metadata stays in the database.

Implementations:
- SpacesBlobStore: DigitalOcean Spaces (S3-compatible) via boto3, objects are public-read
- LocalBlobStore: filesystem directory served by the API under BLOB_LOCAL_MOUNT_PATH (dev)

Every stored object is addressed by its public URL; key_for_url() recovers the key
from a URL this store produced and returns None for URLs hosted elsewhere.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from greencdn.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# S3 error codes meaning "already gone"; deletes treat them as success.
_ABSENT_ERROR_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class BlobStoreError(Exception):
    """Raised when the blob store cannot complete a put or delete."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class BlobStore(ABC):
    """Durable object storage addressed by key, exposing objects at public URLs."""

    def __init__(self, public_base_url: str) -> None:
        self.public_base_url = public_base_url.rstrip("/")

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store data under key; return its durable public URL."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete the object at key. Deleting an absent key is not an error."""

    def url_for_key(self, key: str) -> str:
        return f"{self.public_base_url}/{quote(key, safe='/')}"

    def key_for_url(self, url: str) -> str | None:
        """Return the storage key for a URL under public_base_url, else None."""
        if not url:
            return None
        base = urlparse(self.public_base_url)
        parsed = urlparse(url)
        if (parsed.scheme, parsed.netloc) != (base.scheme, base.netloc):
            return None
        prefix = base.path.rstrip("/") + "/"
        if not parsed.path.startswith(prefix):
            return None
        key = unquote(parsed.path[len(prefix):])
        return key or None


class SpacesBlobStore(BlobStore):
    """DigitalOcean Spaces / any S3-compatible bucket."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key: str,
        secret_key: str,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        client: object | None = None,
    ) -> None:
        super().__init__(public_base_url or f"https://{bucket}.{region}.digitaloceanspaces.com")
        self.bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or f"https://{region}.digitaloceanspaces.com",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ACL="public-read",
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Blob upload failed",
                extra={"bucket": self.bucket, "key": key, "reason": str(e)[:500]},
            )
            raise BlobStoreError(f"Failed to store object '{key}'.", cause=e) from e
        return self.url_for_key(key)

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _ABSENT_ERROR_CODES:
                logger.info("Blob already absent", extra={"bucket": self.bucket, "key": key})
                return
            logger.error(
                "Blob delete failed",
                extra={"bucket": self.bucket, "key": key, "reason": str(e)[:500]},
            )
            raise BlobStoreError(f"Failed to delete object '{key}'.", cause=e) from e
        except BotoCoreError as e:
            logger.error(
                "Blob delete failed",
                extra={"bucket": self.bucket, "key": key, "reason": str(e)[:500]},
            )
            raise BlobStoreError(f"Failed to delete object '{key}'.", cause=e) from e


class LocalBlobStore(BlobStore):
    """Store objects on the local filesystem (development and demos)."""

    def __init__(self, base_path: str, public_base_url: str) -> None:
        super().__init__(public_base_url)
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path):
            raise BlobStoreError(f"Invalid object key '{key}'.")
        return path

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        path = self._key_to_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise BlobStoreError(f"Failed to store object '{key}'.", cause=e) from e
        return self.url_for_key(key)

    def delete(self, key: str) -> None:
        path = self._key_to_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete object '{key}'.", cause=e) from e


def build_blob_store(settings: Settings) -> BlobStore:
    """Create the blob store selected by BLOB_BACKEND. Raises ValueError when misconfigured."""
    if settings.BLOB_BACKEND == "spaces":
        secret = settings.SPACES_SECRET.get_secret_value() if settings.SPACES_SECRET else ""
        if not settings.SPACES_BUCKET or not settings.SPACES_KEY or not secret:
            raise ValueError(
                "Spaces blob backend requires SPACES_BUCKET, SPACES_KEY and SPACES_SECRET."
            )
        return SpacesBlobStore(
            bucket=settings.SPACES_BUCKET,
            region=settings.SPACES_REGION,
            access_key=settings.SPACES_KEY,
            secret_key=secret,
            endpoint_url=settings.SPACES_ENDPOINT_URL,
            public_base_url=settings.BLOB_PUBLIC_BASE_URL,
        )
    return LocalBlobStore(
        base_path=settings.BLOB_LOCAL_PATH,
        public_base_url=settings.BLOB_PUBLIC_BASE_URL or settings.BLOB_LOCAL_MOUNT_PATH,
    )


@lru_cache
def get_blob_store() -> BlobStore:
    """Dependency: process-wide blob store built from settings."""
    return build_blob_store(get_settings())
