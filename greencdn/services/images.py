"""Image registry: image metadata, uploads through the blob store, and transactional deletes."""

import logging
import posixpath
import time
from urllib.parse import unquote, urlparse

from sqlalchemy.orm import Session

from greencdn.core.errors import NotFoundError, UpstreamFailureError
from greencdn.models import Folder, Image
from greencdn.services.blob_store import BlobStore, BlobStoreError
from greencdn.services.folders import folder_slug

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_NAME = "imported-image"
DEFAULT_UPLOAD_NAME = "image"
MAX_IMAGE_NAME_LENGTH = 1024


def _clean_filename(filename: str | None) -> str:
    """Last path component of a client-supplied filename (both separators stripped)."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name[:MAX_IMAGE_NAME_LENGTH] or DEFAULT_UPLOAD_NAME


def build_object_key(folder: Folder, filename: str, now_ms: int | None = None) -> str:
    """Blob key: '<folder-slug>/<epoch-ms>-<filename>'."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{folder_slug(folder.name)}/{now_ms}-{_clean_filename(filename)}"


def name_from_url(url: str) -> str:
    """Display name for a URL import: the last path segment, or a placeholder."""
    try:
        path = urlparse(url).path
    except ValueError:
        return DEFAULT_IMPORT_NAME
    segment = unquote(posixpath.basename(path.rstrip("/"))).strip()
    return segment[:MAX_IMAGE_NAME_LENGTH] or DEFAULT_IMPORT_NAME


def get_image(db: Session, image_id: int) -> Image | None:
    return db.query(Image).filter(Image.id == image_id).first()


def list_by_folder(db: Session, folder_id: int) -> list[Image]:
    """Most recent first."""
    return (
        db.query(Image)
        .filter(Image.folder_id == folder_id)
        .order_by(Image.uploaded_at.desc(), Image.id.desc())
        .all()
    )


def record_upload(db: Session, name: str, url: str, folder_id: int) -> Image:
    """Insert metadata for a blob that is already stored at url."""
    image = Image(name=name, url=url, folder_id=folder_id)
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def record_url_import(db: Session, url: str, folder_id: int, name: str | None = None) -> Image:
    """Insert metadata for an externally hosted image. No blob store call."""
    return record_upload(db, (name or "").strip() or name_from_url(url), url, folder_id)


def upload_image(
    db: Session,
    blob_store: BlobStore,
    folder: Folder,
    filename: str,
    data: bytes,
    content_type: str,
) -> Image:
    """
    Store the bytes, then record the image.

    A failed put raises UpstreamFailureError and nothing is recorded. A failed
    insert after a successful put leaves an unreferenced blob, never a row
    pointing at a missing one.
    """
    name = _clean_filename(filename)
    key = build_object_key(folder, name)
    try:
        url = blob_store.put(key, data, content_type)
    except BlobStoreError as e:
        logger.error(
            "Image upload failed",
            extra={"folder_id": folder.id, "key": key, "reason": e.message[:500]},
        )
        raise UpstreamFailureError("Failed to store the uploaded image.", cause=e) from e
    try:
        image = record_upload(db, name, url, folder.id)
    except Exception:
        db.rollback()
        logger.warning("Image stored but not recorded", extra={"folder_id": folder.id, "key": key})
        raise
    logger.info(
        "Image uploaded",
        extra={"image_id": image.id, "folder_id": folder.id, "size_bytes": len(data)},
    )
    return image


def rename_image(db: Session, image_id: int, name: str) -> Image:
    name = name.strip()
    if not name:
        raise ValueError("Image name must be non-empty.")
    image = get_image(db, image_id)
    if image is None:
        raise NotFoundError("Image not found.")
    image.name = name
    db.commit()
    db.refresh(image)
    return image


def delete_image(db: Session, blob_store: BlobStore, image_id: int) -> None:
    """
    Delete the blob, then the row, in one transaction.

    A blob store failure rolls back and raises UpstreamFailureError; the row stays.
    """
    image = (
        db.query(Image)
        .filter(Image.id == image_id)
        .with_for_update()
        .first()
    )
    if image is None:
        db.rollback()
        raise NotFoundError("Image not found.")
    key = blob_store.key_for_url(image.url)
    if key is not None:
        try:
            blob_store.delete(key)
        except BlobStoreError as e:
            db.rollback()
            logger.error(
                "Image delete aborted",
                extra={"image_id": image_id, "key": key, "reason": e.message[:500]},
            )
            raise UpstreamFailureError("Failed to delete the stored image.", cause=e) from e
    db.delete(image)
    db.commit()
    logger.info("Image deleted", extra={"image_id": image_id, "blob_deleted": key is not None})
