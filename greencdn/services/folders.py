"""Folder and assignment registry: folders, member access, and the cascading folder delete."""

import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greencdn.core.errors import ConflictError, NotFoundError, UpstreamFailureError
from greencdn.models import Folder, FolderAssignment, Image, Role, User
from greencdn.services.blob_store import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s")


def folder_slug(name: str) -> str:
    """Blob key prefix for a folder: lower-case, each whitespace char becomes '-'."""
    return _WHITESPACE.sub("-", name.lower())


def get_folder(db: Session, folder_id: int) -> Folder | None:
    return db.query(Folder).filter(Folder.id == folder_id).first()


def assignment_exists(db: Session, user_id: int, folder_id: int) -> bool:
    return (
        db.query(FolderAssignment)
        .filter(
            FolderAssignment.user_id == user_id,
            FolderAssignment.folder_id == folder_id,
        )
        .first()
        is not None
    )


def create_folder(db: Session, name: str) -> Folder:
    """Create a folder. Raises ConflictError when the name is taken."""
    name = name.strip()
    if db.query(Folder).filter(Folder.name == name).first() is not None:
        raise ConflictError(f"Folder '{name}' already exists.")
    folder = Folder(name=name)
    db.add(folder)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Folder '{name}' already exists.") from e
    db.refresh(folder)
    logger.info("Folder created", extra={"folder_id": folder.id})
    return folder


def delete_folder(db: Session, blob_store: BlobStore, folder_id: int) -> int:
    """
    Delete a folder, its images and their blobs, and its assignments. Returns the image count.

    Blobs are removed first, one by one, inside the transaction; rows are deleted
    and committed only after every blob delete succeeded. Any blob failure rolls
    back and raises UpstreamFailureError with the folder and images untouched.
    """
    folder = (
        db.query(Folder)
        .filter(Folder.id == folder_id)
        .with_for_update()
        .first()
    )
    if folder is None:
        db.rollback()
        raise NotFoundError("Folder not found.")

    images = db.query(Image).filter(Image.folder_id == folder.id).all()
    blob_deletes = 0
    try:
        for image in images:
            key = blob_store.key_for_url(image.url)
            if key is None:
                # Externally hosted (URL import); nothing of ours to remove.
                continue
            blob_store.delete(key)
            blob_deletes += 1
    except BlobStoreError as e:
        db.rollback()
        logger.error(
            "Folder delete aborted",
            extra={
                "folder_id": folder_id,
                "image_count": len(images),
                "blob_deletes_done": blob_deletes,
                "reason": e.message[:500],
            },
        )
        raise UpstreamFailureError("Failed to delete stored images; folder left unchanged.", cause=e) from e

    db.query(Image).filter(Image.folder_id == folder.id).delete(synchronize_session=False)
    db.query(FolderAssignment).filter(FolderAssignment.folder_id == folder.id).delete(
        synchronize_session=False
    )
    db.delete(folder)
    db.commit()
    logger.info(
        "Folder deleted",
        extra={"folder_id": folder_id, "image_count": len(images), "blob_deletes": blob_deletes},
    )
    return len(images)


def assign(db: Session, user_id: int, folder_id: int) -> None:
    """Grant user access to folder. Assigning an existing pair is a silent success."""
    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise NotFoundError("User not found.")
    if get_folder(db, folder_id) is None:
        raise NotFoundError("Folder not found.")
    if assignment_exists(db, user_id, folder_id):
        return
    db.add(FolderAssignment(user_id=user_id, folder_id=folder_id))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent assign inserted the same pair first; the row exists either way.
        db.rollback()
        if not assignment_exists(db, user_id, folder_id):
            raise
    logger.info("User assigned to folder", extra={"user_id": user_id, "folder_id": folder_id})


def unassign(db: Session, user_id: int, folder_id: int) -> None:
    """Revoke access. Removing a pair that does not exist is a silent success."""
    db.query(FolderAssignment).filter(
        FolderAssignment.user_id == user_id,
        FolderAssignment.folder_id == folder_id,
    ).delete(synchronize_session=False)
    db.commit()


def list_all_folders(db: Session) -> list[Folder]:
    return db.query(Folder).order_by(Folder.name.asc()).all()


def folders_visible_to(db: Session, user: User) -> list[Folder]:
    """Admins see every folder; members see the folders assigned to them. Name ascending."""
    if user.role == Role.ADMIN.value:
        return list_all_folders(db)
    return (
        db.query(Folder)
        .join(FolderAssignment, FolderAssignment.folder_id == Folder.id)
        .filter(FolderAssignment.user_id == user.id)
        .order_by(Folder.name.asc())
        .all()
    )


def folders_for_user(db: Session, user_id: int) -> list[Folder]:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    return folders_visible_to(db, user)


def members_by_folder(db: Session) -> dict[int, list[User]]:
    """folder_id -> assigned users (username ascending), for the admin overview."""
    rows = (
        db.query(FolderAssignment.folder_id, User)
        .join(User, User.id == FolderAssignment.user_id)
        .order_by(User.username.asc())
        .all()
    )
    result: dict[int, list[User]] = {}
    for folder_id, user in rows:
        result.setdefault(folder_id, []).append(user)
    return result


def folders_by_member(db: Session) -> dict[int, list[Folder]]:
    """user_id -> assigned folders (name ascending), for the admin overview."""
    rows = (
        db.query(FolderAssignment.user_id, Folder)
        .join(Folder, Folder.id == FolderAssignment.folder_id)
        .order_by(Folder.name.asc())
        .all()
    )
    result: dict[int, list[Folder]] = {}
    for user_id, folder in rows:
        result.setdefault(user_id, []).append(folder)
    return result
