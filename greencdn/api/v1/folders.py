"""Folder endpoints: admin folder management, member assignment, and folder image listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from greencdn.api.v1.auth import ensure_allowed, get_current_user, http_error
from greencdn.core.database import get_db
from greencdn.core.errors import AppError, NotFoundError
from greencdn.schemas.auth import CurrentUser
from greencdn.schemas.folders import (
    AssignRequest,
    FolderCreateRequest,
    FolderDetail,
    FolderItem,
    MemberRef,
)
from greencdn.schemas.images import ImageItem
from greencdn.services import folders as folder_registry
from greencdn.services import images as image_registry
from greencdn.services.blob_store import BlobStore, get_blob_store
from greencdn.services.policy import Action, Resource

router = APIRouter()


@router.get("", response_model=list[FolderDetail])
def list_folders(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[FolderDetail]:
    """All folders with their assigned members, name ascending (admin only)."""
    ensure_allowed(db, current_user, Action.LIST_ALL_FOLDERS)
    folders = folder_registry.list_all_folders(db)
    members = folder_registry.members_by_folder(db)
    return [
        FolderDetail(
            id=f.id,
            name=f.name,
            created_at=f.created_at,
            assigned_users=[MemberRef.model_validate(u) for u in members.get(f.id, [])],
        )
        for f in folders
    ]


@router.post("", response_model=FolderItem, status_code=status.HTTP_201_CREATED)
def create_folder(
    body: FolderCreateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> FolderItem:
    """Create a folder (admin only). 409 if the name is taken."""
    ensure_allowed(db, current_user, Action.CREATE_FOLDER)
    try:
        folder = folder_registry.create_folder(db, body.name)
    except AppError as e:
        raise http_error(e) from e
    return FolderItem.model_validate(folder)


@router.post("/assign")
def assign_user(
    body: AssignRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, str]:
    """Give a user access to a folder (admin only). Repeating an assignment is a no-op."""
    ensure_allowed(
        db,
        current_user,
        Action.ASSIGN_USER_TO_FOLDER,
        Resource(user_id=body.user_id, folder_id=body.folder_id),
    )
    try:
        folder_registry.assign(db, body.user_id, body.folder_id)
    except AppError as e:
        raise http_error(e) from e
    return {"message": "User assigned to folder"}


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_folder(
    folder_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> None:
    """
    Delete a folder with all its images (admin only).

    Stored objects are removed before the rows; if any removal fails the folder
    and its images are left as they were and 502 is returned.
    """
    ensure_allowed(db, current_user, Action.DELETE_FOLDER, Resource(folder_id=folder_id))
    try:
        folder_registry.delete_folder(db, blob_store, folder_id)
    except AppError as e:
        raise http_error(e) from e


@router.delete("/{folder_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_user(
    folder_id: int,
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> None:
    """Revoke a user's access to a folder (admin only). Revoking a missing assignment succeeds."""
    ensure_allowed(
        db,
        current_user,
        Action.UNASSIGN_USER_FROM_FOLDER,
        Resource(user_id=user_id, folder_id=folder_id),
    )
    folder_registry.unassign(db, user_id, folder_id)


@router.get("/{folder_id}/images", response_model=list[ImageItem])
def list_folder_images(
    folder_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ImageItem]:
    """Images in a folder, newest first. Admins, or members assigned to the folder."""
    ensure_allowed(db, current_user, Action.LIST_IMAGES_IN_FOLDER, Resource(folder_id=folder_id))
    if folder_registry.get_folder(db, folder_id) is None:
        raise http_error(NotFoundError("Folder not found."))
    return [ImageItem.model_validate(i) for i in image_registry.list_by_folder(db, folder_id)]
