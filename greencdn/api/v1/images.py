"""Image endpoints: rename and delete. Access follows the image's folder."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from greencdn.api.v1.auth import ensure_allowed, get_current_user, http_error
from greencdn.core.database import get_db
from greencdn.core.errors import AppError
from greencdn.schemas.auth import CurrentUser
from greencdn.schemas.images import ImageItem, RenameImageRequest
from greencdn.services import images as image_registry
from greencdn.services.blob_store import BlobStore, get_blob_store
from greencdn.services.policy import Action, Resource

router = APIRouter()


def _folder_of(db: Session, image_id: int) -> Resource:
    """Resource for an image action; folder_id is None when the image does not exist."""
    image = image_registry.get_image(db, image_id)
    return Resource(folder_id=image.folder_id if image is not None else None)


@router.put("/{image_id}", response_model=ImageItem)
def rename_image(
    image_id: int,
    body: RenameImageRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ImageItem:
    """Rename an image. Admins, or members assigned to the image's folder."""
    ensure_allowed(db, current_user, Action.RENAME_IMAGE, _folder_of(db, image_id))
    try:
        image = image_registry.rename_image(db, image_id, body.name)
    except AppError as e:
        raise http_error(e) from e
    return ImageItem.model_validate(image)


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    image_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> None:
    """
    Delete an image and its stored object. Admins, or members assigned to the
    image's folder. Members get 403 for images that do not exist.
    """
    ensure_allowed(db, current_user, Action.DELETE_IMAGE, _folder_of(db, image_id))
    try:
        image_registry.delete_image(db, blob_store, image_id)
    except AppError as e:
        raise http_error(e) from e
