"""Upload endpoints: store an image file in a folder, or register an externally hosted image URL."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from greencdn.api.v1.auth import ensure_allowed, get_current_user, http_error
from greencdn.core.config import get_settings
from greencdn.core.database import get_db
from greencdn.core.errors import AppError, NotFoundError
from greencdn.schemas.auth import CurrentUser
from greencdn.schemas.images import ImageItem, UrlImportRequest
from greencdn.services import folders as folder_registry
from greencdn.services import images as image_registry
from greencdn.services.blob_store import BlobStore, get_blob_store
from greencdn.services.policy import Action, Resource

router = APIRouter()

ALLOWED_IMAGE_CONTENT_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/gif", "image/webp", "image/svg+xml", "image/avif"}
)


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


def _parse_folder_id(raw: object) -> int:
    try:
        folder_id = int(str(raw).strip())
    except (TypeError, ValueError):
        folder_id = 0
    if folder_id < 1:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Multipart request must include a positive integer 'folder_id' field.",
        )
    return folder_id


@router.post("", response_model=ImageItem, status_code=status.HTTP_201_CREATED)
async def upload_image(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> ImageItem:
    """
    Upload one image into a folder.

    Send `Content-Type: multipart/form-data` with a `folder_id` field and the
    file in a field named `image`. The file is stored first and recorded only
    after the store returned its public URL. Admins, or members assigned to
    the folder.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "multipart/form-data":
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type must be multipart/form-data.",
        )
    form = await request.form()
    folder_id = _parse_folder_id(form.get("folder_id") or form.get("folderId"))

    ensure_allowed(db, current_user, Action.UPLOAD_IMAGE, Resource(folder_id=folder_id))
    folder = folder_registry.get_folder(db, folder_id)
    if folder is None:
        raise http_error(NotFoundError("Folder not found."))

    file = form.get("image")
    if file is None or not _is_upload_file(file):
        # Some clients send the file under another name; use first file-like part.
        file = next((v for v in form.values() if _is_upload_file(v)), None)
    if file is None or not _is_upload_file(file):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded.",
        )
    file_type = (getattr(file, "content_type", None) or "").split(";")[0].strip().lower()
    if file_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Uploaded file must be an image (png, jpeg, gif, webp, svg or avif).",
        )
    max_bytes = get_settings().MAX_UPLOAD_FILE_BYTES
    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size must not exceed {max_bytes // (1024 * 1024)} MB.",
        )

    try:
        # Blob put and DB insert are blocking; keep them off the event loop.
        image = await run_in_threadpool(
            image_registry.upload_image,
            db,
            blob_store,
            folder,
            getattr(file, "filename", None) or "",
            data,
            file_type,
        )
    except AppError as e:
        raise http_error(e) from e
    return ImageItem.model_validate(image)


@router.post("/url", response_model=ImageItem, status_code=status.HTTP_201_CREATED)
def import_image_url(
    body: UrlImportRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ImageItem:
    """
    Register an image that is already hosted elsewhere. Nothing is uploaded;
    the name defaults to the last segment of the URL path.
    """
    ensure_allowed(
        db, current_user, Action.IMPORT_IMAGE_URL, Resource(folder_id=body.folder_id)
    )
    if folder_registry.get_folder(db, body.folder_id) is None:
        raise http_error(NotFoundError("Folder not found."))
    image = image_registry.record_url_import(db, body.image_url, body.folder_id, body.name)
    return ImageItem.model_validate(image)
