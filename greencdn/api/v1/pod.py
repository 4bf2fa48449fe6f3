"""POD Power endpoints: colour variations and mockups generated from an uploaded design."""

import base64
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from greencdn.api.v1.auth import ensure_allowed, get_current_user
from greencdn.core.config import get_settings
from greencdn.core.database import get_db
from greencdn.schemas.auth import CurrentUser
from greencdn.schemas.pod import GeneratedImageItem, GeneratedImagesResponse
from greencdn.services import pod, usage_stats
from greencdn.services.generative import (
    GeminiImageProvider,
    GeneratedImage,
    GenerativeProviderError,
)
from greencdn.services.policy import Action

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_SOURCE_IMAGE_BYTES = 10 * 1024 * 1024
MAX_VARIATION_COLORS = len(pod.VARIATION_COLORS)

_PROVIDER_STATUS = {
    "auth_invalid": status.HTTP_400_BAD_REQUEST,
    "quota_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    "other": status.HTTP_502_BAD_GATEWAY,
}


def _provider_http_error(e: GenerativeProviderError) -> HTTPException:
    """auth_invalid -> 400, quota_exceeded -> 429, anything else -> 502."""
    return HTTPException(
        status_code=_PROVIDER_STATUS.get(e.kind, status.HTTP_502_BAD_GATEWAY),
        detail={"error": e.kind, "message": e.message},
    )


async def _read_source(image: UploadFile) -> tuple[bytes, str]:
    mime = (image.content_type or "").split(";")[0].strip().lower()
    if not mime.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Source file must be an image.",
        )
    data = await image.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Source image is empty.")
    if len(data) > MAX_SOURCE_IMAGE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Source image must not exceed {MAX_SOURCE_IMAGE_BYTES // (1024 * 1024)} MB.",
        )
    return data, mime


def _split_values(values: list[str]) -> list[str]:
    """Accept repeated form fields and/or comma-separated values; keep order, drop duplicates."""
    seen: dict[str, None] = {}
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part:
                seen.setdefault(part, None)
    return list(seen)


def _to_response(images: list[GeneratedImage]) -> GeneratedImagesResponse:
    return GeneratedImagesResponse(
        images=[
            GeneratedImageItem(
                name=img.name,
                mime_type=img.mime_type,
                data_url=f"data:{img.mime_type};base64,{base64.b64encode(img.data).decode('ascii')}",
            )
            for img in images
        ]
    )


@router.post("/variations", response_model=GeneratedImagesResponse)
async def create_variations(
    image: Annotated[UploadFile, File(description="Source design image")],
    colors: Annotated[list[str], Form(description="Colour names, repeated or comma-separated")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    x_provider_api_key: Annotated[str | None, Header()] = None,
) -> GeneratedImagesResponse:
    """Generate one recoloured image per requested colour."""
    ensure_allowed(db, current_user, Action.GENERATE_POD_IMAGES)
    selected = _split_values(colors)
    if not selected:
        raise HTTPException(status_code=422, detail="Select at least one colour.")
    if len(selected) > MAX_VARIATION_COLORS:
        raise HTTPException(
            status_code=422, detail=f"At most {MAX_VARIATION_COLORS} colours per request."
        )
    unknown = [c for c in selected if c not in pod.VARIATION_COLORS]
    if unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown colour(s): {', '.join(unknown)}. Allowed: {', '.join(pod.VARIATION_COLORS)}.",
        )
    data, mime = await _read_source(image)
    try:
        provider = GeminiImageProvider(get_settings(), api_key=x_provider_api_key)
        generated = await pod.generate_variations(provider, data, mime, selected)
    except GenerativeProviderError as e:
        logger.warning(
            "POD variations failed",
            extra={"user_id": current_user.id, "error_kind": e.kind, "color_count": len(selected)},
        )
        raise _provider_http_error(e) from e
    await run_in_threadpool(usage_stats.record_usage, db, current_user.id, "variation")
    return _to_response(generated)


@router.post("/mockups", response_model=GeneratedImagesResponse)
async def create_mockups(
    image: Annotated[UploadFile, File(description="Source design image")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    apparel_types: Annotated[list[str] | None, Form()] = None,
    x_provider_api_key: Annotated[str | None, Header()] = None,
) -> GeneratedImagesResponse:
    """Generate a model shot and a flat-lay per apparel type (T-shirt, Hoodie, Sweater)."""
    ensure_allowed(db, current_user, Action.GENERATE_POD_IMAGES)
    selected = _split_values(apparel_types or [])
    unknown = [t for t in selected if t not in pod.APPAREL_TYPES]
    if unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown apparel type(s): {', '.join(unknown)}. Allowed: {', '.join(pod.APPAREL_TYPES)}.",
        )
    data, mime = await _read_source(image)
    try:
        provider = GeminiImageProvider(get_settings(), api_key=x_provider_api_key)
        generated = await pod.remake_mockups(provider, data, mime, selected)
    except GenerativeProviderError as e:
        logger.warning(
            "POD mockups failed",
            extra={"user_id": current_user.id, "error_kind": e.kind, "apparel_count": len(selected)},
        )
        raise _provider_http_error(e) from e
    await run_in_threadpool(usage_stats.record_usage, db, current_user.id, "mockup")
    return _to_response(generated)
