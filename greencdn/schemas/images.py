"""Request/response schemas for images, uploads and URL imports."""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field, field_validator


class ImageItem(BaseModel):
    """Image metadata; display_url mirrors url for the gallery."""

    model_config = {"from_attributes": True}

    id: int
    name: str
    url: str
    folder_id: int
    uploaded_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_url(self) -> str:
        return self.url


class UrlImportRequest(BaseModel):
    folder_id: int = Field(..., ge=1)
    image_url: str = Field(..., min_length=1, max_length=2048)
    name: str | None = Field(default=None, max_length=1024)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        s = v.strip()
        if not (s.lower().startswith("http://") or s.lower().startswith("https://")):
            raise ValueError("image_url must use http or https")
        return s


class RenameImageRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=1024)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must be non-empty")
        return v
