"""Schemas for POD Power generation responses."""

from pydantic import BaseModel, Field


class GeneratedImageItem(BaseModel):
    name: str = Field(..., description="Suggested file name, e.g. 'Navy.png'.")
    mime_type: str
    data_url: str = Field(..., description="data:<mime>;base64,<payload>")


class GeneratedImagesResponse(BaseModel):
    images: list[GeneratedImageItem]
