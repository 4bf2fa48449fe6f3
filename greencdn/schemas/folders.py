"""Request/response schemas for folders and assignments."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class FolderCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Unique folder name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must be non-empty")
        return v


class FolderItem(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    created_at: datetime | None = None


class MemberRef(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    username: str


class FolderDetail(FolderItem):
    """Folder with its assigned members (admin overview)."""

    assigned_users: list[MemberRef] = Field(default_factory=list)


class AssignRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    folder_id: int = Field(..., ge=1)
