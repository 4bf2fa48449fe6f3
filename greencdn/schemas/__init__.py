"""Pydantic request/response schemas."""

from greencdn.schemas.auth import (
    ChangePasswordRequest,
    CreateUserRequest,
    CurrentUser,
    LoginRequest,
    TokenResponse,
    UserListItem,
    UsersListResponse,
)
from greencdn.schemas.folders import AssignRequest, FolderCreateRequest, FolderDetail, FolderItem
from greencdn.schemas.health import HealthResponse
from greencdn.schemas.images import ImageItem, RenameImageRequest, UrlImportRequest
from greencdn.schemas.pod import GeneratedImageItem, GeneratedImagesResponse
from greencdn.schemas.stats import RecordUsageRequest, UsageStatsResponse, UserUsageStats

__all__ = [
    "AssignRequest",
    "ChangePasswordRequest",
    "CreateUserRequest",
    "CurrentUser",
    "FolderCreateRequest",
    "FolderDetail",
    "FolderItem",
    "GeneratedImageItem",
    "GeneratedImagesResponse",
    "HealthResponse",
    "ImageItem",
    "LoginRequest",
    "RecordUsageRequest",
    "RenameImageRequest",
    "TokenResponse",
    "UrlImportRequest",
    "UsageStatsResponse",
    "UserListItem",
    "UserUsageStats",
    "UsersListResponse",
]
