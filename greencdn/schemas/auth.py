"""Request/response schemas for auth and user endpoints."""

from pydantic import BaseModel, Field, field_validator

from greencdn.models.user import Role


class LoginRequest(BaseModel):
    """Credentials for login. Length rules are not applied here so every failure looks the same."""

    username: str = Field(..., max_length=255, description="Username")
    password: str = Field(..., max_length=128, description="Password")


class CurrentUser(BaseModel):
    """Authenticated user (id, username, role) for dependency injection."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    role: Role

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> Role:
        return Role.parse(v)  # type: ignore[arg-type]


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: CurrentUser = Field(..., description="The user the token was issued to")


class FolderRef(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str


class UserListItem(BaseModel):
    """User entry for admin list (no password)."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    role: Role
    assigned_folders: list[FolderRef] = Field(default_factory=list)


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserListItem]


class CreateUserRequest(BaseModel):
    """New member account. Role is always MEMBER; admins are bootstrapped from the CLI."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=8, max_length=128, description="Password")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must be non-empty")
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
