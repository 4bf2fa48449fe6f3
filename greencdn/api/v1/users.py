"""User endpoints: admin user management, self-service password change, folders per user."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from greencdn.api.v1.auth import ensure_allowed, get_current_user, http_error
from greencdn.core.database import get_db
from greencdn.core.errors import AppError
from greencdn.models import Role
from greencdn.schemas.auth import (
    ChangePasswordRequest,
    CreateUserRequest,
    CurrentUser,
    FolderRef,
    UserListItem,
    UsersListResponse,
)
from greencdn.schemas.folders import FolderItem
from greencdn.services import credentials as credential_store
from greencdn.services import folders as folder_registry
from greencdn.services.policy import Action, Resource

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users with their assigned folders (admin only)."""
    ensure_allowed(db, current_user, Action.LIST_ALL_USERS)
    users = credential_store.list_users(db)
    folders_by_user = folder_registry.folders_by_member(db)
    return UsersListResponse(
        users=[
            UserListItem(
                id=u.id,
                username=u.username,
                role=Role.parse(u.role),
                assigned_folders=[
                    FolderRef.model_validate(f) for f in folders_by_user.get(u.id, [])
                ],
            )
            for u in users
        ]
    )


@router.post("", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserListItem:
    """Create a MEMBER account (admin only). 409 if the username is taken."""
    ensure_allowed(db, current_user, Action.CREATE_USER)
    try:
        user = credential_store.create_user(db, body.username, body.password, Role.MEMBER)
    except AppError as e:
        raise http_error(e) from e
    return UserListItem(id=user.id, username=user.username, role=Role.parse(user.role))


@router.put("/change-password")
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, str]:
    """Change the caller's own password. The current password must be supplied."""
    ensure_allowed(
        db, current_user, Action.CHANGE_OWN_PASSWORD, Resource(user_id=current_user.id)
    )
    try:
        credential_store.change_password(
            db, current_user.id, body.current_password, body.new_password
        )
    except AppError as e:
        raise http_error(e) from e
    return {"message": "Password updated successfully"}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> None:
    """Delete a member account (admin only). Admin accounts can never be deleted."""
    target = credential_store.get_user(db, user_id)
    ensure_allowed(
        db,
        current_user,
        Action.DELETE_USER,
        Resource(
            user_id=user_id,
            user_role=Role.parse(target.role) if target is not None else None,
        ),
    )
    try:
        credential_store.delete_user(db, user_id)
    except AppError as e:
        raise http_error(e) from e


@router.get("/{user_id}/folders", response_model=list[FolderItem])
def list_folders_for_user(
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[FolderItem]:
    """Folders visible to a user (admins: all; members: assigned), name ascending. Self or admin."""
    ensure_allowed(db, current_user, Action.LIST_FOLDERS_FOR_USER, Resource(user_id=user_id))
    try:
        folders = folder_registry.folders_for_user(db, user_id)
    except AppError as e:
        raise http_error(e) from e
    return [FolderItem.model_validate(f) for f in folders]
