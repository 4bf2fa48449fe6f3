"""JWT login and the request guards: get_current_user (authenticate) and ensure_allowed (authorize)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from greencdn.core.database import get_db
from greencdn.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthenticatedError,
    UpstreamFailureError,
)
from greencdn.core.security import TokenError, create_access_token, decode_access_token
from greencdn.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from greencdn.services import credentials as credential_store
from greencdn.services.folders import assignment_exists
from greencdn.services.policy import Action, Actor, Resource, authorize

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def http_error(err: AppError) -> HTTPException:
    """Translate a domain error into the HTTP response for its taxonomy kind."""
    if isinstance(err, (InvalidCredentialsError, UnauthenticatedError)):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=err.message,
            headers=_BEARER_CHALLENGE,
        )
    if isinstance(err, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=err.message)
    if isinstance(err, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.message)
    if isinstance(err, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=err.message)
    if isinstance(err, UpstreamFailureError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=err.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    try:
        user = credential_store.verify_credentials(db, body.username, body.password)
    except InvalidCredentialsError as e:
        logger.info("Login failed")
        raise http_error(e) from e
    token = create_access_token(sub=user.id, role=user.role)
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        user=CurrentUser.model_validate(user),
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if credentials is None:
        raise http_error(UnauthenticatedError())
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenError as e:
        logger.info("Rejected bearer token", extra={"token_error": e.kind})
        raise http_error(UnauthenticatedError("Invalid or expired token")) from e
    user = credential_store.get_user(db, claims.user_id)
    if user is None:
        raise http_error(UnauthenticatedError("User not found"))
    return CurrentUser.model_validate(user)


def actor_of(user: CurrentUser) -> Actor:
    return Actor(id=user.id, role=user.role)


def ensure_allowed(
    db: Session,
    user: CurrentUser,
    action: Action,
    resource: Resource | None = None,
) -> None:
    """Ask the authorization policy; raise 403 on deny. The deny reason is logged, never returned."""
    decision = authorize(
        actor_of(user),
        action,
        resource,
        assignment_exists=lambda user_id, folder_id: assignment_exists(db, user_id, folder_id),
    )
    if not decision.allowed:
        logger.info(
            "Authorization denied",
            extra={"user_id": user.id, "action": action.value, "reason": decision.reason},
        )
        raise http_error(ForbiddenError())


@router.get("/me", response_model=CurrentUser)
def read_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Return the user the bearer token belongs to."""
    return current_user
