"""Domain error taxonomy shared by services and API routes."""


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidCredentialsError(AppError):
    """Login or password check failed. Same error for unknown user and wrong password."""

    def __init__(self, message: str = "Invalid username or password.") -> None:
        super().__init__(message)


class UnauthenticatedError(AppError):
    """Missing, expired or malformed bearer token."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    """Authenticated, but the authorization policy denied the action."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced user, folder, image or assignment does not exist."""


class ConflictError(AppError):
    """Duplicate username or folder name on create."""


class UpstreamFailureError(AppError):
    """Blob store or generative provider call failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)
