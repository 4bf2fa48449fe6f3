"""
Authorization policy: decides whether an actor may perform an action on a resource.

Deny by default. The function is pure: the only I/O it may trigger is the
injected assignment lookup, and it never raises for well-formed input. The
caller resolves whatever the rule needs (target user's role, an image's folder
id) before asking, and must not touch state until the decision is Allow.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from greencdn.models.user import Role

DenyReason = Literal["not_admin", "protected_admin", "not_self", "not_assigned", "not_found"]

AssignmentLookup = Callable[[int, int], bool]


class Action(str, Enum):
    LIST_ALL_USERS = "list_all_users"
    CREATE_USER = "create_user"
    DELETE_USER = "delete_user"
    CHANGE_OWN_PASSWORD = "change_own_password"
    LIST_ALL_FOLDERS = "list_all_folders"
    CREATE_FOLDER = "create_folder"
    DELETE_FOLDER = "delete_folder"
    ASSIGN_USER_TO_FOLDER = "assign_user_to_folder"
    UNASSIGN_USER_FROM_FOLDER = "unassign_user_from_folder"
    LIST_FOLDERS_FOR_USER = "list_folders_for_user"
    LIST_IMAGES_IN_FOLDER = "list_images_in_folder"
    UPLOAD_IMAGE = "upload_image"
    IMPORT_IMAGE_URL = "import_image_url"
    RENAME_IMAGE = "rename_image"
    DELETE_IMAGE = "delete_image"
    VIEW_USAGE_STATS = "view_usage_stats"
    RECORD_USAGE = "record_usage"
    GENERATE_POD_IMAGES = "generate_pod_images"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller. Passed explicitly into every decision."""

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class Resource:
    """
    What the action targets. Fill only the fields the action needs:
    user_id/user_role for user-scoped actions, folder_id for folder/image-scoped ones
    (for image actions, the folder the image belongs to).
    """

    user_id: int | None = None
    user_role: Role | None = None
    folder_id: int | None = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


ADMIN_ONLY_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.LIST_ALL_USERS,
        Action.CREATE_USER,
        Action.DELETE_USER,
        Action.LIST_ALL_FOLDERS,
        Action.CREATE_FOLDER,
        Action.DELETE_FOLDER,
        Action.ASSIGN_USER_TO_FOLDER,
        Action.UNASSIGN_USER_FROM_FOLDER,
        Action.VIEW_USAGE_STATS,
    }
)

# Allowed for admins, or for members assigned to the resolved folder.
FOLDER_SCOPED_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.LIST_IMAGES_IN_FOLDER,
        Action.UPLOAD_IMAGE,
        Action.IMPORT_IMAGE_URL,
        Action.RENAME_IMAGE,
        Action.DELETE_IMAGE,
    }
)

ANY_AUTHENTICATED_ACTIONS: frozenset[Action] = frozenset(
    {Action.RECORD_USAGE, Action.GENERATE_POD_IMAGES}
)


def _authorize_admin_only(actor: Actor, action: Action, resource: Resource | None) -> Decision:
    if not actor.is_admin:
        return deny("not_admin")
    if action is Action.DELETE_USER:
        if resource is None or resource.user_id is None:
            return deny("not_found")
        # Admin accounts are never deletable, whoever asks.
        if resource.user_role is Role.ADMIN:
            return deny("protected_admin")
    return ALLOW


def _authorize_folder_scoped(
    actor: Actor,
    resource: Resource | None,
    assignment_exists: AssignmentLookup | None,
) -> Decision:
    if actor.is_admin:
        return ALLOW
    if resource is None or resource.folder_id is None:
        return deny("not_found")
    if assignment_exists is None:
        return deny("not_assigned")
    if assignment_exists(actor.id, resource.folder_id):
        return ALLOW
    return deny("not_assigned")


def authorize(
    actor: Actor,
    action: Action,
    resource: Resource | None = None,
    assignment_exists: AssignmentLookup | None = None,
) -> Decision:
    """
    Return Allow or Deny(reason) for actor performing action on resource.

    assignment_exists(user_id, folder_id) is consulted only for folder-scoped
    actions by non-admin actors. Unknown actions and missing resource references
    are denied with reason 'not_found'.
    """
    if not isinstance(action, Action):
        return deny("not_found")

    if action in ADMIN_ONLY_ACTIONS:
        return _authorize_admin_only(actor, action, resource)

    if action is Action.CHANGE_OWN_PASSWORD:
        if resource is None or resource.user_id is None:
            return deny("not_found")
        return ALLOW if actor.id == resource.user_id else deny("not_self")

    if action is Action.LIST_FOLDERS_FOR_USER:
        if actor.is_admin:
            return ALLOW
        if resource is None or resource.user_id is None:
            return deny("not_found")
        return ALLOW if actor.id == resource.user_id else deny("not_self")

    if action in FOLDER_SCOPED_ACTIONS:
        return _authorize_folder_scoped(actor, resource, assignment_exists)

    if action in ANY_AUTHENTICATED_ACTIONS:
        return ALLOW

    return deny("not_found")
