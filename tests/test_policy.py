"""Unit tests for greencdn.services.policy: the role/assignment rule table."""

import unittest
from unittest.mock import MagicMock

from greencdn.models.user import Role
from greencdn.services.policy import (
    ADMIN_ONLY_ACTIONS,
    FOLDER_SCOPED_ACTIONS,
    Action,
    Actor,
    Resource,
    authorize,
)

ADMIN = Actor(id=1, role=Role.ADMIN)
MEMBER = Actor(id=2, role=Role.MEMBER)


def _lookup(assigned: set[tuple[int, int]]) -> MagicMock:
    """Assignment lookup backed by a set of (user_id, folder_id) pairs; records its calls."""
    return MagicMock(side_effect=lambda user_id, folder_id: (user_id, folder_id) in assigned)


class TestAdminOnlyActions(unittest.TestCase):
    """User, folder and assignment management is admin-only."""

    def test_admin_allowed(self) -> None:
        for action in ADMIN_ONLY_ACTIONS - {Action.DELETE_USER}:
            with self.subTest(action=action):
                self.assertTrue(authorize(ADMIN, action).allowed)

    def test_member_denied(self) -> None:
        for action in ADMIN_ONLY_ACTIONS:
            with self.subTest(action=action):
                decision = authorize(MEMBER, action, Resource(user_id=3, user_role=Role.MEMBER))
                self.assertFalse(decision.allowed)
                self.assertEqual(decision.reason, "not_admin")

    def test_admin_may_delete_member(self) -> None:
        decision = authorize(ADMIN, Action.DELETE_USER, Resource(user_id=3, user_role=Role.MEMBER))
        self.assertTrue(decision.allowed)

    def test_admin_target_is_never_deletable(self) -> None:
        decision = authorize(ADMIN, Action.DELETE_USER, Resource(user_id=9, user_role=Role.ADMIN))
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "protected_admin")

    def test_admin_cannot_delete_self(self) -> None:
        decision = authorize(ADMIN, Action.DELETE_USER, Resource(user_id=ADMIN.id, user_role=Role.ADMIN))
        self.assertFalse(decision.allowed)

    def test_delete_user_without_target_is_not_found(self) -> None:
        decision = authorize(ADMIN, Action.DELETE_USER)
        self.assertEqual(decision.reason, "not_found")


class TestSelfScopedActions(unittest.TestCase):
    def test_change_own_password_self_only(self) -> None:
        self.assertTrue(authorize(MEMBER, Action.CHANGE_OWN_PASSWORD, Resource(user_id=MEMBER.id)).allowed)
        decision = authorize(ADMIN, Action.CHANGE_OWN_PASSWORD, Resource(user_id=MEMBER.id))
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "not_self")

    def test_list_folders_for_user(self) -> None:
        self.assertTrue(authorize(MEMBER, Action.LIST_FOLDERS_FOR_USER, Resource(user_id=MEMBER.id)).allowed)
        self.assertTrue(authorize(ADMIN, Action.LIST_FOLDERS_FOR_USER, Resource(user_id=MEMBER.id)).allowed)
        decision = authorize(MEMBER, Action.LIST_FOLDERS_FOR_USER, Resource(user_id=99))
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "not_self")


class TestFolderScopedActions(unittest.TestCase):
    """List/upload/import/rename/delete image require admin or an assignment to the folder."""

    def test_assigned_member_allowed(self) -> None:
        lookup = _lookup({(MEMBER.id, 10)})
        for action in FOLDER_SCOPED_ACTIONS:
            with self.subTest(action=action):
                self.assertTrue(authorize(MEMBER, action, Resource(folder_id=10), lookup).allowed)

    def test_unassigned_member_denied(self) -> None:
        lookup = _lookup({(MEMBER.id, 10)})
        for action in FOLDER_SCOPED_ACTIONS:
            with self.subTest(action=action):
                decision = authorize(MEMBER, action, Resource(folder_id=11), lookup)
                self.assertFalse(decision.allowed)
                self.assertEqual(decision.reason, "not_assigned")

    def test_admin_needs_no_assignment_and_no_lookup(self) -> None:
        lookup = _lookup(set())
        for action in FOLDER_SCOPED_ACTIONS:
            with self.subTest(action=action):
                self.assertTrue(authorize(ADMIN, action, Resource(folder_id=11), lookup).allowed)
        lookup.assert_not_called()

    def test_unresolved_folder_is_denied_for_members(self) -> None:
        lookup = _lookup(set())
        decision = authorize(MEMBER, Action.DELETE_IMAGE, Resource(folder_id=None), lookup)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "not_found")
        lookup.assert_not_called()

    def test_missing_lookup_denies(self) -> None:
        decision = authorize(MEMBER, Action.UPLOAD_IMAGE, Resource(folder_id=10))
        self.assertFalse(decision.allowed)


class TestPolicyProperties(unittest.TestCase):
    def test_deterministic(self) -> None:
        lookup = _lookup({(MEMBER.id, 10)})
        for actor in (ADMIN, MEMBER):
            for action in Action:
                for resource in (None, Resource(folder_id=10), Resource(user_id=2, user_role=Role.MEMBER)):
                    with self.subTest(actor=actor, action=action, resource=resource):
                        first = authorize(actor, action, resource, lookup)
                        second = authorize(actor, action, resource, lookup)
                        self.assertEqual(first, second)

    def test_unknown_action_is_not_found(self) -> None:
        decision = authorize(ADMIN, "drop_everything")  # type: ignore[arg-type]
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "not_found")

    def test_any_authenticated_actions(self) -> None:
        for action in (Action.RECORD_USAGE, Action.GENERATE_POD_IMAGES):
            self.assertTrue(authorize(MEMBER, action).allowed)

    def test_decision_is_falsy_on_deny(self) -> None:
        self.assertFalse(authorize(MEMBER, Action.CREATE_FOLDER))
        self.assertTrue(authorize(ADMIN, Action.CREATE_FOLDER))


if __name__ == "__main__":
    unittest.main()
