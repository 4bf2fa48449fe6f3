"""Unit tests for greencdn.services.folders: registry, assignments and the cascading delete."""

import unittest
from unittest.mock import patch

from greencdn.core.errors import ConflictError, NotFoundError, UpstreamFailureError
from greencdn.models import Folder, FolderAssignment, Image, Role
from greencdn.services import folders as folder_registry
from tests.support import DatabaseTestCase


class TestFolderSlug(unittest.TestCase):
    def test_lower_case_and_dashes(self) -> None:
        self.assertEqual(folder_registry.folder_slug("Spring Drop"), "spring-drop")
        self.assertEqual(folder_registry.folder_slug("A  B\tC"), "a--b-c")
        self.assertEqual(folder_registry.folder_slug("samples"), "samples")


class TestCreateFolder(DatabaseTestCase):
    def test_create_and_list_by_name(self) -> None:
        folder_registry.create_folder(self.db, "Zeta")
        folder_registry.create_folder(self.db, "Alpha")
        names = [f.name for f in folder_registry.list_all_folders(self.db)]
        self.assertEqual(names, ["Alpha", "Zeta"])

    def test_duplicate_name_conflicts(self) -> None:
        folder_registry.create_folder(self.db, "Samples")
        with self.assertRaises(ConflictError):
            folder_registry.create_folder(self.db, "Samples")
        self.assertEqual(self.db.query(Folder).count(), 1)


class TestAssignments(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.add_user("root", role=Role.ADMIN)
        self.alice = self.add_user("alice")
        self.bob = self.add_user("bob")
        self.samples = self.add_folder("Samples")
        self.archive = self.add_folder("Archive")

    def test_assign_makes_folder_visible(self) -> None:
        self.assertEqual(folder_registry.folders_for_user(self.db, self.alice.id), [])
        folder_registry.assign(self.db, self.alice.id, self.samples.id)
        visible = folder_registry.folders_for_user(self.db, self.alice.id)
        self.assertEqual([f.name for f in visible], ["Samples"])
        self.assertTrue(folder_registry.assignment_exists(self.db, self.alice.id, self.samples.id))
        self.assertFalse(folder_registry.assignment_exists(self.db, self.bob.id, self.samples.id))

    def test_assign_twice_keeps_one_row(self) -> None:
        folder_registry.assign(self.db, self.alice.id, self.samples.id)
        folder_registry.assign(self.db, self.alice.id, self.samples.id)
        self.assertEqual(self.fresh_session().query(FolderAssignment).count(), 1)

    def test_assign_racing_another_writer_keeps_one_row(self) -> None:
        real_exists = folder_registry.assignment_exists
        calls = []

        def exists_after_other_writer(db, user_id, folder_id):  # type: ignore[no-untyped-def]
            calls.append((user_id, folder_id))
            if len(calls) == 1:
                # Another request commits the same pair between the check and the insert.
                other = self.SessionLocal()
                other.add(FolderAssignment(user_id=user_id, folder_id=folder_id))
                other.commit()
                other.close()
                return False
            return real_exists(db, user_id, folder_id)

        with patch.object(folder_registry, "assignment_exists", side_effect=exists_after_other_writer):
            folder_registry.assign(self.db, self.alice.id, self.samples.id)

        self.assertEqual(len(calls), 2)
        rows = self.fresh_session().query(FolderAssignment).all()
        self.assertEqual([(r.user_id, r.folder_id) for r in rows], [(self.alice.id, self.samples.id)])

    def test_assign_unknown_user_or_folder(self) -> None:
        with self.assertRaises(NotFoundError):
            folder_registry.assign(self.db, 999, self.samples.id)
        with self.assertRaises(NotFoundError):
            folder_registry.assign(self.db, self.alice.id, 999)

    def test_unassign_is_idempotent(self) -> None:
        folder_registry.assign(self.db, self.alice.id, self.samples.id)
        folder_registry.unassign(self.db, self.alice.id, self.samples.id)
        folder_registry.unassign(self.db, self.alice.id, self.samples.id)
        self.assertEqual(folder_registry.folders_for_user(self.db, self.alice.id), [])

    def test_admin_sees_every_folder(self) -> None:
        names = [f.name for f in folder_registry.folders_visible_to(self.db, self.admin)]
        self.assertEqual(names, ["Archive", "Samples"])

    def test_folders_for_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            folder_registry.folders_for_user(self.db, 999)

    def test_overview_maps(self) -> None:
        folder_registry.assign(self.db, self.bob.id, self.samples.id)
        folder_registry.assign(self.db, self.alice.id, self.samples.id)
        folder_registry.assign(self.db, self.alice.id, self.archive.id)

        members = folder_registry.members_by_folder(self.db)
        self.assertEqual([u.username for u in members[self.samples.id]], ["alice", "bob"])
        self.assertNotIn(self.admin.id, folder_registry.folders_by_member(self.db))

        by_member = folder_registry.folders_by_member(self.db)
        self.assertEqual([f.name for f in by_member[self.alice.id]], ["Archive", "Samples"])


class TestDeleteFolder(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = self.add_user("alice")
        self.folder = self.add_folder("Samples")
        self.add_assignment(self.alice, self.folder)
        self.images = [self.add_uploaded_image(self.folder, f"{n}.png") for n in ("a", "b", "c")]

    def test_removes_images_blobs_and_assignments(self) -> None:
        count = folder_registry.delete_folder(self.db, self.blob_store, self.folder.id)

        self.assertEqual(count, 3)
        self.assertEqual(len(self.blob_store.deletes), 3)
        self.assertEqual(self.blob_store.objects, {})
        check = self.fresh_session()
        self.assertIsNone(check.get(Folder, self.folder.id))
        self.assertEqual(check.query(Image).count(), 0)
        self.assertEqual(check.query(FolderAssignment).count(), 0)

    def test_blob_failure_leaves_database_unchanged(self) -> None:
        failing_key = self.blob_store.key_for_url(self.images[1].url)
        self.blob_store.fail_delete_keys.add(failing_key)

        with self.assertRaises(UpstreamFailureError):
            folder_registry.delete_folder(self.db, self.blob_store, self.folder.id)

        check = self.fresh_session()
        self.assertIsNotNone(check.get(Folder, self.folder.id))
        self.assertEqual(check.query(Image).count(), 3)
        self.assertEqual(check.query(FolderAssignment).count(), 1)

    def test_external_images_need_no_blob_delete(self) -> None:
        self.db.add(Image(name="remote.jpg", url="https://elsewhere.example/remote.jpg", folder_id=self.folder.id))
        self.db.commit()

        count = folder_registry.delete_folder(self.db, self.blob_store, self.folder.id)

        self.assertEqual(count, 4)
        self.assertEqual(len(self.blob_store.deletes), 3)

    def test_empty_folder(self) -> None:
        empty = self.add_folder("Empty")
        self.assertEqual(folder_registry.delete_folder(self.db, self.blob_store, empty.id), 0)
        self.assertEqual(self.blob_store.deletes, [])

    def test_missing_folder(self) -> None:
        with self.assertRaises(NotFoundError):
            folder_registry.delete_folder(self.db, self.blob_store, 999)


if __name__ == "__main__":
    unittest.main()
