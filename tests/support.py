"""Shared test fixtures: in-memory SQLite database, recording blob store, and user/folder builders."""

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from greencdn.core.security import create_access_token
from greencdn.models import Base, Folder, FolderAssignment, Image, Role, User
from greencdn.services.blob_store import BlobStore, BlobStoreError
from greencdn.services.credentials import create_user

TEST_PASSWORD = "correct-horse-battery"


class RecordingBlobStore(BlobStore):
    """In-memory blob store that records every call; can be told to fail."""

    def __init__(self, public_base_url: str = "https://cdn.test") -> None:
        super().__init__(public_base_url)
        self.objects: dict[str, bytes] = {}
        self.puts: list[str] = []
        self.deletes: list[str] = []
        self.fail_put = False
        self.fail_delete_keys: set[str] = set()

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        if self.fail_put:
            raise BlobStoreError(f"put failed for {key}")
        self.puts.append(key)
        self.objects[key] = data
        return self.url_for_key(key)

    def delete(self, key: str) -> None:
        if key in self.fail_delete_keys:
            raise BlobStoreError(f"delete failed for {key}")
        self.deletes.append(key)
        self.objects.pop(key, None)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables; one connection shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class DatabaseTestCase(unittest.TestCase):
    """Gives each test its own database, session and recording blob store."""

    def setUp(self) -> None:
        # Cheap bcrypt for tests.
        rounds = patch("greencdn.core.security.BCRYPT_ROUNDS", 4)
        rounds.start()
        self.addCleanup(rounds.stop)
        self.SessionLocal = make_session_factory()
        self.db: Session = self.SessionLocal()
        self.addCleanup(self.db.close)
        self.blob_store = RecordingBlobStore()

    def fresh_session(self) -> Session:
        """A second session, to check what was actually committed."""
        session = self.SessionLocal()
        self.addCleanup(session.close)
        return session

    def add_user(self, username: str, role: Role = Role.MEMBER, password: str = TEST_PASSWORD) -> User:
        return create_user(self.db, username, password, role)

    def add_folder(self, name: str) -> Folder:
        folder = Folder(name=name)
        self.db.add(folder)
        self.db.commit()
        return folder

    def add_assignment(self, user: User, folder: Folder) -> None:
        self.db.add(FolderAssignment(user_id=user.id, folder_id=folder.id))
        self.db.commit()

    def add_uploaded_image(self, folder: Folder, filename: str) -> Image:
        """An image whose blob exists in the recording store."""
        key = f"{folder.name.lower()}/1700000000000-{filename}"
        url = self.blob_store.put(key, b"png-bytes", "image/png")
        self.blob_store.puts.clear()
        image = Image(name=filename, url=url, folder_id=folder.id)
        self.db.add(image)
        self.db.commit()
        return image


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(sub=user.id, role=user.role)}"}
