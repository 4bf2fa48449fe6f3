"""ORM model for application users (auth and RBAC)."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from greencdn.models.base import Base


class Role(str, enum.Enum):
    """Account role. Stored upper-case; parse() is the only place input is normalized."""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"

    @classmethod
    def parse(cls, value: "Role | str | None") -> "Role":
        """Return the canonical Role for value; raises ValueError for anything else."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid role: {value!r}")
        return cls(value.strip().upper())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'ADMIN' or 'MEMBER'; immutable after creation.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('ADMIN', 'MEMBER')", name="ck_users_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.MEMBER.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
