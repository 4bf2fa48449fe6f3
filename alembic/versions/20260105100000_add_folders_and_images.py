"""Add folders, folder_assignments and images tables.

Revision ID: 20260105100000
Revises: 20260105090000
Create Date: 2026-01-05

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20260105100000"
down_revision: Union[str, None] = "20260105090000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "folders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_folders"),
    )
    op.create_index(op.f("ix_folders_name"), "folders", ["name"], unique=True)

    op.create_table(
        "folder_assignments",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("folder_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_folder_assignments_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["folder_id"],
            ["folders.id"],
            name="fk_folder_assignments_folder_id_folders",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("user_id", "folder_id", name="pk_folder_assignments"),
    )
    op.create_index(
        op.f("ix_folder_assignments_folder_id"),
        "folder_assignments",
        ["folder_id"],
    )

    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=1024), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("folder_id", sa.Integer(), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["folder_id"],
            ["folders.id"],
            name="fk_images_folder_id_folders",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_images"),
    )
    op.create_index(op.f("ix_images_folder_id"), "images", ["folder_id"])
    op.create_index(op.f("ix_images_uploaded_at"), "images", ["uploaded_at"])


def downgrade() -> None:
    op.drop_index(op.f("ix_images_uploaded_at"), table_name="images")
    op.drop_index(op.f("ix_images_folder_id"), table_name="images")
    op.drop_table("images")
    op.drop_index(op.f("ix_folder_assignments_folder_id"), table_name="folder_assignments")
    op.drop_table("folder_assignments")
    op.drop_index(op.f("ix_folders_name"), table_name="folders")
    op.drop_table("folders")
