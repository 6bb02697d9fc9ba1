"""create users

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("uid", sa.String(256), nullable=False),
        sa.Column("email", sa.String(256), nullable=False, server_default=""),
        sa.Column("full_name", sa.String(256), nullable=True),
        sa.Column("avatar_url", sa.String(2048), nullable=True),
        sa.Column("encrypted_password", sa.String(128), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider", "uid", name="uq_user_provider_uid"),
    )
    op.create_index("ix_users_provider", "users", ["provider"], unique=False)
    op.create_index("ix_users_uid", "users", ["uid"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_uid", table_name="users")
    op.drop_index("ix_users_provider", table_name="users")
    op.drop_table("users")
