"""Initial schema: users and their single active credential bundle.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================================
    # Users (auth/identity.py)
    # =========================================================================

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text, unique=True, nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("created_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.Text, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    # =========================================================================
    # Credential bundles (auth/sql_store.py) - at most one row per user
    # =========================================================================

    op.create_table(
        "auth_bundles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("access_token", sa.Text, nullable=False, unique=True),
        sa.Column("refresh_token", sa.Text, nullable=False, unique=True),
        sa.Column("csrf_token", sa.Text, nullable=False),
        sa.Column("expires_at", sa.Text, nullable=False),
        sa.Column("created_at", sa.Text, nullable=False),
    )
    op.create_index("idx_auth_bundles_access_token", "auth_bundles", ["access_token"])
    op.create_index("idx_auth_bundles_refresh_token", "auth_bundles", ["refresh_token"])


def downgrade() -> None:
    # Drop in reverse order of creation (respect foreign keys)
    op.drop_index("idx_auth_bundles_refresh_token", table_name="auth_bundles")
    op.drop_index("idx_auth_bundles_access_token", table_name="auth_bundles")
    op.drop_table("auth_bundles")
    op.drop_table("users")
