"""Create user tables

Revision ID: 3f0c9a2d71b4
Revises:
Create Date: 2026-10-16

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from vestibule.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f0c9a2d71b4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _user_fk(table: str) -> sa.Column:
    return sa.Column(
        "user_id",
        sa.String(length=64),
        sa.ForeignKey(
            "user_account.id",
            name=op.f(f"fk_{table}_user_id_user_account"),
            ondelete="CASCADE",
        ),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.String(length=64), nullable=False, comment="Opaque user id."),
        sa.Column("name", sa.String(length=320), nullable=False, comment="Unique handle."),
        sa.Column("email", sa.String(length=320), nullable=False, comment="Unique email."),
        sa.Column(
            "password_hash",
            sa.String(length=255),
            nullable=False,
            comment="One-way password digest (never returned by reads).",
        ),
        sa.Column(
            "active",
            sa.Boolean(create_constraint=False),
            server_default=sa.false(),
            nullable=False,
            comment="Set by activation-token consumption.",
        ),
        sa.Column("more", PORTABLE_JSON, nullable=True, comment="Opaque application payload."),
        sa.Column(
            "created_at",
            UTCDateTime(),
            nullable=False,
            comment="UTC creation time from the backend clock.",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_account")),
        comment="One row per live user.",
    )

    op.create_table(
        "user_handle",
        sa.Column(
            "handle",
            sa.String(length=320),
            nullable=False,
            comment="A name or email claimed by a user.",
        ),
        _user_fk("user_handle"),
        sa.PrimaryKeyConstraint("handle", name=op.f("pk_user_handle")),
        comment="Shared name/email namespace; the PK enforces uniqueness.",
    )
    op.create_index(
        op.f("ix_user_handle_user_handle_user_id"), "user_handle", ["user_id"]
    )

    op.create_table(
        "user_session",
        sa.Column("id", sa.String(length=128), nullable=False, comment="Session id."),
        _user_fk("user_session"),
        sa.Column("expires_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_session")),
        comment="Authenticated sessions (sliding expiry).",
    )
    op.create_index(
        op.f("ix_user_session_user_session_user_id"), "user_session", ["user_id"]
    )
    op.create_index(
        op.f("ix_user_session_user_session_expires_at"), "user_session", ["expires_at"]
    )

    op.create_table(
        "user_token",
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("purpose", sa.String(length=32), nullable=False),
        _user_fk("user_token"),
        sa.Column("expires_at", UTCDateTime(), nullable=False),
        sa.Column(
            "consumed",
            sa.Boolean(create_constraint=False),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "purpose IN ('password_reset', 'activation')",
            name=op.f("ck_user_token_known_purpose"),
        ),
        sa.PrimaryKeyConstraint("token", name=op.f("pk_user_token")),
        comment="Single-use password-reset and activation tokens.",
    )
    op.create_index(
        op.f("ix_user_token_user_token_user_id"), "user_token", ["user_id"]
    )
    op.create_index(
        op.f("ix_user_token_user_token_expires_at"), "user_token", ["expires_at"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_user_token_user_token_expires_at"), table_name="user_token")
    op.drop_index(op.f("ix_user_token_user_token_user_id"), table_name="user_token")
    op.drop_table("user_token")

    op.drop_index(
        op.f("ix_user_session_user_session_expires_at"), table_name="user_session"
    )
    op.drop_index(op.f("ix_user_session_user_session_user_id"), table_name="user_session")
    op.drop_table("user_session")

    op.drop_index(op.f("ix_user_handle_user_handle_user_id"), table_name="user_handle")
    op.drop_table("user_handle")

    op.drop_table("user_account")
