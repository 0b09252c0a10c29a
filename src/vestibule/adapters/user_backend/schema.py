"""User backend schema.

Defines the tables used by `SqlAlchemyUserBackend`.

| Table          | Purpose                                                   |
|----------------|-----------------------------------------------------------|
| user_account   | one row per live user (hashed password, payload as JSON)  |
| user_handle    | one row per name/email a user claims                      |
| user_session   | authenticated sessions with a sliding expiry              |
| user_token     | single-use password-reset and activation tokens           |

Constraints (enforced here):

| Constraint                        | Purpose                                   |
|-----------------------------------|-------------------------------------------|
| PK(user_handle.handle)            | names and emails share one namespace, so  |
|                                   | name/name, email/email and name/email     |
|                                   | collisions are all rejected by the DB     |
| FK(*.user_id) ON DELETE CASCADE   | deleting a user drops its handles,        |
|                                   | sessions and tokens                       |
| CHECK(user_token.purpose IN ...)  | closed set of token purposes              |

Keep in sync with the Alembic migrations under ``adapters/db/alembic``.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    false,
)

from vestibule.adapters.db.metadata import metadata
from vestibule.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

__all__ = ["user_account", "user_handle", "user_session", "user_token"]

ID_LENGTH = 64
HANDLE_LENGTH = 320  # longest valid email address
TOKEN_LENGTH = 128

user_account = Table(
    "user_account",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True, comment="Opaque user id."),
    Column("name", String(HANDLE_LENGTH), nullable=False, comment="Unique handle."),
    Column("email", String(HANDLE_LENGTH), nullable=False, comment="Unique email."),
    Column(
        "password_hash",
        String(255),
        nullable=False,
        comment="One-way password digest (never returned by reads).",
    ),
    Column(
        "active",
        Boolean(create_constraint=False),
        nullable=False,
        server_default=false(),
        comment="Set by activation-token consumption.",
    ),
    Column(
        "more",
        PORTABLE_JSON,
        nullable=True,
        comment="Opaque application payload.",
    ),
    Column(
        "created_at",
        UTCDateTime(),
        nullable=False,
        comment="UTC creation time from the backend clock.",
    ),
    comment="One row per live user.",
)

user_handle = Table(
    "user_handle",
    metadata,
    Column(
        "handle",
        String(HANDLE_LENGTH),
        primary_key=True,
        comment="A name or email claimed by a user.",
    ),
    Column(
        "user_id",
        String(ID_LENGTH),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Index(None, "user_id"),
    comment="Shared name/email namespace; the PK enforces uniqueness.",
)

user_session = Table(
    "user_session",
    metadata,
    Column("id", String(TOKEN_LENGTH), primary_key=True, comment="Session id."),
    Column(
        "user_id",
        String(ID_LENGTH),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("expires_at", UTCDateTime(), nullable=False),
    Index(None, "user_id"),
    Index(None, "expires_at"),
    comment="Authenticated sessions (sliding expiry).",
)

user_token = Table(
    "user_token",
    metadata,
    Column("token", String(TOKEN_LENGTH), primary_key=True),
    Column("purpose", String(32), nullable=False),
    Column(
        "user_id",
        String(ID_LENGTH),
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("expires_at", UTCDateTime(), nullable=False),
    Column(
        "consumed",
        Boolean(create_constraint=False),
        nullable=False,
        server_default=false(),
    ),
    CheckConstraint(
        "purpose IN ('password_reset', 'activation')", name="known_purpose"
    ),
    Index(None, "user_id"),
    Index(None, "expires_at"),
    comment="Single-use password-reset and activation tokens.",
)
