"""SQLAlchemy-backed UserBackend for VESTIBULE.

Durable implementation of the UserBackend interface on top of the tables in
`vestibule.adapters.user_backend.schema`. Supports SQLite and PostgreSQL.

Every public operation runs in its own transaction (``engine.begin()`` for
writes):

- Name/email uniqueness, including the cross-field case, is arbitrated by the
  primary key of ``user_handle``; an `IntegrityError` on insert is mapped to
  the matching domain error.
- Read-modify-write sequences (``update_user``, session extension, token
  consumption) lock the affected row with ``SELECT ... FOR UPDATE`` on
  PostgreSQL. On SQLite the engine factory opens every write transaction
  with ``BEGIN IMMEDIATE``, which serializes writers; lookups run on a
  `deferred` view of the engine and never wait for the write lock.
- All timestamps come from the injected clock, never from the database.

Usage:
    engine = make_engine("sqlite:///users.db")
    backend = SqlAlchemyUserBackend(engine)
    backend.init_backend()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, func, insert, select, text, update
from sqlalchemy.exc import IntegrityError

from vestibule.adapters.db.dialects import DialectName
from vestibule.adapters.db.engine import deferred
from vestibule.adapters.db.metadata import metadata
from vestibule.interfaces.user_backend import (
    HIDDEN,
    ActivationToken,
    PasswordResetToken,
    SessionId,
    TokenInvalid,
    User,
    UserDoesNotExist,
    UserId,
    UsernameOrEmailAlreadyExists,
    UsernameOrEmailAlreadyTaken,
)

from .base import TokenPurpose, UserBackendBase
from .schema import user_account, user_handle, user_session, user_token

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import Connection, Engine, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")

# children first, so drops never trip a foreign key
TABLES = (user_token, user_session, user_handle, user_account)

ALEMBIC_VERSION_TABLE = "alembic_version"  # pragma: no mutate


class SqlAlchemyUserBackend(UserBackendBase[T], Generic[T]):
    """UserBackend persisted in a relational database through SQLAlchemy Core.

    Args:
        engine: Engine built by `vestibule.adapters.db.engine.make_engine`
            (required on SQLite for foreign keys and immediate transactions).
        **kwargs: Collaborators forwarded to `UserBackendBase`.
    """

    def __init__(self, engine: Engine, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.engine = engine
        self._reader = deferred(engine)
        self.dialect = DialectName.from_sqlalchemy(engine)

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    def init_backend(self) -> None:
        with self.engine.begin() as conn:
            metadata.create_all(conn, tables=list(reversed(TABLES)), checkfirst=True)
        logger.debug("SQL user backend ready on %s", self.dialect.value)

    def destroy_backend(self) -> None:
        with self.engine.begin() as conn:
            metadata.drop_all(conn, tables=list(TABLES), checkfirst=True)
            conn.execute(text(f"DROP TABLE IF EXISTS {ALEMBIC_VERSION_TABLE}"))
        logger.info("SQL user backend destroyed on %s", self.dialect.value)

    def housekeep(self) -> int:
        with self.engine.begin() as conn:
            now = self.clock.now()
            sessions = conn.execute(
                delete(user_session).where(user_session.c.expires_at <= now)
            ).rowcount
            tokens = conn.execute(
                delete(user_token).where(
                    user_token.c.consumed.is_(True) | (user_token.c.expires_at <= now)
                )
            ).rowcount
        logger.info(
            "Housekeeping purged %d session(s) and %d token(s)", sessions, tokens
        )
        return sessions + tokens

    # --------------------------------------------------------------------- #
    # Users
    # --------------------------------------------------------------------- #

    def get_user_by_id(self, user_id: UserId) -> User[T] | None:
        with self._reader.connect() as conn:
            row = conn.execute(
                select(user_account).where(user_account.c.id == user_id)
            ).one_or_none()
        return None if row is None else self._to_user(row)

    def list_users(
        self, offset: int = 0, limit: int | None = None
    ) -> list[tuple[UserId, User[T]]]:
        self._check_page(offset, limit)
        stmt: Select = (
            select(user_account).order_by(user_account.c.id.asc()).offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._reader.connect() as conn:
            rows = conn.execute(stmt).all()
        return [(row.id, self._to_user(row)) for row in rows]

    def count_users(self) -> int:
        with self._reader.connect() as conn:
            return conn.execute(
                select(func.count()).select_from(user_account)
            ).scalar_one()

    def create_user(self, user: User[T]) -> UserId:
        digest = self._hash_initial_password(user.password)
        payload = self.payload_codec.dump(user.more)  # type: ignore[arg-type]
        user_id = self.id_generator.new_id()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(user_account).values(
                        id=user_id,
                        name=user.name,
                        email=user.email,
                        password_hash=digest,
                        active=user.active,
                        more=payload,
                        created_at=self.clock.now(),
                    )
                )
                self._claim_handles(conn, user_id, user.handles())
        except IntegrityError as e:
            raise UsernameOrEmailAlreadyTaken() from e
        logger.info("Created user %s", user_id)
        return user_id

    def update_user(self, user_id: UserId, fn: Callable[[User[T]], User[T]]) -> None:
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    self._locking(
                        select(user_account).where(user_account.c.id == user_id)
                    )
                ).one_or_none()
                if row is None:
                    raise UserDoesNotExist(user_id)
                current = self._to_user(row)
                updated = self._apply(current, fn)
                digest = self._resolve_password(updated.password, row.password_hash)
                payload = self.payload_codec.dump(updated.more)  # type: ignore[arg-type]

                old_handles, new_handles = current.handles(), updated.handles()
                if released := old_handles - new_handles:
                    conn.execute(
                        delete(user_handle).where(
                            user_handle.c.handle.in_(sorted(released))
                        )
                    )
                self._claim_handles(conn, user_id, new_handles - old_handles)
                conn.execute(
                    update(user_account)
                    .where(user_account.c.id == user_id)
                    .values(
                        name=updated.name,
                        email=updated.email,
                        password_hash=digest,
                        active=updated.active,
                        more=payload,
                    )
                )
        except IntegrityError as e:
            raise UsernameOrEmailAlreadyExists() from e
        logger.debug("Updated user %s", user_id)

    def delete_user(self, user_id: UserId) -> None:
        with self.engine.begin() as conn:
            for table in (user_token, user_session, user_handle):
                conn.execute(delete(table).where(table.c.user_id == user_id))
            deleted = conn.execute(
                delete(user_account).where(user_account.c.id == user_id)
            ).rowcount
        if deleted:
            logger.info("Deleted user %s", user_id)

    # --------------------------------------------------------------------- #
    # Authentication & sessions
    # --------------------------------------------------------------------- #

    def auth_user(
        self, name_or_email: str, password: str, session_duration: timedelta
    ) -> SessionId | None:
        stmt = (
            select(user_account.c.id, user_account.c.password_hash)
            .select_from(
                user_handle.join(
                    user_account, user_handle.c.user_id == user_account.c.id
                )
            )
            .where(user_handle.c.handle == name_or_email)
        )
        with self._reader.connect() as conn:
            row = conn.execute(stmt).one_or_none()
        # hash check runs outside any transaction
        if row is None or not self.password_hasher.verify(password, row.password_hash):
            logger.debug("Authentication failed")
            return None

        session_id = SessionId(self.token_generator.new_id())
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(user_session).values(
                        id=session_id,
                        user_id=row.id,
                        expires_at=self.clock.now() + session_duration,
                    )
                )
        except IntegrityError:
            logger.debug("User %s vanished during authentication", row.id)
            return None
        logger.debug("Opened session for user %s", row.id)
        return session_id

    def verify_session(
        self, session_id: SessionId, extend_by: timedelta
    ) -> UserId | None:
        with self.engine.begin() as conn:
            session = conn.execute(
                self._locking(
                    select(user_session.c.user_id, user_session.c.expires_at).where(
                        user_session.c.id == session_id
                    )
                )
            ).one_or_none()
            if session is None:
                return None
            by_id = user_session.c.id == session_id
            if session.expires_at <= self.clock.now():
                conn.execute(delete(user_session).where(by_id))
                return None
            conn.execute(
                update(user_session)
                .where(by_id)
                .values(expires_at=session.expires_at + extend_by)
            )
            return session.user_id

    def destroy_session(self, session_id: SessionId) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(user_session).where(user_session.c.id == session_id))

    # --------------------------------------------------------------------- #
    # Password reset
    # --------------------------------------------------------------------- #

    def request_password_reset(
        self, user_id: UserId, valid_for: timedelta
    ) -> PasswordResetToken:
        token = self._mint_token(user_id, TokenPurpose.PASSWORD_RESET, valid_for)
        return PasswordResetToken(token)

    def verify_password_reset_token(self, token: PasswordResetToken) -> User[T] | None:
        stmt = (
            select(user_account)
            .select_from(
                user_token.join(user_account, user_token.c.user_id == user_account.c.id)
            )
            .where(self._live_token(token, TokenPurpose.PASSWORD_RESET))
        )
        with self._reader.connect() as conn:
            row = conn.execute(stmt).one_or_none()
        return None if row is None else self._to_user(row)

    def apply_new_password(self, token: PasswordResetToken, password: str) -> None:
        digest = self._hash_new_password(password)
        with self.engine.begin() as conn:
            user_id = self._consume_token(conn, token, TokenPurpose.PASSWORD_RESET)
            conn.execute(
                update(user_account)
                .where(user_account.c.id == user_id)
                .values(password_hash=digest)
            )
        logger.info("Password reset for user %s", user_id)

    # --------------------------------------------------------------------- #
    # Activation
    # --------------------------------------------------------------------- #

    def request_activation_token(
        self, user_id: UserId, valid_for: timedelta
    ) -> ActivationToken:
        token = self._mint_token(user_id, TokenPurpose.ACTIVATION, valid_for)
        return ActivationToken(token)

    def activate_user(self, token: ActivationToken) -> None:
        with self.engine.begin() as conn:
            user_id = self._consume_token(conn, token, TokenPurpose.ACTIVATION)
            conn.execute(
                update(user_account)
                .where(user_account.c.id == user_id)
                .values(active=True)
            )
        logger.info("Activated user %s", user_id)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _to_user(self, row: Row) -> User[T]:
        return User(
            name=row.name,
            email=row.email,
            password=HIDDEN,
            active=bool(row.active),
            more=self.payload_codec.load(row.more),
        )

    def _locking(self, stmt: Select) -> Select:
        """Add ``FOR UPDATE`` where the dialect supports row locks."""
        return stmt.with_for_update() if self.dialect.has_row_locks else stmt

    @staticmethod
    def _claim_handles(
        conn: Connection, user_id: UserId, handles: frozenset[str]
    ) -> None:
        if handles:
            conn.execute(
                insert(user_handle),
                [{"handle": h, "user_id": user_id} for h in sorted(handles)],
            )

    def _mint_token(
        self, user_id: UserId, purpose: TokenPurpose, valid_for: timedelta
    ) -> str:
        token = self.token_generator.new_id()
        try:
            with self.engine.begin() as conn:
                exists = conn.execute(
                    select(user_account.c.id).where(user_account.c.id == user_id)
                ).one_or_none()
                if exists is None:
                    raise UserDoesNotExist(user_id)
                conn.execute(
                    insert(user_token).values(
                        token=token,
                        purpose=purpose.value,
                        user_id=user_id,
                        expires_at=self.clock.now() + valid_for,
                        consumed=False,
                    )
                )
        except IntegrityError as e:  # user deleted between check and insert
            raise UserDoesNotExist(user_id) from e
        logger.debug("Issued %s token for user %s", purpose.value, user_id)
        return token

    def _live_token(self, token: str, purpose: TokenPurpose) -> ColumnElement[bool]:
        return (
            (user_token.c.token == token)
            & (user_token.c.purpose == purpose.value)
            & user_token.c.consumed.is_(False)
            & (user_token.c.expires_at > self.clock.now())
        )

    def _consume_token(
        self, conn: Connection, token: str, purpose: TokenPurpose
    ) -> UserId:
        """Mark a live token consumed and return its owner.

        The conditional UPDATE is the compare-and-set: of several concurrent
        consumers exactly one sees ``rowcount == 1``.

        Raises:
            TokenInvalid: If the token is unknown, expired, consumed or was
                issued for another purpose.
        """
        consumed = conn.execute(
            update(user_token)
            .where(self._live_token(token, purpose))
            .values(consumed=True)
        ).rowcount
        if consumed != 1:
            raise TokenInvalid()
        return conn.execute(
            select(user_token.c.user_id).where(user_token.c.token == token)
        ).scalar_one()
