"""In-memory user backend.

All data is stored in memory and lost when the instance is discarded.
Use for unit tests, prototyping, or scenarios where durability is not required.

Unlike a plain dict store, payloads are round-tripped through JSON so that the
backend rejects non-serializable payloads and never hands out aliases of its
own state, exactly like a durable backend would.

This implementation passes all contract tests for the UserBackend interface.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

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

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class _UserRecord:
    name: str
    email: str
    password_hash: str
    active: bool
    more_json: str


@dataclass(slots=True)
class _SessionRecord:
    user_id: UserId
    expires_at: datetime


@dataclass(slots=True)
class _TokenRecord:
    user_id: UserId
    purpose: TokenPurpose
    expires_at: datetime
    consumed: bool = False


class InMemoryUserBackend(UserBackendBase[T], Generic[T]):
    """In-memory UserBackend for testing and non-durable use cases.

    - Non-durable: all data is lost when the instance is discarded.
    - Thread-safe: every operation runs under one re-entrant lock, which also
      makes ``update_user`` atomic with respect to concurrent callers.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._lock = threading.RLock()
        self._users: dict[UserId, _UserRecord] = {}
        self._handles: dict[str, UserId] = {}  # name or email -> owner
        self._sessions: dict[str, _SessionRecord] = {}
        self._tokens: dict[str, _TokenRecord] = {}

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    def init_backend(self) -> None:
        logger.debug("In-memory user backend ready (%d users)", len(self._users))

    def destroy_backend(self) -> None:
        with self._lock:
            self._users.clear()
            self._handles.clear()
            self._sessions.clear()
            self._tokens.clear()
        logger.info("In-memory user backend destroyed")

    def housekeep(self) -> int:
        with self._lock:
            now = self.clock.now()
            expired_sessions = [
                sid for sid, s in self._sessions.items() if s.expires_at <= now
            ]
            dead_tokens = [
                token
                for token, t in self._tokens.items()
                if t.consumed or t.expires_at <= now
            ]
            for sid in expired_sessions:
                del self._sessions[sid]
            for token in dead_tokens:
                del self._tokens[token]
        purged = len(expired_sessions) + len(dead_tokens)
        logger.info(
            "Housekeeping purged %d session(s) and %d token(s)",
            len(expired_sessions),
            len(dead_tokens),
        )
        return purged

    # --------------------------------------------------------------------- #
    # Users
    # --------------------------------------------------------------------- #

    def get_user_by_id(self, user_id: UserId) -> User[T] | None:
        with self._lock:
            if (record := self._users.get(user_id)) is None:
                return None
            return self._to_user(record)

    def list_users(
        self, offset: int = 0, limit: int | None = None
    ) -> list[tuple[UserId, User[T]]]:
        self._check_page(offset, limit)
        with self._lock:
            ids = sorted(self._users)
            end = None if limit is None else offset + limit
            return [(uid, self._to_user(self._users[uid])) for uid in ids[offset:end]]

    def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    def create_user(self, user: User[T]) -> UserId:
        digest = self._hash_initial_password(user.password)
        more_json = self._encode_more(user.more)
        with self._lock:
            if any(handle in self._handles for handle in user.handles()):
                raise UsernameOrEmailAlreadyTaken()
            user_id = self.id_generator.new_id()
            self._users[user_id] = _UserRecord(
                name=user.name,
                email=user.email,
                password_hash=digest,
                active=user.active,
                more_json=more_json,
            )
            for handle in user.handles():
                self._handles[handle] = user_id
        logger.info("Created user %s", user_id)
        return user_id

    def update_user(self, user_id: UserId, fn: Callable[[User[T]], User[T]]) -> None:
        with self._lock:
            if (record := self._users.get(user_id)) is None:
                raise UserDoesNotExist(user_id)
            current = self._to_user(record)
            updated = self._apply(current, fn)

            # validate everything before touching state
            for handle in updated.handles():
                owner = self._handles.get(handle)
                if owner is not None and owner != user_id:
                    raise UsernameOrEmailAlreadyExists()
            digest = self._resolve_password(updated.password, record.password_hash)
            more_json = self._encode_more(updated.more)

            for handle in current.handles():
                del self._handles[handle]
            for handle in updated.handles():
                self._handles[handle] = user_id
            self._users[user_id] = _UserRecord(
                name=updated.name,
                email=updated.email,
                password_hash=digest,
                active=updated.active,
                more_json=more_json,
            )
        logger.debug("Updated user %s", user_id)

    def delete_user(self, user_id: UserId) -> None:
        with self._lock:
            if (record := self._users.pop(user_id, None)) is None:
                return
            for handle in (record.name, record.email):
                self._handles.pop(handle, None)
            self._drop_owned(self._sessions, user_id)
            self._drop_owned(self._tokens, user_id)
        logger.info("Deleted user %s", user_id)

    # --------------------------------------------------------------------- #
    # Authentication & sessions
    # --------------------------------------------------------------------- #

    def auth_user(
        self, name_or_email: str, password: str, session_duration: timedelta
    ) -> SessionId | None:
        with self._lock:
            user_id = self._handles.get(name_or_email)
            record = self._users.get(user_id) if user_id is not None else None
        # hash check runs outside the lock
        if record is None or not self.password_hasher.verify(
            password, record.password_hash
        ):
            logger.debug("Authentication failed")
            return None

        with self._lock:
            if user_id not in self._users:  # deleted meanwhile
                return None
            session_id = SessionId(self.token_generator.new_id())
            self._sessions[session_id] = _SessionRecord(
                user_id=user_id,  # type: ignore[arg-type]
                expires_at=self.clock.now() + session_duration,
            )
        logger.debug("Opened session for user %s", user_id)
        return session_id

    def verify_session(
        self, session_id: SessionId, extend_by: timedelta
    ) -> UserId | None:
        with self._lock:
            if (session := self._sessions.get(session_id)) is None:
                return None
            if session.expires_at <= self.clock.now():
                del self._sessions[session_id]
                return None
            session.expires_at += extend_by
            return session.user_id

    def destroy_session(self, session_id: SessionId) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    # --------------------------------------------------------------------- #
    # Password reset
    # --------------------------------------------------------------------- #

    def request_password_reset(
        self, user_id: UserId, valid_for: timedelta
    ) -> PasswordResetToken:
        token = self._mint_token(user_id, TokenPurpose.PASSWORD_RESET, valid_for)
        return PasswordResetToken(token)

    def verify_password_reset_token(self, token: PasswordResetToken) -> User[T] | None:
        with self._lock:
            if (record := self._live_token(token, TokenPurpose.PASSWORD_RESET)) is None:
                return None
            return self._to_user(self._users[record.user_id])

    def apply_new_password(self, token: PasswordResetToken, password: str) -> None:
        digest = self._hash_new_password(password)
        with self._lock:
            record = self._consume_token(token, TokenPurpose.PASSWORD_RESET)
            self._users[record.user_id].password_hash = digest
        logger.info("Password reset for user %s", record.user_id)

    # --------------------------------------------------------------------- #
    # Activation
    # --------------------------------------------------------------------- #

    def request_activation_token(
        self, user_id: UserId, valid_for: timedelta
    ) -> ActivationToken:
        token = self._mint_token(user_id, TokenPurpose.ACTIVATION, valid_for)
        return ActivationToken(token)

    def activate_user(self, token: ActivationToken) -> None:
        with self._lock:
            record = self._consume_token(token, TokenPurpose.ACTIVATION)
            self._users[record.user_id].active = True
        logger.info("Activated user %s", record.user_id)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _to_user(self, record: _UserRecord) -> User[T]:
        return User(
            name=record.name,
            email=record.email,
            password=HIDDEN,
            active=record.active,
            more=self.payload_codec.load(json.loads(record.more_json)),
        )

    def _encode_more(self, more: T | None) -> str:
        return json.dumps(self.payload_codec.dump(more))  # type: ignore[arg-type]

    def _mint_token(
        self, user_id: UserId, purpose: TokenPurpose, valid_for: timedelta
    ) -> str:
        with self._lock:
            if user_id not in self._users:
                raise UserDoesNotExist(user_id)
            token = self.token_generator.new_id()
            self._tokens[token] = _TokenRecord(
                user_id=user_id,
                purpose=purpose,
                expires_at=self.clock.now() + valid_for,
            )
        logger.debug("Issued %s token for user %s", purpose.value, user_id)
        return token

    def _live_token(self, token: str, purpose: TokenPurpose) -> _TokenRecord | None:
        record = self._tokens.get(token)
        if (
            record is None
            or record.purpose is not purpose
            or record.consumed
            or record.expires_at <= self.clock.now()
        ):
            return None
        return record

    def _consume_token(self, token: str, purpose: TokenPurpose) -> _TokenRecord:
        if (record := self._live_token(token, purpose)) is None:
            raise TokenInvalid()
        record.consumed = True
        return record

    @staticmethod
    def _drop_owned(entries: dict[str, Any], user_id: UserId) -> None:
        for key in [k for k, v in entries.items() if v.user_id == user_id]:
            del entries[key]
