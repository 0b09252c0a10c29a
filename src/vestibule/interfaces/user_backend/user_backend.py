"""The user backend contract.

Defines `UserBackend`, the capability set every storage implementation
exposes: lifecycle (init/destroy/housekeep), user CRUD, password
authentication with sliding-expiry sessions, and single-use password-reset
and activation tokens.

Contract overview
-----------------
Reads:
- Every user returned by a read (`get_user_by_id`, `list_users`,
  `verify_password_reset_token`) carries the `HIDDEN` password.
- "Not found" is ``None`` (or an empty list), never an exception.

Uniqueness:
- Names and emails share one namespace across all live users: no two users
  may share a name, share an email, or have one's name equal another's email.
- Racing `create_user` calls for the same handle yield exactly one success.

Atomicity:
- `update_user` performs fetch → mutate → validate → store as one unit; a
  rejected update leaves the record unchanged and concurrent updates are
  never lost.
- Token consumption is compare-and-set: a token succeeds at most once.

Expiry:
- Evaluated lazily against the backend's clock at verification time, so an
  expired session or token is never honoured even before `housekeep` runs.
- `housekeep` purges only expired or consumed entries and may run at any time.

Policies:
- A deleted user's name and email are immediately reusable.
- `apply_new_password` keeps the user's existing sessions valid.
- Inactive users may authenticate; gating on ``active`` is left to callers.
"""

from __future__ import annotations

import abc
from collections.abc import Callable
from dataclasses import replace
from datetime import timedelta
from typing import Generic, TypeVar

from .errors import UserDoesNotExist
from .models import (
    ActivationToken,
    PasswordResetToken,
    SessionId,
    User,
    UserId,
)

T = TypeVar("T")


class UserBackend(abc.ABC, Generic[T]):
    """Storage-agnostic user management with sessions and tokens."""

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    @abc.abstractmethod
    def init_backend(self) -> None:
        """Prepare storage (e.g. create missing tables).

        Idempotent: repeated calls neither fail nor touch existing data.
        """

    @abc.abstractmethod
    def destroy_backend(self) -> None:
        """Irreversibly delete all storage and data. For tests/bootstrap only."""

    @abc.abstractmethod
    def housekeep(self) -> int:
        """Purge expired sessions and expired or consumed tokens.

        Returns:
            int: The number of entries removed (0 when nothing was due).
        """

    # --------------------------------------------------------------------- #
    # Users
    # --------------------------------------------------------------------- #

    @abc.abstractmethod
    def get_user_by_id(self, user_id: UserId) -> User[T] | None:
        """Retrieve a user, or ``None`` if the id is unknown or deleted."""

    @abc.abstractmethod
    def list_users(
        self, offset: int = 0, limit: int | None = None
    ) -> list[tuple[UserId, User[T]]]:
        """List users in a stable order (ascending id).

        Args:
            offset: Number of users to skip.
            limit: Maximum number of users to return; ``None`` for all.

        Raises:
            ValueError: If ``offset`` is negative or ``limit`` is negative.
        """

    @abc.abstractmethod
    def count_users(self) -> int:
        """Return the number of live users."""

    @abc.abstractmethod
    def create_user(self, user: User[T]) -> UserId:
        """Persist a new user and return its fresh id.

        The password must be a `PlainTextPassword`; it is hashed before storage.

        Raises:
            UsernameOrEmailAlreadyTaken: If the name or email collides with any
                live user's name or email.
            InvalidPassword: If the password is not a non-empty plain text.
        """

    @abc.abstractmethod
    def update_user(self, user_id: UserId, fn: Callable[[User[T]], User[T]]) -> None:
        """Atomically apply ``fn`` to the stored user.

        ``fn`` receives the current record with a `HIDDEN` password. In the
        returned record a `HIDDEN` password keeps the stored hash, a
        `PlainTextPassword` replaces it, and a `HashedPassword` is stored as-is.

        Raises:
            UserDoesNotExist: If no user has ``user_id``.
            UsernameOrEmailAlreadyExists: If the new name or email collides
                with another user. Nothing is stored in that case.
            InvalidPassword: If ``fn`` sets an empty plain-text password.
        """

    def update_user_details(self, user_id: UserId, fn: Callable[[T], T]) -> None:
        """Apply ``fn`` to the user's ``more`` payload only.

        Unknown ids are ignored. Never fails on uniqueness since the payload is
        not part of the uniqueness invariant.
        """
        try:
            self.update_user(user_id, lambda user: replace(user, more=fn(user.more)))
        except UserDoesNotExist:
            return

    @abc.abstractmethod
    def delete_user(self, user_id: UserId) -> None:
        """Delete a user with its sessions and tokens. Unknown ids are a no-op."""

    # --------------------------------------------------------------------- #
    # Authentication & sessions
    # --------------------------------------------------------------------- #

    @abc.abstractmethod
    def auth_user(
        self, name_or_email: str, password: str, session_duration: timedelta
    ) -> SessionId | None:
        """Authenticate by exact name or email and open a session.

        Returns:
            SessionId | None: A new session valid for ``session_duration``, or
            ``None`` for any failure (unknown identifier, wrong password).
        """

    @abc.abstractmethod
    def verify_session(
        self, session_id: SessionId, extend_by: timedelta
    ) -> UserId | None:
        """Resolve a live session to its user and slide its expiry.

        On success the expiry moves ``extend_by`` later. An expired session
        yields ``None`` and is evicted.
        """

    @abc.abstractmethod
    def destroy_session(self, session_id: SessionId) -> None:
        """Remove a session. Unknown ids are a no-op."""

    # --------------------------------------------------------------------- #
    # Password reset
    # --------------------------------------------------------------------- #

    @abc.abstractmethod
    def request_password_reset(
        self, user_id: UserId, valid_for: timedelta
    ) -> PasswordResetToken:
        """Mint a password-reset token for ``user_id``.

        Several outstanding tokens per user are allowed.

        Raises:
            UserDoesNotExist: If no user has ``user_id``.
        """

    @abc.abstractmethod
    def verify_password_reset_token(self, token: PasswordResetToken) -> User[T] | None:
        """Return the token's owner if the token is live. Does not consume it."""

    @abc.abstractmethod
    def apply_new_password(self, token: PasswordResetToken, password: str) -> None:
        """Hash and store ``password`` for the token's owner, consuming the token.

        Raises:
            TokenInvalid: If the token is unknown, expired or consumed.
            InvalidPassword: If ``password`` is empty.
        """

    # --------------------------------------------------------------------- #
    # Activation
    # --------------------------------------------------------------------- #

    @abc.abstractmethod
    def request_activation_token(
        self, user_id: UserId, valid_for: timedelta
    ) -> ActivationToken:
        """Mint an activation token for ``user_id``.

        Raises:
            UserDoesNotExist: If no user has ``user_id``.
        """

    @abc.abstractmethod
    def activate_user(self, token: ActivationToken) -> None:
        """Mark the token's owner active, consuming the token.

        Raises:
            TokenInvalid: If the token is unknown, expired or consumed.
        """
