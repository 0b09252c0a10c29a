"""Shared mechanics for concrete user backends.

Holds the collaborators every backend needs (password hasher, clock, id and
token generators, payload codec) and the storage-independent rules for
turning `User` records into stored password digests.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from vestibule.adapters.clocks import SystemClock
from vestibule.adapters.id_generators import SecureTokenGenerator, ULIDGenerator
from vestibule.adapters.password_hashers import BcryptPasswordHasher
from vestibule.interfaces.user_backend import (
    HashedPassword,
    HiddenPassword,
    InvalidPassword,
    PassthroughCodec,
    PlainTextPassword,
    User,
    UserBackend,
)

if TYPE_CHECKING:
    from vestibule.interfaces.clock import Clock
    from vestibule.interfaces.id_generator import IdGenerator
    from vestibule.interfaces.password_hasher import PasswordHasher
    from vestibule.interfaces.user_backend import Password, PayloadCodec

T = TypeVar("T")


class TokenPurpose(str, Enum):
    """What a single-use token may be redeemed for."""

    PASSWORD_RESET = "password_reset"
    ACTIVATION = "activation"


class UserBackendBase(UserBackend[T], Generic[T]):
    """Collaborator wiring and password rules shared by concrete backends.

    Args:
        password_hasher: One-way hasher; defaults to bcrypt.
        clock: Time source for expiry; defaults to the system clock.
        id_generator: Mints user ids; defaults to monotonic ULIDs.
        token_generator: Mints session ids and tokens; defaults to
            `secrets.token_urlsafe`.
        payload_codec: Converts ``User.more`` to and from JSON-compatible
            values; defaults to passthrough.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        password_hasher: PasswordHasher | None = None,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        token_generator: IdGenerator | None = None,
        payload_codec: PayloadCodec[T] | None = None,
    ) -> None:
        self.password_hasher = password_hasher or BcryptPasswordHasher()
        self.clock = clock or SystemClock()
        self.id_generator = id_generator or ULIDGenerator()
        self.token_generator = token_generator or SecureTokenGenerator()
        self.payload_codec: PayloadCodec[T] = payload_codec or PassthroughCodec()

    # --- passwords ---

    def _hash_initial_password(self, password: Password) -> str:
        """Hash the password of a user being created.

        Raises:
            InvalidPassword: If the password is not a non-empty plain text.
        """
        if not isinstance(password, PlainTextPassword) or not password.secret:
            raise InvalidPassword()
        return self.password_hasher.hash(password.secret)

    def _hash_new_password(self, secret: str) -> str:
        if not secret:
            raise InvalidPassword()
        return self.password_hasher.hash(secret)

    def _resolve_password(self, password: Password, stored_digest: str) -> str:
        """Return the digest to store after an update."""
        match password:
            case HiddenPassword():
                return stored_digest
            case HashedPassword(digest=digest):
                return digest
            case PlainTextPassword(secret=secret):
                return self._hash_new_password(secret)
        raise InvalidPassword(f"unsupported password type {type(password).__name__}")

    # --- users ---

    @staticmethod
    def _apply(user: User[T], fn: Callable[[User[T]], User[T]]) -> User[T]:
        updated = fn(user)
        if not isinstance(updated, User):
            raise TypeError(
                f"update function must return a User, got {type(updated).__name__}"
            )
        return updated

    @staticmethod
    def _check_page(offset: int, limit: int | None) -> None:
        if offset < 0:
            raise ValueError("offset must be >= 0")
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
