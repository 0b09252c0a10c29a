"""Identity and credential model shared by all user backends.

Defines the `User` record, the three password representations, the opaque
string types for ids, sessions and tokens, and the payload codecs used to
round-trip the application-defined ``more`` field through storage.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Generic, NewType, TypeAlias, TypeVar

from .errors import InvalidUser

T = TypeVar("T")  # application payload

UserId: TypeAlias = str
SessionId = NewType("SessionId", str)
PasswordResetToken = NewType("PasswordResetToken", str)
ActivationToken = NewType("ActivationToken", str)


# --- passwords ---


@dataclass(frozen=True)
class PlainTextPassword:
    """A plain-text secret; only ever accepted on writes."""

    secret: str = field(repr=False)


@dataclass(frozen=True)
class HashedPassword:
    """A one-way digest as produced by a `PasswordHasher`."""

    digest: str = field(repr=False)


@dataclass(frozen=True)
class HiddenPassword:
    """Sentinel: the password exists but is not disclosed."""


HIDDEN = HiddenPassword()

Password: TypeAlias = PlainTextPassword | HashedPassword | HiddenPassword


# --- payload codecs ---


class PayloadCodec(abc.ABC, Generic[T]):
    """Converts the ``more`` payload to and from a JSON-compatible value."""

    @abc.abstractmethod
    def dump(self, value: T) -> Any:
        """Return a JSON-compatible representation of ``value``."""

    @abc.abstractmethod
    def load(self, data: Any) -> T:
        """Rebuild a payload from its JSON-compatible representation."""


class PassthroughCodec(PayloadCodec[Any]):
    """Codec for payloads that are already JSON-native (dicts, lists, scalars)."""

    def dump(self, value: Any) -> Any:
        return value

    def load(self, data: Any) -> Any:
        return data


class DataclassCodec(PayloadCodec[T]):
    """Codec for flat dataclass payloads (``asdict`` out, ``cls(**data)`` in)."""

    def __init__(self, cls: type[T]):
        if not is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")
        self.cls = cls

    def dump(self, value: T | None) -> Any:
        if value is None:
            return None
        return asdict(value)  # type: ignore[arg-type]

    def load(self, data: Any) -> T | None:
        if data is None:
            return None
        return self.cls(**data)


# --- user ---


@dataclass(frozen=True)
class User(Generic[T]):
    """An account record.

    Attributes:
        name: Unique, case-sensitive handle.
        email: Unique address, usable instead of ``name`` to authenticate.
        password: Plain text on writes; always `HIDDEN` on reads.
        active: Whether the account has been activated.
        more: Opaque application payload.

    Raises:
        InvalidUser: If ``name`` or ``email`` is empty or whitespace.
    """

    name: str
    email: str
    password: Password = HIDDEN
    active: bool = False
    more: T | None = None

    def __post_init__(self) -> None:
        for attr in ("name", "email"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip():
                raise InvalidUser(attr, "must be a non-empty string")

    def hidden(self) -> User[T]:
        """Return a copy with the password replaced by `HIDDEN`."""
        if self.password == HIDDEN:
            return self
        return User(self.name, self.email, HIDDEN, self.active, self.more)

    def handles(self) -> frozenset[str]:
        """Return the identifiers this user claims in the shared namespace."""
        return frozenset((self.name, self.email))

    def to_dict(self, codec: PayloadCodec[T] | None = None) -> dict[str, Any]:
        """Serialize to a mapping; the password is never emitted."""
        codec = codec or PassthroughCodec()
        return {
            "name": self.name,
            "email": self.email,
            "active": self.active,
            "more": codec.dump(self.more),  # type: ignore[arg-type]
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], codec: PayloadCodec[T] | None = None
    ) -> User[T]:
        """Deserialize from a mapping.

        A string ``password`` becomes a `PlainTextPassword`; a missing or
        ``null`` one leaves the password `HIDDEN`.

        Raises:
            InvalidUser: If ``password`` is neither a string nor ``null``, or
                ``active`` is not a boolean.
        """
        codec = codec or PassthroughCodec()
        password: Password = HIDDEN
        if (secret := data.get("password")) is not None:
            if not isinstance(secret, str):
                raise InvalidUser("password", "must be a string or null")
            password = PlainTextPassword(secret)
        if not isinstance(active := data["active"], bool):
            raise InvalidUser("active", "must be a boolean")
        return cls(
            name=data["name"],
            email=data["email"],
            password=password,
            active=active,
            more=codec.load(data["more"]),
        )
