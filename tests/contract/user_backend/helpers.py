"""Shared data and assertions for the user backend contract tests."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from vestibule.interfaces.user_backend import (
    HIDDEN,
    PlainTextPassword,
    User,
    UserBackend,
    UserId,
)

SESSION = timedelta(seconds=500)
NO_EXTENSION = timedelta(0)
TOKEN_TTL = timedelta(hours=1)

ALICE_PASSWORD = "correct horse battery staple"
BOB_PASSWORD = "hunter2"


def alice(**changes: Any) -> User[Any]:
    """A valid user to create; override fields with keyword arguments."""
    fields: dict[str, Any] = {
        "name": "alice",
        "email": "alice@example.com",
        "password": PlainTextPassword(ALICE_PASSWORD),
        "active": False,
        "more": {"plan": "pro", "tags": ["beta"]},
    }
    fields.update(changes)
    return User(**fields)


def bob(**changes: Any) -> User[Any]:
    fields: dict[str, Any] = {
        "name": "bob",
        "email": "bob@example.com",
        "password": PlainTextPassword(BOB_PASSWORD),
    }
    fields.update(changes)
    return User(**fields)


def assert_stored(backend: UserBackend[Any], user_id: UserId, expected: User[Any]) -> None:
    """The backend holds `expected` (password hidden) under `user_id`."""
    stored = backend.get_user_by_id(user_id)
    assert stored is not None
    assert stored.password == HIDDEN
    assert stored == expected.hidden()


def assert_all_hidden(backend: UserBackend[Any]) -> None:
    assert all(user.password == HIDDEN for _, user in backend.list_users())
