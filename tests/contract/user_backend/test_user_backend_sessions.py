"""Contract tests: authentication and the session lifecycle.

Behavior under test:
    - auth_user() accepts the exact name or email with the right password
    - every failure (unknown user, wrong password, injection-shaped input)
      yields None, indistinguishably
    - sessions expire lazily at verification time, relative to the clock
    - verify_session() slides the expiry forward by `extend_by`
    - housekeep() purges expired sessions only
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest

from vestibule.adapters.clocks import ManualClock
from vestibule.interfaces.user_backend import (
    PlainTextPassword,
    SessionId,
    User,
    UserBackend,
)

from .helpers import ALICE_PASSWORD, NO_EXTENSION, SESSION, alice, bob

# pylint: disable=redefined-outer-name

Backend = UserBackend[Any]


def test_concrete_scenario(user_backend: Backend):
    """foo / bar@baz.com / 1234 with 500 s sessions."""
    user_id = user_backend.create_user(
        User(name="foo", email="bar@baz.com", password=PlainTextPassword("1234"))
    )

    by_name = user_backend.auth_user("foo", "1234", timedelta(seconds=500))
    assert by_name is not None
    assert user_backend.verify_session(by_name, timedelta(seconds=500)) == user_id

    by_email = user_backend.auth_user("bar@baz.com", "1234", timedelta(seconds=500))
    assert by_email is not None
    assert by_email != by_name
    assert user_backend.verify_session(by_email, timedelta(seconds=500)) == user_id

    assert user_backend.auth_user("foo", "4321", timedelta(seconds=500)) is None


def test_session_ids_are_url_safe_strings(user_backend: Backend):
    user_backend.create_user(alice())
    session = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert isinstance(session, str)
    assert session.replace("-", "").replace("_", "").isalnum()


@pytest.mark.parametrize(
    "name_or_email, password",
    [
        ("alice", "wrong"),
        ("alice", ""),
        ("alice", ALICE_PASSWORD.upper()),
        ("nobody", ALICE_PASSWORD),
        ("ALICE", ALICE_PASSWORD),
        ("alice ", ALICE_PASSWORD),
        ("", ALICE_PASSWORD),
        ("' OR '1'='1", ALICE_PASSWORD),
        ("alice' --", ALICE_PASSWORD),
        ("alice", "' OR '1'='1"),
        ("%", ALICE_PASSWORD),
        ("alic_", ALICE_PASSWORD),
    ],
)
def test_auth_failures_return_none(
    user_backend: Backend, name_or_email: str, password: str
):
    user_backend.create_user(alice())
    user_backend.create_user(bob())
    assert user_backend.auth_user(name_or_email, password, SESSION) is None


def test_inactive_users_can_authenticate(user_backend: Backend):
    user_backend.create_user(alice(active=False))
    assert user_backend.auth_user("alice", ALICE_PASSWORD, SESSION) is not None


def test_unknown_session_is_invalid(user_backend: Backend):
    assert user_backend.verify_session(SessionId("no-such-session"), SESSION) is None


def test_session_expires_after_duration(user_backend: Backend, clock: ManualClock):
    user_id = user_backend.create_user(alice())
    session = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert session is not None

    clock.advance(SESSION - timedelta(seconds=1))
    assert user_backend.verify_session(session, NO_EXTENSION) == user_id

    clock.advance(timedelta(seconds=1))  # expiry instant is already expired
    assert user_backend.verify_session(session, NO_EXTENSION) is None


def test_expired_session_stays_invalid(user_backend: Backend, clock: ManualClock):
    user_backend.create_user(alice())
    session = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert session is not None
    clock.advance(SESSION * 2)
    assert user_backend.verify_session(session, SESSION * 10) is None
    # extension of an expired session must not revive it
    assert user_backend.verify_session(session, SESSION * 10) is None


def test_verify_extends_from_current_expiry(user_backend: Backend, clock: ManualClock):
    user_id = user_backend.create_user(alice())
    session = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert session is not None

    clock.advance(timedelta(seconds=400))
    # expiry 500 s -> 600 s
    assert user_backend.verify_session(session, timedelta(seconds=100)) == user_id

    clock.advance(timedelta(seconds=199))  # t = 599, past the original expiry
    assert user_backend.verify_session(session, NO_EXTENSION) == user_id

    clock.advance(timedelta(seconds=1))  # t = 600
    assert user_backend.verify_session(session, NO_EXTENSION) is None


def test_sessions_are_independent(user_backend: Backend, clock: ManualClock):
    alice_id = user_backend.create_user(alice())
    short = user_backend.auth_user("alice", ALICE_PASSWORD, timedelta(seconds=10))
    long = user_backend.auth_user("alice@example.com", ALICE_PASSWORD, SESSION)
    assert short is not None and long is not None

    clock.advance(timedelta(seconds=10))
    assert user_backend.verify_session(short, NO_EXTENSION) is None
    assert user_backend.verify_session(long, NO_EXTENSION) == alice_id


def test_destroy_session(user_backend: Backend):
    user_id = user_backend.create_user(alice())
    first = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    second = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert first is not None and second is not None

    user_backend.destroy_session(first)
    user_backend.destroy_session(first)  # idempotent
    user_backend.destroy_session(SessionId("no-such-session"))

    assert user_backend.verify_session(first, SESSION) is None
    assert user_backend.verify_session(second, SESSION) == user_id


def test_housekeep_purges_only_expired_sessions(
    user_backend: Backend, clock: ManualClock
):
    user_id = user_backend.create_user(alice())
    expiring = [
        user_backend.auth_user("alice", ALICE_PASSWORD, timedelta(seconds=10))
        for _ in range(2)
    ]
    lasting = user_backend.auth_user("alice", ALICE_PASSWORD, SESSION)
    assert lasting is not None

    clock.advance(timedelta(seconds=10))
    assert user_backend.housekeep() == len(expiring)
    assert user_backend.housekeep() == 0
    assert user_backend.verify_session(lasting, NO_EXTENSION) == user_id


def test_housekeep_on_empty_backend(user_backend: Backend):
    assert user_backend.housekeep() == 0
