"""``vestibule users`` and ``vestibule housekeep``: operator views of the user backend.

Data goes to stdout (one user per line, or JSON with ``--json``); notices go
to stderr. Passwords are never printed; the backend only hands out hidden
ones.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from sqlalchemy.exc import DBAPIError

from vestibule.bootstrap import build_user_backend

from .helpers import require_db_url, success

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

    from vestibule.interfaces.user_backend import UserBackend

logger = logging.getLogger(__name__)

SCHEMA_MISSING_MSG = (
    "The user tables could not be read.\n"
    "Run 'vestibule db upgrade' to create or update the schema."
)


@contextmanager
def _backend() -> Iterator[UserBackend[Any]]:
    """Yield the configured backend, turning database failures into CLI errors.

    The backend's engine is disposed on exit.
    """
    backend = build_user_backend(require_db_url())
    try:
        yield backend
    except DBAPIError as e:
        logger.debug("Database error: %s", e)
        raise click.ClickException(SCHEMA_MISSING_MSG) from e
    finally:
        backend.engine.dispose()


@click.group(cls=clickx.ExtraGroup)
def users() -> None:
    """Inspect user accounts."""


@users.command()
def count() -> None:
    """Print the number of user accounts."""
    with _backend() as backend:
        click.echo(backend.count_users())


@users.command(name="list")
@click.option(
    "--offset",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Skip this many users (in id order).",
)
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Print at most this many users.",
)
@click.option("--json", "as_json", is_flag=True, help="Print a JSON array.")
def list_(offset: int, limit: int | None, as_json: bool) -> None:
    """List user accounts in id order."""
    with _backend() as backend:
        page = backend.list_users(offset=offset, limit=limit)

    if as_json:
        click.echo(
            json.dumps([{"id": user_id, **user.to_dict()} for user_id, user in page])
        )
        return
    for user_id, user in page:
        state = "active" if user.active else "inactive"
        click.echo(f"{user_id}\t{user.name}\t{user.email}\t{state}")


@click.command()
def housekeep() -> None:
    """Purge expired sessions and expired or used tokens."""
    with _backend() as backend:
        purged = backend.housekeep()
    success(f"Purged {purged} expired or used record(s)")
