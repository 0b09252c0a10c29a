"""``vestibule db``: forward-only Alembic wrappers.

Downgrades and stamping are not exposed; the only way to drop the user tables
is `UserBackend.destroy_backend`.

Behavior
- Alembic is configured programmatically (`config.build_alembic_config`).
  Alembic output goes to stdout, human notices to stderr.
- ``upgrade`` asks for confirmation unless ``--force`` or ``--sql`` is given.

Requirements
- ``VESTIBULE_DB_URL`` must be set for every command that touches the
  database (``heads`` and plain ``history`` only read the scripts).
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from vestibule import config
from vestibule.adapters.db.engine import deferred, make_engine

from .helpers import error, require_db_url, sanitize_url, success, warn

if TYPE_CHECKING:
    from alembic.config import Config
    from sqlalchemy.engine import Engine

UPGRADE_SCHEMA_WARNING = (
    "This will upgrade the user tables to the latest schema.\n"
    "Please ensure you have a backup before proceeding."
)

UPGRADE_SCHEMA_INSTRUCTIONS = "Run 'vestibule db upgrade' to update the schema."

verbose_option = click.option(
    "--verbose",
    "-v",
    "verbose",
    is_flag=True,
    help="Show alembic's more verbose output.",
)


class MigrationStatus(Enum):
    """Where the database schema stands relative to the packaged head."""

    UP_TO_DATE = "up to date"
    OUT_OF_DATE = "out of date"
    UNINITIALIZED = "uninitialized"

    @classmethod
    def of(cls, current: str | None, head: str | None) -> MigrationStatus:
        if current is None:
            return cls.UNINITIALIZED
        if current == head:
            return cls.UP_TO_DATE
        return cls.OUT_OF_DATE


@click.group(cls=clickx.ExtraGroup)
def db() -> None:
    """Database schema commands."""


@db.command()
@verbose_option
def current(verbose: bool) -> None:
    """Show the current schema revision."""
    cfg = config.build_alembic_config(db_url=require_db_url(), stdout=sys.stdout)
    command.current(cfg, verbose=verbose)


@db.command()
@verbose_option
def heads(verbose: bool) -> None:
    """Show the packaged head revision(s)."""
    cfg = config.build_alembic_config(stdout=sys.stdout)
    command.heads(cfg, verbose=verbose)


@db.command()
@verbose_option
@click.option(
    "--indicate-current",
    "-i",
    "indicate_current",
    is_flag=True,
    help="Mark the database's current revision.",
)
def history(verbose: bool, indicate_current: bool) -> None:
    """Show the revision history."""
    url = require_db_url() if indicate_current else None
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    command.history(cfg, verbose=verbose, indicate_current=indicate_current)


@db.command()
@click.option("--sql", is_flag=True, help="Print the SQL instead of executing it.")
@click.option("--force", is_flag=True, help="Upgrade without confirmation.")
def upgrade(sql: bool, force: bool) -> None:
    """Upgrade the user tables to the head revision."""
    url = require_db_url(check_connection=not sql)
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    if not force and not sql:
        warn(UPGRADE_SCHEMA_WARNING)
        click.secho(f"db: {click.style(sanitize_url(url), underline=True)}", err=True)
        click.confirm("Are you sure you want to proceed?", abort=True, err=True)
    command.upgrade(cfg, revision="head", sql=sql)
    if not sql:
        success("Upgrade complete!")


def _current_revision(engine: Engine) -> str | None:
    with deferred(engine).connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def _head_revision(cfg: Config) -> str | None:
    return ScriptDirectory.from_config(cfg).get_current_head()


@db.command()
def status() -> None:
    """Show database connection and schema status."""
    try:
        url = require_db_url()
    except click.ClickException as e:
        error("Cannot connect to database")
        click.echo(e.format_message())
        sys.exit(1)

    engine = make_engine(url)
    try:
        success("Database reachable")
        click.echo(f"Backend : {engine.dialect.name}")
        click.echo(f"URL     : {sanitize_url(url)}")
        rev = _current_revision(engine)
        head = _head_revision(config.build_alembic_config(db_url=url))
    finally:
        engine.dispose()

    migration_status = MigrationStatus.of(rev, head)
    if rev is None:
        click.echo(f"Schema  : {migration_status.value}")
    else:
        click.echo(f"Schema  : {rev} ({migration_status.value})")
    if migration_status is not MigrationStatus.UP_TO_DATE:
        warn(UPGRADE_SCHEMA_INSTRUCTIONS)
