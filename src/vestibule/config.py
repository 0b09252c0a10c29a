"""Configuration for VESTIBULE.

Environment lookups, the programmatic Alembic configuration, and the default
lifetimes used when the CLI (or an application) does not pass its own.
"""

import os
import sys
from datetime import timedelta
from importlib.resources import files
from typing import TextIO

from alembic.config import Config

DB_URL_ENV_VAR = "VESTIBULE_DB_URL"  # pragma: no mutate

ALEMBIC_URL_KEY = "sqlalchemy.url"  # pragma: no mutate
ALEMBIC_SCRIPT_LOCATION_KEY = "script_location"  # pragma: no mutate
ALEMBIC_SCRIPTS_PACKAGE = "vestibule.adapters.db.alembic"  # pragma: no mutate

DEFAULT_SESSION_DURATION = timedelta(hours=12)
DEFAULT_TOKEN_VALIDITY = timedelta(hours=24)


class DatabaseUrlNotSetError(Exception):
    """Raised when the VESTIBULE_DB_URL environment variable is not set."""


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `VESTIBULE_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `VESTIBULE_DB_URL` is unset or empty.
    """
    if not (url := os.environ.get(DB_URL_ENV_VAR)):
        raise DatabaseUrlNotSetError
    return url


def build_alembic_config(
    db_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Build an Alembic `Config` for the packaged user-table migrations.

    Args:
        db_url: SQLAlchemy database URL. May be `None` for commands that only
            inspect the scripts (``heads``, plain ``history``).
        stdout: Stream Alembic writes status lines to; override in tests.

    Returns:
        An `alembic.config.Config` with ``sqlalchemy.url`` (when given) and
        ``script_location`` set.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option(ALEMBIC_URL_KEY, db_url)
    cfg.set_main_option(
        ALEMBIC_SCRIPT_LOCATION_KEY, str(files(ALEMBIC_SCRIPTS_PACKAGE))
    )
    return cfg
