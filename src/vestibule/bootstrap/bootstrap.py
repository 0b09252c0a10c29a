"""Wire a user backend from a database URL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vestibule import config
from vestibule.adapters.db.engine import make_engine
from vestibule.adapters.user_backend import SqlAlchemyUserBackend

if TYPE_CHECKING:
    from vestibule.interfaces.user_backend import UserBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """Application wiring handed to entry points."""

    user_backend: UserBackend[Any]


def build_user_backend(url: str, **collaborators: Any) -> SqlAlchemyUserBackend[Any]:
    """Build a SQL user backend for `url`.

    Args:
        url: SQLAlchemy database URL (SQLite or PostgreSQL).
        **collaborators: Optional overrides (``clock``, ``password_hasher``,
            ``id_generator``, ``token_generator``, ``payload_codec``).

    Raises:
        UnsupportedDialect: If the URL names another database.
    """
    engine = make_engine(url)
    logger.debug("Building user backend on %s", engine.dialect.name)
    return SqlAlchemyUserBackend(engine, **collaborators)


def bootstrap() -> AppContainer:
    """Build the application from ``VESTIBULE_DB_URL``.

    Raises:
        DatabaseUrlNotSetError: If the variable is not set.
    """
    return AppContainer(user_backend=build_user_backend(config.get_db_url()))
