"""Supported database dialects.

The SQL user backend relies on dialect-specific behaviour for its atomicity
guarantees (``SELECT ... FOR UPDATE`` row locks on PostgreSQL, immediate write
transactions on SQLite), so only dialects listed here are accepted by
`vestibule.adapters.db.engine.make_engine`.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url

if TYPE_CHECKING:
    from sqlalchemy.engine import URL, Connection, Engine


class UnsupportedDialect(Exception):
    """Raised when an unsupported database dialect is encountered."""


class DialectName(str, Enum):
    """Supported SQLAlchemy dialect names.

    Attributes:
        POSTGRES: PostgreSQL dialect (``"postgresql"``).
        SQLITE:   SQLite dialect (``"sqlite"``).
    """

    POSTGRES = "postgresql"
    SQLITE = "sqlite"

    @property
    def has_row_locks(self) -> bool:
        """Whether ``SELECT ... FOR UPDATE`` locks rows on this dialect."""
        return self is DialectName.POSTGRES

    @classmethod
    def from_string(cls, dialect_str: str) -> DialectName:
        """Normalize a dialect or backend name (driver suffix allowed).

        Accepts e.g. ``'postgres'``, ``'postgresql+psycopg'``, ``'sqlite'``,
        ``'sqlite+pysqlite'``.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """
        base = (dialect_str or "").strip().lower().split("+", 1)[0]
        if base in {"postgres", "postgresql", "pg"}:
            return cls.POSTGRES
        if base == "sqlite":
            return cls.SQLITE
        raise UnsupportedDialect(f"Unsupported dialect: {dialect_str!r}")

    @classmethod
    def from_url(cls, url: str | URL) -> DialectName:
        """Extract the dialect from a database URL.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """
        return cls.from_string(make_url(str(url)).get_backend_name())

    @classmethod
    def from_sqlalchemy(cls, obj: Engine | Connection) -> DialectName:
        """Extract the dialect from a SQLAlchemy Engine or Connection.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """
        try:
            name = obj.dialect.name
        except AttributeError as e:
            raise UnsupportedDialect(
                f"Object {type(obj).__name__} does not expose .dialect.name"
            ) from e
        return cls.from_string(name)
