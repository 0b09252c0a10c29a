"""Database engine factory and helpers.

Centralizes creation of SQLAlchemy Engines and applies backend-specific
tuning:

- **SQLite**: connection PRAGMAs (foreign keys, WAL, durability, temp
  storage) and ``BEGIN IMMEDIATE`` transactions. pysqlite's own implicit
  transaction handling is disabled so that every SQLAlchemy transaction takes
  the database write lock up front; read-modify-write sequences such as
  ``update_user`` or token consumption are then serialized instead of failing
  with ``database is locked`` on lock upgrade. Pure reads go through
  `deferred` and open a plain ``BEGIN``, so WAL readers never wait on a writer.
- **PostgreSQL**: no tuning; the SQL user backend uses row locks.

Use this module whenever you need an Engine so that all connections are
consistently configured.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event

from vestibule.adapters.db.dialects import DialectName

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import URL, Connection, Engine

#: Execution option naming the SQLite transaction mode ("DEFERRED" or "IMMEDIATE").
SQLITE_BEGIN = "sqlite_begin"

_BEGIN_MODES = frozenset({"DEFERRED", "IMMEDIATE"})


def is_sqlite(url: str | URL) -> bool:
    """Return True if the given SQLAlchemy URL or string corresponds to SQLite.

    Raises:
        UnsupportedDialect: if the URL names an unsupported backend.
    """
    return DialectName.from_url(url) is DialectName.SQLITE


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy Engine for the given URL.

    Args:
        url: Database connection URL (str or :class:`URL`).
        echo: If True, log SQL statements.

    Returns:
        Engine: Configured SQLAlchemy Engine.

    Raises:
        UnsupportedDialect: if the URL names an unsupported backend.
    """

    sqlite = is_sqlite(url)
    engine = create_engine(url, echo=echo)

    if sqlite:

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record):  # type: ignore #pylint: disable=W0613
            dbapi_conn.isolation_level = None  # let SQLAlchemy emit BEGIN
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA temp_store=MEMORY;")
            cur.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn: Connection):
            mode = conn.get_execution_options().get(SQLITE_BEGIN, "IMMEDIATE")
            if mode not in _BEGIN_MODES:
                raise ValueError(f"Unknown SQLite transaction mode: {mode!r}")
            conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def deferred(engine: Engine) -> Engine:
    """Return a view of ``engine`` for read-only work.

    On SQLite its transactions start with a deferred ``BEGIN`` and only take a
    shared read lock. Other backends ignore the option. The view shares the
    pool of ``engine``; disposing ``engine`` disposes both.
    """
    return engine.execution_options(**{SQLITE_BEGIN: "DEFERRED"})
