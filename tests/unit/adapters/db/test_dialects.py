"""Unit tests for dialect detection."""

from types import SimpleNamespace

import pytest
from sqlalchemy.engine import make_url

from vestibule.adapters.db.dialects import DialectName, UnsupportedDialect


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("postgresql+psycopg", DialectName.POSTGRES),
        ("Postgres", DialectName.POSTGRES),
        ("pg", DialectName.POSTGRES),
        (" sqlite ", DialectName.SQLITE),
        ("sqlite+pysqlite", DialectName.SQLITE),
    ],
)
def test_from_string_normalizes_names(name, expected):
    assert DialectName.from_string(name) is expected


@pytest.mark.parametrize("name", [None, "", "mysql+pymysql", "oracle"])
def test_from_string_rejects_other_backends(name):
    with pytest.raises(UnsupportedDialect):
        DialectName.from_string(name)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite:///:memory:", DialectName.SQLITE),
        ("postgresql+psycopg://u:p@localhost/users", DialectName.POSTGRES),
        (make_url("sqlite+pysqlite:///users.db"), DialectName.SQLITE),
    ],
)
def test_from_url(url, expected):
    assert DialectName.from_url(url) is expected


def test_from_url_rejects_unsupported_backend():
    with pytest.raises(UnsupportedDialect):
        DialectName.from_url("mysql://u:p@localhost/users")


def test_from_sqlalchemy_reads_dialect_name():
    engine_like = SimpleNamespace(dialect=SimpleNamespace(name="sqlite"))
    assert DialectName.from_sqlalchemy(engine_like) is DialectName.SQLITE  # type: ignore[arg-type]


def test_from_sqlalchemy_without_dialect():
    with pytest.raises(UnsupportedDialect):
        DialectName.from_sqlalchemy(object())  # type: ignore[arg-type]


def test_only_postgres_has_row_locks():
    assert DialectName.POSTGRES.has_row_locks
    assert not DialectName.SQLITE.has_row_locks
