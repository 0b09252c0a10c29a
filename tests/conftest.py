"""Global pytest configuration for VESTIBULE.

Registers the shared fixture modules and marks every test with the suite it
lives in (``tests/unit`` -> ``unit``, ``tests/contract`` -> ``contract``...).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

# pylint: disable=unused-argument

pytest_plugins = [
    "tests.fixtures.sqlite",
    "tests.fixtures.postgres",
    "tests.fixtures.backends",
]

TESTS_ROOT = Path(__file__).parent.resolve()

# top-level test directory -> default marker
DIRECTORY_MARKERS = {
    "unit": pytest.mark.unit,
    "contract": pytest.mark.contract,
    "integration": pytest.mark.integration,
    "functional": pytest.mark.functional,
    "e2e": pytest.mark.e2e,
}


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add the suite marker of each item's top-level directory, unless already set."""
    for item in items:
        try:
            suite = item.path.resolve().relative_to(TESTS_ROOT).parts[0]
        except ValueError:
            continue
        if (marker := DIRECTORY_MARKERS.get(suite)) is None:
            continue
        if not any(m.name == marker.name for m in item.iter_markers()):
            item.add_marker(marker)


@pytest.fixture
def engine(request: pytest.FixtureRequest) -> Engine:
    """Indirection fixture to parametrize over engine-providing fixtures.

    Example:
        ```py
        @pytest.mark.parametrize(
            "engine", ["sqlite_engine_file", "postgres_engine"], indirect=True
        )
        def test_something(engine): ...
        ```
    """
    return request.getfixturevalue(request.param)


@pytest.fixture(params=["sqlite", "postgres"])
def db_url(request: pytest.FixtureRequest) -> str:
    """URL of an empty database, SQLite file or Postgres.

    The Postgres variant borrows ``postgres_engine`` so its schema is wiped
    after the test.
    """
    if request.param == "sqlite":
        return request.getfixturevalue("sqlite_url_file")
    pg_engine = request.getfixturevalue("postgres_engine")
    return pg_engine.url.render_as_string(hide_password=False)
