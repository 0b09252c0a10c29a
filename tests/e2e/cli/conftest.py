"""Fixtures for end-to-end tests of the top-level ``vestibule`` command.

Provides a test-only ``log-demo`` subcommand that logs on a project logger
and on a library logger, a `CliRunner`, and an isolated working directory.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from vestibule.entrypoints.cli.main import vestibule

# pylint: disable=redefined-outer-name

DEMO_COMMAND = "log-demo"


@click.command()
def log_demo():
    """Log one message per level on 'vestibule.demo', then a few on 'sqlalchemy.engine'."""
    logger = logging.getLogger("vestibule.demo")
    logger.debug("demo debug message")
    logger.info("demo info message")
    logger.warning("demo warning message")
    logger.error("demo error message")
    logger.critical("demo critical message")
    library = logging.getLogger("sqlalchemy.engine")
    library.debug("library debug message")
    library.info("library info message")
    library.warning("library warning message")
    logger.debug("demo trailing debug message")


def _unregister(group: click.Group, name: str) -> None:
    group.commands.pop(name, None)
    # click-extra keeps its own per-section registries
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for section in getattr(group, "_sections", []):
        getattr(section, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Attach ``log-demo`` to the ``vestibule`` group for one test."""
    vestibule.add_command(log_demo, name=DEMO_COMMAND)
    try:
        yield DEMO_COMMAND
    finally:
        _unregister(vestibule, DEMO_COMMAND)


@pytest.fixture
def runner():
    """A CliRunner that ignores the developer's VESTIBULE_* settings.

    The flight recorder writes to the working directory, not the user log dir.
    """
    return CliRunner(
        env={
            "VESTIBULE_LOGGER_LEVELS": None,
            "VESTIBULE_FORCE_FLUSH": None,
            "VESTIBULE_FLIGHT_RECORDER": None,
            "VESTIBULE_LOG_PATH": "vestibule.log",
        }
    )


@pytest.fixture
def fs(runner):
    """Run the test inside a temporary working directory."""
    with runner.isolated_filesystem():
        yield


@pytest.fixture(autouse=True)
def restore_logger_levels():
    """``-L`` sets levels on process-wide loggers; put them back after each test."""
    names = ("sqlalchemy", "sqlalchemy.engine", "alembic", "vestibule.demo")
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
