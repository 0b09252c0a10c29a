"""VESTIBULE CLI entry point.

Defines the top-level ``vestibule`` command (via Click-Extra), configures
logging for every subcommand, and registers:

- ``vestibule db``: forward-only schema migrations.
- ``vestibule users``: count and list accounts.
- ``vestibule housekeep``: purge expired sessions and spent tokens.

Examples
    $ vestibule --version
    $ vestibule db upgrade
    $ vestibule -v users list --limit 20
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from vestibule import __version__
from vestibule.logging import configure_logging, effective_level, log_startup

from .db import db as db_group
from .helpers import hyperlink
from .helpers.log_level_parser import parse_log_level
from .users import housekeep as housekeep_command
from .users import users as users_group

logger = logging.getLogger(__name__)

APP_NAME = "vestibule"

HELP = """VESTIBULE command-line interface.

    Operator tooling for a VESTIBULE user store: migrate the schema, inspect
    accounts, and purge expired sessions and tokens. The database is taken from
    VESTIBULE_DB_URL.
    """

EPILOG = "\b\n" + "\n".join(
    [
        f"{click.style('See Also:', fg='blue', bold=True, underline=True)}",
        "  SQLAlchemy URLs: "
        + hyperlink("https://docs.sqlalchemy.org/en/20/core/engines.html"),
    ]
)

DEFAULT_LOG_PATH = (
    Path(user_log_dir(APP_NAME, appauthor=False, ensure_exists=True)) / "latest.log"
)


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    default=0,
    help=(
        "Increase the default WARNING verbosity by one level "
        "for each repetition of the option."
    ),
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    default=0,
    help=(
        "Decrease the default WARNING verbosity by one level "
        "for each repetition of the option."
    ),
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug mode (developer formatting and DEBUG output).",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOG_PATH,
    envvar="VESTIBULE_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to.",
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=2000,
    hidden=True,
    envvar="VESTIBULE_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in log records).",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    default=True,
    envvar="VESTIBULE_FLIGHT_RECORDER",
    show_envvar=True,
    help=(
        "Keep the last N log records at DEBUG (regardless of -v/-q) and write "
        "them to --log-path when a WARNING or ERROR occurs, or on exit with "
        "--force-flush."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush",
    default=False,
    envvar="VESTIBULE_FORCE_FLUSH",
    show_default=True,
    show_envvar=True,
    help="Always write the flight recorder to --log-path on exit.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    envvar="VESTIBULE_LOGGER_LEVELS",
    show_envvar=True,
    default=("sqlalchemy=WARNING", "alembic=WARNING"),
    show_default=True,
    help=(
        "Set the minimum LEVEL of logger NAME (NAME=LEVEL). Applies to both "
        "console and flight recorder. Repeatable, e.g. -L sqlalchemy.engine=INFO."
    ),
)
@clickx.pass_context
def vestibule(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush: bool,
    logger_levels: dict[str, int],
) -> None:
    """VESTIBULE command-line interface."""
    setup = configure_logging(
        level=effective_level(verbose_count, quiet_count),
        debug_mode=debug,
        color=ctx.color is not False,  # None means "auto"
        log_path=log_path if flight_recorder else None,
        flight_capacity=flight_recorder_capacity,
        force_flush=force_flush,
        logger_levels=logger_levels,
    )
    log_startup(logger, setup, app_version=__version__)

    # runs after the subcommand returns
    ctx.call_on_close(logging.shutdown)


vestibule.add_command(db_group)
vestibule.add_command(users_group)
vestibule.add_command(housekeep_command)
