"""Logging setup for the VESTIBULE CLI.

Library code only ever calls ``logging.getLogger(__name__)``; handlers are
installed here, by the CLI, through `configure_logging`:

- a Rich console handler on stderr whose level follows ``-v``/``-q``,
- an optional in-memory "flight recorder" that keeps the last N records at
  DEBUG and writes them to a file once a WARNING (or worse) shows up,
- per-logger minimum levels used to quiet chatty libraries.

Records from loggers outside the ``vestibule`` namespace are tagged with a
short ``[library]`` prefix on the console.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from importlib.metadata import version
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import alembic
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "vestibule"

BASE_LEVEL = logging.WARNING
LEVEL_STEP = 10

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


def effective_level(verbose_count: int = 0, quiet_count: int = 0) -> int:
    """Turn ``-v``/``-q`` repetitions into a console level.

    Each ``-v`` lowers the WARNING default by one step, each ``-q`` raises it;
    the result is clamped to DEBUG..CRITICAL.
    """
    level = BASE_LEVEL - LEVEL_STEP * verbose_count + LEVEL_STEP * quiet_count
    return max(logging.DEBUG, min(logging.CRITICAL, level))


class ThirdPartyPrefixFilter(logging.Filter):
    """Set ``record.prefix`` to ``[library]`` for non-project records.

    Project records get an empty prefix. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == PROJECT_PREFIX or record.name.startswith(
            PROJECT_PREFIX + "."
        ):
            record.prefix = ""
        else:
            # "sqlalchemy.engine.Engine" -> "[sqlalchemy]"
            record.prefix = f"[{record.name.split('.')[0]}]"
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr console handler.

    Args:
        level: Minimum level shown (forced to DEBUG in debug mode).
        debug_mode: Show timestamps, logger names and source paths instead
            of the short library prefix.
        color: Disable to match click-extra's ``--no-color``.

    Returns:
        RichHandler: Handler ready to attach to the root logger.
    """
    color_system: ColorSystem | None = "auto" if color else None
    console = Console(color_system=color_system, stderr=True)

    if debug_mode:
        level = logging.DEBUG

    handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )

    if debug_mode:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())

    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Build the flight recorder.

    Buffers up to `capacity` records in memory and writes them to `path` when
    a record at `flush_level` or above arrives, or on close when
    `flush_on_close` is set. The file is opened lazily, so nothing is written
    for a quiet run.
    """
    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8", delay=True)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(process)d:%(threadName)s] "
            "%(levelname)s %(name)s:%(lineno)d: %(message)s"
        )
    )

    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=file_handler,
        flushOnClose=flush_on_close,
    )


@dataclass(frozen=True)
class LoggingSetup:
    """What `configure_logging` installed; fed to `log_startup`."""

    level: int
    handlers: list[logging.Handler]
    logger_levels: dict[str, int] = field(default_factory=dict)
    log_path: Path | None = None
    flight_capacity: int | None = None
    force_flush: bool = False

    @property
    def flight_recorder(self) -> bool:
        return self.flight_capacity is not None


def configure_logging(  # pylint: disable=too-many-arguments
    *,
    level: int,
    debug_mode: bool = False,
    color: bool = True,
    log_path: Path | None = None,
    flight_capacity: int = 2000,
    force_flush: bool = False,
    logger_levels: dict[str, int] | None = None,
) -> LoggingSetup:
    """Install the console handler, the optional flight recorder and per-logger levels.

    The root logger is set to DEBUG so that each handler filters on its own.
    Any previous root configuration is replaced.

    Args:
        level: Console level (see `effective_level`).
        debug_mode: Developer formatting on the console.
        color: Colour output on the console.
        log_path: Flight-recorder file; ``None`` disables the recorder.
        flight_capacity: Records kept in memory by the recorder.
        force_flush: Dump the recorder on close even without warnings.
        logger_levels: ``{logger name: minimum level}`` applied to the loggers
            themselves, so they affect every handler.
    """
    handlers: list[logging.Handler] = [
        config_console_handler(level=level, debug_mode=debug_mode, color=color)
    ]
    if log_path is not None:
        handlers.append(
            config_flight_recorder(
                path=log_path, capacity=flight_capacity, flush_on_close=force_flush
            )
        )

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    logger_levels = dict(logger_levels or {})
    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    return LoggingSetup(
        level=level,
        handlers=handlers,
        logger_levels=logger_levels,
        log_path=log_path,
        flight_capacity=flight_capacity if log_path is not None else None,
        force_flush=force_flush,
    )


def log_startup(logger: Logger, setup: LoggingSetup, *, app_version: str) -> None:
    """Log a one-line banner at INFO and environment diagnostics at DEBUG."""
    logger.info(
        "VESTIBULE %s (console=%s, flight-recorder=%s)",
        app_version,
        logging.getLevelName(setup.level),
        "ON" if setup.flight_recorder else "OFF",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("CWD: %s", Path.cwd())
    logger.debug("SQLAlchemy: %s", sqlalchemy.__version__)
    logger.debug("Alembic: %s", alembic.__version__)
    logger.debug("bcrypt: %s", version("bcrypt"))
    logger.debug("Handlers: %s", [type(h).__name__ for h in setup.handlers])
    if setup.flight_recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            setup.log_path,
            setup.flight_capacity,
            setup.force_flush,
        )
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in setup.logger_levels.items()}
        or "<none>",
    )
