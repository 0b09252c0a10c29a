"""Parsing of ``-L/--logger-level NAME=LEVEL`` options.

Values may be repeated (``-L a=INFO -L b=DEBUG``) or packed into one string
separated by commas or whitespace, as they arrive from an environment
variable.
"""

import logging
import re

import click

# libraries quieted unless overridden
DEFAULT_LIB_LEVELS = {
    "sqlalchemy": logging.WARNING,
    "alembic": logging.WARNING,
}

_SEPARATORS = re.compile(r"[,\s]+")


def _split_items(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten option values into ``NAME=LEVEL`` items, dropping empties."""
    if value is None:
        return []
    chunks = [value] if isinstance(value, str) else list(value)
    return [item for chunk in chunks for item in _SEPARATORS.split(chunk) if item]


def parse_log_level(
    ctx: click.Context | None,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...] | None,
) -> dict[str, int]:
    """Click callback: merge ``NAME=LEVEL`` items over `DEFAULT_LIB_LEVELS`.

    Returns:
        dict[str, int]: Logger name to numeric level.

    Raises:
        click.BadParameter: On an item without ``=`` or an unknown level name.
    """
    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _split_items(value):
        name, sep, level_name = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        level = logging.getLevelNamesMapping().get(level_name.strip().upper())
        if level is None:
            raise click.BadParameter(f"Invalid log level: {level_name}")
        levels[name.strip()] = level
    return levels
