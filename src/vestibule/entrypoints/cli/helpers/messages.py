"""Status lines for the VESTIBULE CLI.

Every line goes to stderr so that stdout stays machine-readable (``--json``
output, Alembic scripts). Each kind carries an emoji glyph with an ASCII
fallback for terminals whose encoding cannot represent it.
"""

from enum import Enum

import click


class Kind(Enum):
    """Message kinds as ``(emoji, ascii fallback, colour)``."""

    SUCCESS = ("✅", "[OK]", "green")
    WARNING = ("⚠️", "[!]", "yellow")
    ERROR = ("❌", "[X]", "red")

    @property
    def glyph(self) -> str:
        """The emoji if stderr can encode it, else the ASCII fallback."""
        emoji, fallback, _ = self.value
        return emoji if _encodable(emoji) else fallback

    @property
    def colour(self) -> str:
        return self.value[2]


def _encodable(text: str) -> bool:
    stream = click.get_text_stream("stderr")  # pragma: no mutate
    encoding = getattr(stream, "encoding", None) or "ascii"
    try:
        text.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def _emit(kind: Kind, msg: str) -> None:
    click.secho(f"{kind.glyph}  {msg}", fg=kind.colour, bold=True, err=True)


def success(msg: str) -> None:
    """Print a green success line, e.g. ``✅  Upgrade complete!``."""
    _emit(Kind.SUCCESS, msg)


def warn(msg: str) -> None:
    """Print a yellow warning line, e.g. ``⚠️  This will modify your database.``."""
    _emit(Kind.WARNING, msg)


def error(msg: str) -> None:
    """Print a red error line, e.g. ``❌  Cannot connect to database``."""
    _emit(Kind.ERROR, msg)
