"""CLI helpers for VESTIBULE.

Database URL resolution and redaction, OSC-8 terminal hyperlinks when
supported, logger-level option parsing, and message emitters that write to
stderr with emoji to ASCII fallbacks.
"""

from .db_url import require_db_url, sanitize_url
from .hyperlinks import hyperlink
from .log_level_parser import parse_log_level
from .messages import error, success, warn

__all__ = [
    "error",
    "hyperlink",
    "parse_log_level",
    "require_db_url",
    "sanitize_url",
    "success",
    "warn",
]
