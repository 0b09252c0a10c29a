"""OSC-8 terminal hyperlinks with a plain-text fallback."""

import os
import sys
from typing import TextIO

# TERM_PROGRAM values of terminals known to render OSC-8 links
OSC8_TERMINAL_PROGRAMS = frozenset(
    {"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"}
)
OSC8_TERM_PREFIXES = ("alacritty", "konsole")


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Best-effort guess whether `stream` (default stdout) renders OSC-8 links.

    Never true for a stream that is not a TTY. Otherwise decided from
    ``TERM_PROGRAM``, ``TERM``, and the Windows Terminal / VTE markers.
    """
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False
    if (os.getenv("TERM_PROGRAM") or "").lower() in OSC8_TERMINAL_PROGRAMS:
        return True
    if os.getenv("WT_SESSION") or os.getenv("VTE_VERSION"):
        return True
    return os.getenv("TERM", "").startswith(OSC8_TERM_PREFIXES)


def hyperlink(url: str, label: str | None = None) -> str:
    """Render `url` as a clickable link, or as `label`/`url` text when unsupported."""
    text = label or url
    if not supports_osc8():
        return url if label is None else f"{label} ({url})"
    return f"\x1b]8;;{url}\x07{text}\x1b]8;;\x07"
