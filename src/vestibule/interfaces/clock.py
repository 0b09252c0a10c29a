"""Interface for time sources.

Session and token expiry is always evaluated against an injected clock so
backends never read wall-clock time directly.
"""

import abc
from datetime import datetime

# pylint: disable=too-few-public-methods


class Clock(abc.ABC):
    """Contract for a time source."""

    @abc.abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
