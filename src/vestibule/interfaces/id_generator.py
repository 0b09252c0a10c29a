"""Interface for identifier and token generators.

The same contract mints user ids (sortable, not secret) and session/token
strings (unguessable, URL-safe); backends receive one generator for each.
"""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Contract for a unique string generator."""

    @abc.abstractmethod
    def new_id(self) -> str:
        """Return a new string never returned before by this generator."""
