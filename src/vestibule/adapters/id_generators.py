"""ID and token generators for VESTIBULE."""

import secrets
import threading
import uuid

from ulid import monotonic

from vestibule.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods

DEFAULT_TOKEN_BYTES = 32


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator.

    ULIDs are unique, lexicographically sortable identifiers, so ordering user
    ids as strings orders users by creation time. This generator uses the
    `ulid-py` library to create ULIDs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class UUIDv4Generator(IdGenerator):
    """UUIDv4 generator.

    UUIDv4 identifiers are random and carry no ordering. Users listed by a
    backend using this generator are still returned in a stable order, just not
    creation order.
    """

    def new_id(self) -> str:
        """Generate a new UUID."""
        return str(uuid.uuid4())


class SecureTokenGenerator(IdGenerator):
    """Unguessable, URL-safe tokens for sessions and single-use links.

    Uses :func:`secrets.token_urlsafe`; the output is safe to embed in URL path
    segments without escaping.
    """

    def __init__(self, nbytes: int = DEFAULT_TOKEN_BYTES) -> None:
        self._nbytes = nbytes

    def new_id(self) -> str:
        """Generate a new random token."""
        return secrets.token_urlsafe(self._nbytes)


class SimpleIdGenerator(IdGenerator):
    """A simple ID generator that produces sequential, zero-padded IDs.

    Note:
        Not suitable for production use; primarily for testing and demos.
    """

    def __init__(self, length: int = 26) -> None:
        self._lock = threading.Lock()
        self._counter = 0
        self._length = length

    def new_id(self) -> str:
        """Generate a new unique identifier."""
        with self._lock:
            self._counter += 1
            return f"{self._counter:0{self._length}d}"
