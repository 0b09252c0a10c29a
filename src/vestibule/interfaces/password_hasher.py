"""Interface for one-way password hashing."""

import abc


class PasswordHasher(abc.ABC):
    """Contract for a salted, one-way password hash."""

    @abc.abstractmethod
    def hash(self, secret: str) -> str:
        """Hash a plain-text secret.

        Args:
            secret: The plain-text password.

        Returns:
            str: An encoded digest that embeds its own salt and parameters.
        """

    @abc.abstractmethod
    def verify(self, secret: str, digest: str) -> bool:
        """Check a plain-text secret against a stored digest.

        Implementations must compare in constant time and return ``False``
        (never raise) for malformed digests.

        Args:
            secret: The candidate plain-text password.
            digest: A digest previously produced by :meth:`hash`.

        Returns:
            bool: ``True`` if the secret matches the digest.
        """
