"""bcrypt-backed password hasher."""

import bcrypt

from vestibule.interfaces.password_hasher import PasswordHasher

ENCODING = "utf-8"
DEFAULT_ROUNDS = 12


class BcryptPasswordHasher(PasswordHasher):
    """Salted bcrypt hashes with a configurable work factor.

    bcrypt only considers the first 72 bytes of a secret; longer secrets are
    truncated to that length on both hashing and verification.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, secret: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(secret), salt).decode(ENCODING)

    def verify(self, secret: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(self._encode(secret), digest.encode(ENCODING))
        except ValueError:  # malformed digest / salt
            return False

    @staticmethod
    def _encode(secret: str) -> bytes:
        return secret.encode(ENCODING)[:72]
