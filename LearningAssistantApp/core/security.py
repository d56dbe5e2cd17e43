"""One-way password hashing with a configurable work factor."""

import logging

from werkzeug.security import check_password_hash, generate_password_hash

logger = logging.getLogger(__name__)

DEFAULT_HASH_METHOD = "pbkdf2:sha256:600000"


class PasswordHasher:
    """Hash and verify passwords.

    The method string carries the algorithm and its cost, e.g.
    ``pbkdf2:sha256:600000`` or ``scrypt:32768:8:1``.
    """

    def __init__(self, method: str = DEFAULT_HASH_METHOD, salt_length: int = 16):
        self.method = method
        self.salt_length = salt_length

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Cannot hash an empty password")
        return generate_password_hash(plaintext, method=self.method, salt_length=self.salt_length)

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Constant-time comparison; corrupted or empty stored hashes verify as False."""
        if not plaintext or not hashed or not isinstance(hashed, str):
            return False
        try:
            return check_password_hash(hashed, plaintext)
        except (ValueError, TypeError) as error:
            logger.warning("Stored password hash is malformed: %s", error)
            return False
