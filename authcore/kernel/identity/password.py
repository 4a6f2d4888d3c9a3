"""
Password hashing utilities using Argon2id.
"""

from typing import Optional

from argon2 import PasswordHasher as _Argon2Hasher
from argon2 import Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from authcore.config import Argon2Config


class PasswordHasher:
    """
    Argon2id password hashing service.

    Each call to hash() draws a fresh random salt, so hashing the same
    password twice yields two different digests. Parameters come from
    Argon2Config, whose defaults are also the minimum accepted values.
    """

    def __init__(self, config: Optional[Argon2Config] = None):
        self.config = config or Argon2Config()
        self._hasher = _Argon2Hasher(
            time_cost=self.config.time_cost,
            memory_cost=self.config.memory_cost,
            parallelism=self.config.parallelism,
            hash_len=self.config.hash_length,
            salt_len=self.config.salt_length,
            type=Type.ID,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Args:
            password: Plain text password

        Returns:
            Encoded hash string ($argon2id$...)

        Raises:
            ValueError: If password is empty
            argon2.exceptions.HashingError: If the backend fails
        """
        if not password:
            raise ValueError("Password must be a non-empty string")
        return self._hasher.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Never raises: mismatches and malformed hashes both return False.
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return self._hasher.verify(hashed_password, plain_password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a password hash was made with different parameters.

        Unparseable hashes always need rehashing.
        """
        try:
            return self._hasher.check_needs_rehash(hashed_password)
        except (InvalidHashError, ValueError):
            return True
