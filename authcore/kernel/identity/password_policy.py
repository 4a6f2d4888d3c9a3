"""
Password strength policy applied at registration.
"""

import re
from dataclasses import dataclass
from typing import Optional

from authcore.config import PasswordPolicyConfig
from authcore.kernel.identity.errors import (
    AuthError,
    PasswordMismatchError,
    WeakPasswordError,
)

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")


@dataclass(frozen=True)
class PolicyResult:
    """Outcome of a policy check; error is None when the password passes."""

    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PasswordPolicy:
    """
    Validates password strength and confirmation equality.

    Checks run in a fixed order and the first failure wins:
    deny-list, length, character classes, confirmation.
    """

    def __init__(self, config: Optional[PasswordPolicyConfig] = None):
        self.config = config or PasswordPolicyConfig()
        self._common = frozenset(self.config.common_passwords)
        self._special = re.compile("[" + re.escape(self.config.special_characters) + "]")

    def is_too_short(self, password: str) -> bool:
        min_len = self.config.min_length
        if self.config.strict_min_length:
            return len(password) <= min_len
        return len(password) < min_len

    def missing_character_class(self, password: str) -> bool:
        return not (
            _UPPER.search(password)
            and _LOWER.search(password)
            and _DIGIT.search(password)
            and self._special.search(password)
        )

    def validate(self, password: str, confirmation: str) -> PolicyResult:
        """Check password strength, then that confirmation matches exactly."""
        if password.lower() in self._common:
            return PolicyResult(WeakPasswordError(
                WeakPasswordError.TOO_COMMON,
                "Password is too common",
            ))

        if self.is_too_short(password):
            bound = "longer than" if self.config.strict_min_length else "at least"
            return PolicyResult(WeakPasswordError(
                WeakPasswordError.TOO_SHORT,
                f"Password must be {bound} {self.config.min_length} characters",
            ))

        if self.missing_character_class(password):
            return PolicyResult(WeakPasswordError(
                WeakPasswordError.MISSING_CHARACTER_CLASS,
                "Password must contain at least one uppercase letter, one lowercase "
                f"letter, one digit and one of {self.config.special_characters}",
            ))

        if password != confirmation:
            return PolicyResult(PasswordMismatchError())

        return PolicyResult()
