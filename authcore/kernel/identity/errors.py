"""
Error taxonomy for registration, login and token handling.

Every error carries a machine-readable kind, an HTTP-equivalent status code
and, where the user can correct it, the offending field. Messages are safe
to show to the caller; internal detail is only ever logged.
"""

from datetime import datetime, timezone
from typing import List, Optional

from authcore.schemas.common import ErrorResponse, FieldError


class AuthError(Exception):
    """Base class for errors surfaced by the authentication core."""

    kind: str = "auth_error"
    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def field_errors(self) -> List[FieldError]:
        if self.field is None:
            return []
        return [FieldError(field=self.field, message=self.message)]

    def to_response(self) -> ErrorResponse:
        """Caller-facing payload for the transport layer."""
        return ErrorResponse(
            status=self.status_code,
            kind=self.kind,
            message=self.message,
            errors=self.field_errors(),
            timestamp=datetime.now(timezone.utc),
        )


class InputValidationError(AuthError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[FieldError]):
        super().__init__()
        self.errors = errors

    def field_errors(self) -> List[FieldError]:
        return list(self.errors)


class WeakPasswordError(AuthError):
    """Password does not satisfy the strength policy."""

    kind = "weak_password"
    status_code = 400

    TOO_COMMON = "too_common"
    TOO_SHORT = "too_short"
    MISSING_CHARACTER_CLASS = "missing_character_class"

    def __init__(self, reason: str, message: str):
        super().__init__(message, field="password")
        self.reason = reason


class PasswordMismatchError(AuthError):
    """Password and confirmation differ."""

    kind = "password_mismatch"
    status_code = 400
    default_message = "Password and confirmation do not match"

    def __init__(self):
        super().__init__(field="confirmation")


class DuplicateEmailError(AuthError):
    """An account already exists for this email (case-insensitive)."""

    kind = "duplicate_email"
    status_code = 409

    def __init__(self, email: str):
        super().__init__(f"Email {email} is already registered", field="email")
        self.email = email


class CredentialInvalidError(AuthError):
    """
    Login failed on credentials.

    Deliberately identical for unknown email and wrong password.
    """

    kind = "invalid_credentials"
    status_code = 401
    default_message = "Invalid credentials"


class AccountStatusDeniedError(AuthError):
    """Account exists but its status forbids login."""

    kind = "account_status_denied"

    def __init__(self, status: str, status_code: int, message: str):
        super().__init__(message)
        self.status = status
        self.status_code = status_code


class ThrottleDeniedError(AuthError):
    """Login refused by the brute-force or rate-limit throttle."""

    kind = "throttled"
    status_code = 429

    def __init__(self, retry_after_seconds: int = 0, message: Optional[str] = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AccountLockedError(ThrottleDeniedError):
    """Too many failed logins for one account."""

    kind = "account_locked"
    status_code = 423
    default_message = "Account temporarily locked. Please try again later."


class RateLimitedError(ThrottleDeniedError):
    """Too many login attempts from one origin address."""

    kind = "rate_limited"
    status_code = 429
    default_message = "Too many requests. Please slow down."


class InvalidTokenError(AuthError):
    """Bearer token failed signature, structure, subject or expiry checks."""

    kind = "invalid_token"
    status_code = 401
    default_message = "Invalid token"


class InfrastructureError(AuthError):
    """Store or hashing backend failure; detail is logged, never returned."""

    kind = "infrastructure_error"
    status_code = 500
    default_message = "An unexpected error occurred. Please try again later."

    def __init__(self):
        super().__init__()
