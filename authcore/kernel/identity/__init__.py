"""
Identity Core - credentials, tokens and account status.

AuthCore itself lives in authcore.kernel.identity.auth_service and is
re-exported from the top-level package.
"""

from authcore.kernel.identity.account_store import AccountStore, normalize_email
from authcore.kernel.identity.errors import (
    AccountLockedError,
    AccountStatusDeniedError,
    AuthError,
    CredentialInvalidError,
    DuplicateEmailError,
    InfrastructureError,
    InputValidationError,
    InvalidTokenError,
    PasswordMismatchError,
    RateLimitedError,
    ThrottleDeniedError,
    WeakPasswordError,
)
from authcore.kernel.identity.jwt import IssuedToken, TokenIssuer
from authcore.kernel.identity.password import PasswordHasher
from authcore.kernel.identity.password_policy import PasswordPolicy, PolicyResult
from authcore.kernel.identity.status_gate import AccountStatusGate, StatusDecision

__all__ = [
    "AccountStore",
    "normalize_email",
    "AccountLockedError",
    "AccountStatusDeniedError",
    "AuthError",
    "CredentialInvalidError",
    "DuplicateEmailError",
    "InfrastructureError",
    "InputValidationError",
    "InvalidTokenError",
    "PasswordMismatchError",
    "RateLimitedError",
    "ThrottleDeniedError",
    "WeakPasswordError",
    "IssuedToken",
    "TokenIssuer",
    "PasswordHasher",
    "PasswordPolicy",
    "PolicyResult",
    "AccountStatusGate",
    "StatusDecision",
]
