"""
Request, result and error schemas.
"""

from authcore.schemas.common import ErrorResponse, FieldError
from authcore.schemas.auth import (
    LoginRequest,
    LoginResult,
    RegistrationRequest,
    RegistrationResult,
    TokenClaims,
    field_errors_from,
)

__all__ = [
    "ErrorResponse",
    "FieldError",
    "LoginRequest",
    "LoginResult",
    "RegistrationRequest",
    "RegistrationResult",
    "TokenClaims",
    "field_errors_from",
]
