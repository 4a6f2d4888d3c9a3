"""
Authentication schemas.

Request models only check shape (present, non-blank, plausible email);
password strength is PasswordPolicy's job.
"""

import re
import uuid
from typing import List

from pydantic import BaseModel, Field, ValidationError, field_validator

from authcore.schemas.common import FieldError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(v: str) -> str:
    v = v.strip()
    if not _EMAIL_RE.match(v):
        raise ValueError("Email must be a valid email address")
    return v


class RegistrationRequest(BaseModel):
    """Account registration request."""
    
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    confirmation: str = Field(..., min_length=1)
    
    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class LoginRequest(BaseModel):
    """Login request. Origin and client label come from the transport."""
    
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    origin_address: str = Field(..., min_length=1, max_length=45)
    client_label: str = Field("", max_length=255)
    
    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class RegistrationResult(BaseModel):
    """Successful registration."""
    
    account_id: uuid.UUID
    email: str
    message: str = "User registered successfully"


class TokenClaims(BaseModel):
    """Claims carried by an access token."""
    
    sub: str  # Account ID
    email: str
    roles: List[str]
    iat: int
    exp: int
    jti: str


class LoginResult(BaseModel):
    """Successful login."""
    
    token: str
    token_type: str = "bearer"
    expires_in: int
    claims: TokenClaims


def field_errors_from(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into field-attributed errors."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=field, message=message))
    return errors
