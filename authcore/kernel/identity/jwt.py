"""
JWT access token issuance and parsing.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from authcore.config import MAX_ACCESS_TOKEN_SECONDS, MIN_SECRET_BYTES
from authcore.kernel.identity.errors import InvalidTokenError
from authcore.schemas.auth import TokenClaims

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# Claims set by the issuer that callers cannot override
RESERVED_CLAIMS = ("sub", "iat", "exp", "jti")


class IssuedToken(BaseModel):
    """A freshly signed token and the claims it carries."""

    token: str
    claims: TokenClaims
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Signs and parses short-lived bearer tokens (HMAC JWT).

    Lifetime is capped at 15 minutes; parse() checks signature, structure
    and subject, while expiry is checked separately by is_expired().
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime_seconds: int = MAX_ACCESS_TOKEN_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if len(secret_key.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(f"Signing secret must be at least {MIN_SECRET_BYTES} bytes")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        if not 0 < lifetime_seconds <= MAX_ACCESS_TOKEN_SECONDS:
            raise ValueError(
                f"Token lifetime must be between 1 and {MAX_ACCESS_TOKEN_SECONDS} seconds"
            )
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock or _utcnow

    def issue(self, subject: str, claims: Dict[str, Any]) -> IssuedToken:
        """
        Create a signed access token.

        Args:
            subject: Account identifier (stringified UUID)
            claims: Caller claims; must include email and roles

        Returns:
            IssuedToken with the compact token and its claims
        """
        now = self._clock().replace(microsecond=0)
        expire = now + timedelta(seconds=self.lifetime_seconds)

        payload = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}
        payload.update({
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": str(uuid.uuid4()),
        })

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(
            token=token,
            claims=TokenClaims.model_validate(payload),
            issued_at=now,
            expires_at=expire,
        )

    def parse(self, token: str) -> TokenClaims:
        """
        Verify the signature and decode the claims.

        Raises:
            InvalidTokenError: bad signature, malformed payload, or a
                subject that is not an account identifier
        """
        if not isinstance(token, str) or not token:
            raise InvalidTokenError("Token is malformed")
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenError("Token signature or structure is invalid") from e

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError("Token claims are malformed") from e

        try:
            uuid.UUID(claims.sub)
        except ValueError as e:
            raise InvalidTokenError("Token subject is not a valid account identifier") from e

        if claims.exp - claims.iat > MAX_ACCESS_TOKEN_SECONDS:
            raise InvalidTokenError("Token lifetime exceeds the allowed maximum")

        return claims

    def is_expired(self, claims: TokenClaims, now: Optional[datetime] = None) -> bool:
        """True once the current time has reached the token's exp."""
        current = now or self._clock()
        return int(current.timestamp()) >= claims.exp

    def validate(self, token: str) -> TokenClaims:
        """Parse a token and reject it if expired."""
        claims = self.parse(token)
        if self.is_expired(claims):
            raise InvalidTokenError("Token has expired")
        return claims
