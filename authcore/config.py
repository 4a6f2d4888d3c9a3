"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.

Nested sections use a double underscore, e.g. ``THROTTLE__LOCKOUT_MINUTES=15``.
"""

from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Hard upper bound on access token lifetime (15 minutes)
MAX_ACCESS_TOKEN_SECONDS = 900

# Shortest HMAC secret accepted for token signing, in bytes
MIN_SECRET_BYTES = 32

COMMON_PASSWORDS = [
    "password1234",
    "iloveyou2020!!",
    "welcome12345!",
    "qwertyuiop123",
    "abc123abc123",
]


class PasswordPolicyConfig(BaseModel):
    """Password strength rules applied at registration."""

    min_length: int = Field(12, ge=1)
    # True rejects a password of exactly min_length characters
    strict_min_length: bool = True
    special_characters: str = "!@#$%^&*()"
    common_passwords: List[str] = Field(default_factory=lambda: list(COMMON_PASSWORDS))

    @field_validator("common_passwords")
    @classmethod
    def lowercase_deny_list(cls, v: List[str]) -> List[str]:
        return [p.lower() for p in v]


class Argon2Config(BaseModel):
    """
    Argon2id parameters.

    Defaults are also the floors: weaker values fail validation.
    """

    salt_length: int = Field(16, ge=16)
    hash_length: int = Field(32, ge=32)
    parallelism: int = Field(2, ge=2)
    memory_cost: int = Field(65536, ge=65536)  # KiB
    time_cost: int = Field(3, ge=3)


class ThrottleConfig(BaseModel):
    """Brute-force and rate-limit thresholds for login."""

    max_failed_attempts: int = Field(3, ge=1)
    account_window_seconds: int = Field(15 * 60, gt=0)
    lockout_minutes: int = Field(30, gt=0)
    max_attempts_per_address: int = Field(10, ge=1)
    address_window_seconds: int = Field(60, gt=0)
    # How often check() sweeps idle counters out of the in-process store
    cleanup_interval_seconds: int = Field(300, gt=0)

    @property
    def lockout_trigger(self) -> str:
        return f"{self.max_failed_attempts}_failed_logins"

    @property
    def rate_limit_trigger(self) -> str:
        if self.address_window_seconds == 60:
            return f"{self.max_attempts_per_address}_attempts_per_minute"
        return f"{self.max_attempts_per_address}_attempts_per_{self.address_window_seconds}s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./authcore.db"

    # Token signing (no default: must come from the environment)
    jwt_secret: SecretStr
    jwt_algorithm: str = "HS256"
    access_token_expire_seconds: int = Field(MAX_ACCESS_TOKEN_SECONDS, gt=0, le=MAX_ACCESS_TOKEN_SECONDS)

    # Policies
    password_policy: PasswordPolicyConfig = Field(default_factory=PasswordPolicyConfig)
    argon2: Argon2Config = Field(default_factory=Argon2Config)
    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    @field_validator("jwt_secret")
    @classmethod
    def validate_secret_length(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value().encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(f"jwt_secret must be at least {MIN_SECRET_BYTES} bytes")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError("jwt_algorithm must be an HMAC algorithm (HS256, HS384, HS512)")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
