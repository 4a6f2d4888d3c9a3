"""
AuthCore: registration and login orchestration.

Sequences the password policy, credential store, hasher, status gate,
throttle, token issuer and audit trail. Component decisions come back as
values; AuthCore turns a denial into the matching AuthError at its public
boundary so the transport layer can render it.
"""

import asyncio
import secrets
import uuid
from datetime import datetime
from typing import Callable, Optional

from argon2.exceptions import HashingError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.config import Settings
from authcore.kernel.events.audit_trail import AuditEntry, AuditTrail
from authcore.kernel.identity.account_store import AccountStore
from authcore.kernel.identity.errors import (
    CredentialInvalidError,
    DuplicateEmailError,
    InfrastructureError,
    InputValidationError,
)
from authcore.kernel.identity.jwt import TokenIssuer
from authcore.kernel.identity.password import PasswordHasher
from authcore.kernel.identity.password_policy import PasswordPolicy
from authcore.kernel.identity.status_gate import AccountStatusGate
from authcore.kernel.models.account import Account, AccountStatus
from authcore.kernel.models.audit_event import AuditEventKind, FailureReason
from authcore.kernel.throttle.login_throttle import AttemptOutcome, LoginThrottle
from authcore.logging_config import bind_origin_address, get_logger
from authcore.schemas.auth import (
    LoginRequest,
    LoginResult,
    RegistrationRequest,
    RegistrationResult,
    TokenClaims,
    field_errors_from,
)

logger = get_logger(__name__)


def _infrastructure_failure(operation: str, exc: Exception) -> InfrastructureError:
    """Log full detail for operators; the caller only sees a generic error."""
    logger.error("Infrastructure failure during %s", operation, exc_info=exc)
    return InfrastructureError()


class AuthCore:
    """
    Authentication orchestrator.

    Each call is an independent unit of work. Argon2 hashing runs on a
    worker thread so it does not stall the event loop.
    """

    def __init__(
        self,
        accounts: AccountStore,
        audit_trail: AuditTrail,
        throttle: LoginThrottle,
        token_issuer: TokenIssuer,
        hasher: Optional[PasswordHasher] = None,
        policy: Optional[PasswordPolicy] = None,
        status_gate: Optional[AccountStatusGate] = None,
    ):
        self.accounts = accounts
        self.audit_trail = audit_trail
        self.throttle = throttle
        self.token_issuer = token_issuer
        self.hasher = hasher or PasswordHasher()
        self.policy = policy or PasswordPolicy()
        self.status_gate = status_gate or AccountStatusGate()
        # Unknown emails are verified against this so both failure paths cost one Argon2 run
        self._dummy_hash = self.hasher.hash(secrets.token_urlsafe(32))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AuthCore":
        """Wire every component from configuration."""
        audit_trail = AuditTrail(session_factory, clock=clock)
        return cls(
            accounts=AccountStore(session_factory),
            audit_trail=audit_trail,
            throttle=LoginThrottle(settings.throttle, audit_trail, clock=clock),
            token_issuer=TokenIssuer(
                settings.jwt_secret.get_secret_value(),
                algorithm=settings.jwt_algorithm,
                lifetime_seconds=settings.access_token_expire_seconds,
                clock=clock,
            ),
            hasher=PasswordHasher(settings.argon2),
            policy=PasswordPolicy(settings.password_policy),
        )

    async def register(self, email: str, password: str, confirmation: str) -> RegistrationResult:
        """
        Register a new account.

        Args:
            email: Email as supplied; stored lowercase
            password: Plain text password
            confirmation: Must equal password exactly

        Returns:
            RegistrationResult with the new account id and normalized email

        Raises:
            InputValidationError: Missing or malformed fields
            WeakPasswordError: Password fails the strength policy
            PasswordMismatchError: Confirmation differs
            DuplicateEmailError: Email already registered (any case)
            InfrastructureError: Store or hashing backend failure
        """
        try:
            request = RegistrationRequest(
                email=email, password=password, confirmation=confirmation
            )
        except ValidationError as e:
            raise InputValidationError(field_errors_from(e)) from e

        policy_result = self.policy.validate(request.password, request.confirmation)
        if not policy_result.ok:
            raise policy_result.error

        try:
            if await self.accounts.exists(request.email):
                raise DuplicateEmailError(request.email)

            password_hash = await asyncio.to_thread(self.hasher.hash, request.password)
            account = await self.accounts.create(request.email, password_hash)
        except (SQLAlchemyError, HashingError) as e:
            raise _infrastructure_failure("registration", e) from e

        await self.audit_trail.record(AuditEntry(
            event_kind=AuditEventKind.ACCOUNT_REGISTERED,
            email=account.email,
            account_id=account.id,
        ))
        logger.info("Account registered", extra={"account_id": str(account.id)})

        return RegistrationResult(account_id=account.id, email=account.email)

    async def login(
        self,
        email: str,
        password: str,
        origin_address: str,
        client_label: str = "",
    ) -> LoginResult:
        """
        Authenticate and issue an access token.

        Unknown email and wrong password fail identically; only the audit
        trail records which one it was.

        Raises:
            InputValidationError: Missing or malformed fields
            AccountLockedError / RateLimitedError: Throttle denied the attempt
            CredentialInvalidError: Unknown email or wrong password
            AccountStatusDeniedError: Account is locked, disabled, suspended or expired
            InfrastructureError: Store failure
        """
        try:
            request = LoginRequest(
                email=email,
                password=password,
                origin_address=origin_address,
                client_label=client_label or "",
            )
        except ValidationError as e:
            raise InputValidationError(field_errors_from(e)) from e

        with bind_origin_address(request.origin_address):
            return await self._login(request)

    async def _login(self, request: LoginRequest) -> LoginResult:
        email = request.email
        origin = request.origin_address
        client = request.client_label or None

        decision = await self.throttle.check(email, origin, client)
        if not decision.allowed:
            raise decision.error()

        try:
            account = await self.accounts.get_by_email(email)
        except SQLAlchemyError as e:
            raise _infrastructure_failure("login", e) from e

        if account is None:
            await asyncio.to_thread(self.hasher.verify, request.password, self._dummy_hash)
            await self._record_failure(request, FailureReason.USER_NOT_FOUND.value)
            await self.throttle.record_attempt(email, origin, AttemptOutcome.FAILURE, client)
            raise CredentialInvalidError()

        status_decision = self.status_gate.check(account.status)
        if not status_decision.allowed:
            await self._record_failure(
                request,
                f"account_{status_decision.status.lower()}",
                account_id=account.id,
            )
            raise status_decision.error()

        valid = await asyncio.to_thread(self.hasher.verify, request.password, account.password_hash)
        if not valid:
            await self._record_failure(
                request, FailureReason.INVALID_CREDENTIALS.value, account_id=account.id
            )
            await self.throttle.record_attempt(email, origin, AttemptOutcome.FAILURE, client, account.id)
            raise CredentialInvalidError()

        await self.throttle.record_attempt(email, origin, AttemptOutcome.SUCCESS, client)
        await self._rehash_if_needed(account, request.password)

        await self.audit_trail.record(AuditEntry(
            event_kind=AuditEventKind.LOGIN_SUCCESS,
            email=account.email,
            account_id=account.id,
            origin_address=origin,
            client_label=client,
        ))

        issued = self.token_issuer.issue(
            str(account.id),
            {"email": account.email, "roles": [account.role_value]},
        )
        logger.info("Login succeeded", extra={"account_id": str(account.id)})

        return LoginResult(
            token=issued.token,
            expires_in=issued.expires_in,
            claims=issued.claims,
        )

    async def _record_failure(
        self,
        request: LoginRequest,
        reason: str,
        account_id: Optional[uuid.UUID] = None,
    ) -> None:
        logger.info("Login failed", extra={"failure_reason": reason})
        await self.audit_trail.record(AuditEntry(
            event_kind=AuditEventKind.LOGIN_FAILURE,
            email=request.email,
            account_id=account_id,
            origin_address=request.origin_address,
            client_label=request.client_label or None,
            failure_reason=reason,
        ))

    async def _rehash_if_needed(self, account: Account, password: str) -> None:
        """Upgrade a stored hash made with older Argon2 parameters."""
        if not self.hasher.needs_rehash(account.password_hash):
            return
        try:
            new_hash = await asyncio.to_thread(self.hasher.hash, password)
            await self.accounts.update_password_hash(account.id, new_hash)
        except (SQLAlchemyError, HashingError):
            # Login already succeeded; the old hash stays valid until next time
            logger.warning("Password rehash failed", exc_info=True,
                           extra={"account_id": str(account.id)})
            return
        logger.info("Password hash upgraded", extra={"account_id": str(account.id)})

    def verify_token(self, token: str) -> TokenClaims:
        """
        Validate a bearer token.

        Raises:
            InvalidTokenError: Bad signature, malformed, wrong subject, or expired
        """
        return self.token_issuer.validate(token)

    async def change_status(self, email: str, status: AccountStatus) -> Optional[Account]:
        """
        Administrative status change.

        Reactivating an account also clears its throttle lock.

        Returns:
            The updated account, or None if no account has this email
        """
        status = AccountStatus(status)
        try:
            account = await self.accounts.get_by_email(email)
            if account is None:
                return None
            await self.accounts.set_status(account.id, status)
        except SQLAlchemyError as e:
            raise _infrastructure_failure("status change", e) from e

        previous = account.status_value
        account.status = status
        if status == AccountStatus.ACTIVE:
            await self.throttle.unlock(account.email)

        await self.audit_trail.record(AuditEntry(
            event_kind=AuditEventKind.ACCOUNT_STATUS_CHANGED,
            email=account.email,
            account_id=account.id,
            trigger=f"{previous.lower()}_to_{status.value.lower()}",
        ))
        logger.info(
            "Account status changed",
            extra={"account_id": str(account.id), "status": status.value},
        )
        return account
