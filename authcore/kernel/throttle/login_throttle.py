"""
Login throttle: per-account lockout and per-address rate limiting.

Per account:  OPEN -> WARNING (failures under threshold) -> LOCKED.
              A success resets to OPEN; the lock expires on its own.
Per address:  a rolling window of attempts (successful or not). Once the
              window is full further attempts are refused until it rolls.

Both must pass for a login to proceed.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from authcore.config import ThrottleConfig
from authcore.kernel.events.audit_trail import AuditEntry, AuditTrail
from authcore.kernel.identity.account_store import normalize_email
from authcore.kernel.identity.errors import (
    AccountLockedError,
    RateLimitedError,
    ThrottleDeniedError,
)
from authcore.kernel.models.audit_event import AuditEventKind
from authcore.kernel.throttle.counters import InMemoryCounterStore
from authcore.logging_config import get_logger

logger = get_logger(__name__)


class ThrottleState(str, Enum):
    OPEN = "open"
    WARNING = "warning"
    LOCKED = "locked"
    RATE_LIMITED = "rate_limited"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ThrottleDecision:
    """Result of consulting or updating the throttle."""

    state: ThrottleState
    failures: int = 0
    retry_after_seconds: int = 0

    @property
    def allowed(self) -> bool:
        return self.state not in (ThrottleState.LOCKED, ThrottleState.RATE_LIMITED)

    def error(self) -> Optional[ThrottleDeniedError]:
        if self.state == ThrottleState.LOCKED:
            return AccountLockedError(self.retry_after_seconds)
        if self.state == ThrottleState.RATE_LIMITED:
            return RateLimitedError(self.retry_after_seconds)
        return None


class LoginThrottle:
    """Tracks failed attempts per account and attempts per origin address."""

    def __init__(
        self,
        config: ThrottleConfig,
        audit_trail: AuditTrail,
        store: Optional[InMemoryCounterStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.audit_trail = audit_trail
        self.store = store or InMemoryCounterStore()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_cleanup: Optional[datetime] = None

    @staticmethod
    def _account_key(email: str) -> str:
        return f"account:{normalize_email(email)}"

    @staticmethod
    def _address_key(origin_address: str) -> str:
        return f"origin:{origin_address}"

    async def check(
        self,
        email: str,
        origin_address: str,
        client_label: Optional[str] = None,
    ) -> ThrottleDecision:
        """
        Consult the throttle before a login attempt.

        Counts the attempt against the origin address, then checks whether
        the account is locked. A denied attempt does not reach the credential
        store.
        """
        now = self._clock()
        await self._cleanup_if_due(now)

        hit = await self.store.hit(
            self._address_key(origin_address),
            now,
            limit=self.config.max_attempts_per_address,
            window_seconds=self.config.address_window_seconds,
        )
        if not hit.allowed:
            logger.warning(
                "Login rate limited for origin address",
                extra={"attempts": hit.count, "retry_after": hit.retry_after_seconds},
            )
            if hit.first_denial:
                await self.audit_trail.record(AuditEntry(
                    event_kind=AuditEventKind.RATE_LIMIT_EXCEEDED,
                    email=email,
                    origin_address=origin_address,
                    client_label=client_label,
                    trigger=self.config.rate_limit_trigger,
                ))
            return ThrottleDecision(ThrottleState.RATE_LIMITED, retry_after_seconds=hit.retry_after_seconds)

        counter = await self.store.get(
            self._account_key(email), now, window_seconds=self.config.account_window_seconds
        )
        if counter.is_locked(now):
            remaining = int((counter.locked_until - now).total_seconds()) + 1
            logger.warning(
                "Login attempt on locked account",
                extra={"retry_after": remaining},
            )
            return ThrottleDecision(ThrottleState.LOCKED, counter.failures, remaining)

        state = ThrottleState.WARNING if counter.failures else ThrottleState.OPEN
        return ThrottleDecision(state, counter.failures)

    async def record_attempt(
        self,
        email: str,
        origin_address: str,
        outcome: AttemptOutcome,
        client_label: Optional[str] = None,
        account_id: Optional[uuid.UUID] = None,
    ) -> ThrottleDecision:
        """
        Report the outcome of a login attempt that passed check().

        A failure may lock the account; the transition is audited with the
        trigger and lockout duration. A success resets the account counter
        but leaves the address window alone.
        """
        key = self._account_key(email)

        if outcome == AttemptOutcome.SUCCESS:
            await self.store.reset(key)
            return ThrottleDecision(ThrottleState.OPEN)

        now = self._clock()
        result = await self.store.add_failure(
            key,
            now,
            threshold=self.config.max_failed_attempts,
            window_seconds=self.config.account_window_seconds,
            lock_seconds=self.config.lockout_minutes * 60,
        )
        counter = result.counter

        if result.locked_now:
            logger.warning(
                "Account locked after repeated failed logins",
                extra={
                    "failures": counter.failures,
                    "lockout_minutes": self.config.lockout_minutes,
                },
            )
            await self.audit_trail.record(AuditEntry(
                event_kind=AuditEventKind.ACCOUNT_LOCKOUT,
                email=email,
                account_id=account_id,
                origin_address=origin_address,
                client_label=client_label,
                lockout_minutes=self.config.lockout_minutes,
                trigger=self.config.lockout_trigger,
            ))

        if counter.is_locked(now):
            remaining = int((counter.locked_until - now).total_seconds())
            return ThrottleDecision(ThrottleState.LOCKED, counter.failures, remaining)
        return ThrottleDecision(ThrottleState.WARNING, counter.failures)

    async def _cleanup_if_due(self, now: datetime) -> None:
        """Sweep idle counters, at most once per cleanup interval."""
        if self._last_cleanup is not None and (
            (now - self._last_cleanup).total_seconds() < self.config.cleanup_interval_seconds
        ):
            return
        self._last_cleanup = now
        max_age = max(self.config.account_window_seconds, self.config.address_window_seconds)
        removed = await self.store.cleanup_old(now, max_age_seconds=max_age)
        if removed:
            logger.debug("Throttle cleanup removed %d idle entries", removed)

    async def state(self, email: str) -> ThrottleState:
        """Current account-level state."""
        now = self._clock()
        counter = await self.store.get(
            self._account_key(email), now, window_seconds=self.config.account_window_seconds
        )
        if counter.is_locked(now):
            return ThrottleState.LOCKED
        return ThrottleState.WARNING if counter.failures else ThrottleState.OPEN

    async def unlock(self, email: str) -> None:
        """Clear an account's failures and lock."""
        await self.store.reset(self._account_key(email))
        logger.info("Account throttle state cleared")
