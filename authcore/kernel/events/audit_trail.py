"""
Append-only audit trail for authentication events.

Every record carries an integrity digest so that later alteration of a
stored row can be detected by recomputing it. This is tamper-evidence,
not protection against a compromised store.

A failed write never fails the login or registration that triggered it:
the event goes to the fallback logger instead and operators are alerted
through that channel.
"""

import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel
from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.kernel.models.audit_event import AuditEvent, AuditEventKind
from authcore.logging_config import get_logger

logger = get_logger(__name__)
fallback_logger = get_logger("authcore.audit.fallback")


class AuditEntry(BaseModel):
    """What the caller knows about an event; timestamp and digest are added on record."""

    event_kind: AuditEventKind
    email: str
    account_id: Optional[uuid.UUID] = None
    origin_address: Optional[str] = None
    client_label: Optional[str] = None
    failure_reason: Optional[str] = None
    lockout_minutes: Optional[int] = None
    trigger: Optional[str] = None


def _canonical_timestamp(ts: datetime) -> str:
    # SQLite hands back naive datetimes; they are stored as UTC
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _field(value) -> str:
    if value is None:
        return ""
    return value.value if hasattr(value, "value") else str(value)


def compute_integrity_digest(
    *,
    email: str,
    event_kind,
    timestamp: datetime,
    failure_reason: Optional[str] = None,
    trigger: Optional[str] = None,
    account_id: Optional[uuid.UUID] = None,
    origin_address: Optional[str] = None,
    client_label: Optional[str] = None,
    lockout_minutes: Optional[int] = None,
) -> str:
    """SHA-256 hex digest over the canonical form of an event's semantic content."""
    canonical = "|".join([
        _field(email),
        _field(event_kind),
        _field(failure_reason),
        _field(trigger),
        _field(account_id),
        _field(origin_address),
        _field(client_label),
        _field(lockout_minutes),
        _canonical_timestamp(timestamp),
    ])
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _digest_of(event: AuditEvent) -> str:
    return compute_integrity_digest(
        email=event.email,
        event_kind=event.event_kind,
        timestamp=event.timestamp,
        failure_reason=event.failure_reason,
        trigger=event.trigger,
        account_id=event.account_id,
        origin_address=event.origin_address,
        client_label=event.client_label,
        lockout_minutes=event.lockout_minutes,
    )


class AuditTrail:
    """
    Service for the immutable authentication audit log.

    Usage:
        audit = AuditTrail(session_factory)
        await audit.record(AuditEntry(
            event_kind=AuditEventKind.LOGIN_FAILURE,
            email=email,
            origin_address=origin,
            failure_reason=FailureReason.USER_NOT_FOUND.value,
        ))
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_factory = session_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.degraded_writes = 0

    async def record(self, entry: AuditEntry) -> Optional[AuditEvent]:
        """
        Append an event. Each record is committed in its own session.

        Returns:
            The stored AuditEvent, or None if the store was unavailable
            and the event went to the fallback logger
        """
        timestamp = self._clock()
        event = AuditEvent(
            account_id=entry.account_id,
            email=entry.email,
            origin_address=entry.origin_address,
            client_label=entry.client_label,
            timestamp=timestamp,
            event_kind=entry.event_kind.value,
            failure_reason=entry.failure_reason,
            lockout_minutes=entry.lockout_minutes,
            trigger=entry.trigger,
            integrity_digest=compute_integrity_digest(
                email=entry.email,
                event_kind=entry.event_kind,
                timestamp=timestamp,
                failure_reason=entry.failure_reason,
                trigger=entry.trigger,
                account_id=entry.account_id,
                origin_address=entry.origin_address,
                client_label=entry.client_label,
                lockout_minutes=entry.lockout_minutes,
            ),
        )

        try:
            async with self.session_factory() as session:
                session.add(event)
                await session.commit()
        except SQLAlchemyError:
            self.degraded_writes += 1
            fallback_logger.error(
                "Audit store unavailable, event written to fallback log",
                exc_info=True,
                extra={
                    "audit_event_kind": entry.event_kind.value,
                    "audit_email": entry.email,
                    "audit_account_id": str(entry.account_id) if entry.account_id else None,
                    "audit_origin_address": entry.origin_address,
                    "audit_client_label": entry.client_label,
                    "audit_failure_reason": entry.failure_reason,
                    "audit_lockout_minutes": entry.lockout_minutes,
                    "audit_trigger": entry.trigger,
                    "audit_timestamp": _canonical_timestamp(timestamp),
                    "audit_integrity_digest": event.integrity_digest,
                },
            )
            return None

        logger.debug("Audit event recorded: %s", entry.event_kind.value)
        return event

    @staticmethod
    def verify(event: AuditEvent) -> bool:
        """Recompute the digest of a stored event and compare."""
        return hmac.compare_digest(_digest_of(event), event.integrity_digest)

    async def events_for_email(
        self,
        email: str,
        event_kinds: Optional[List[AuditEventKind]] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """
        Get events recorded for an email, oldest first.

        Matching is case-insensitive because failures store the email as supplied.
        """
        query = select(AuditEvent).where(func.lower(AuditEvent.email) == email.strip().lower())
        if event_kinds:
            query = query.where(AuditEvent.event_kind.in_([k.value for k in event_kinds]))
        query = query.order_by(AuditEvent.id).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def recent(self, limit: int = 100) -> List[AuditEvent]:
        """Most recent events, newest first."""
        query = select(AuditEvent).order_by(desc(AuditEvent.id)).limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())
