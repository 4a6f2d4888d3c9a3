"""Integration tests for the audit trail."""

import logging
from unittest.mock import MagicMock

from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from authcore.kernel.events.audit_trail import AuditEntry, AuditTrail, compute_integrity_digest
from authcore.kernel.models.audit_event import AuditEvent, AuditEventKind, FailureReason


def _failure(email: str = "john.doe@example.com", reason: str = FailureReason.INVALID_CREDENTIALS.value):
    return AuditEntry(
        event_kind=AuditEventKind.LOGIN_FAILURE,
        email=email,
        origin_address="203.0.113.7",
        client_label="pytest-agent",
        failure_reason=reason,
    )


class TestAuditRecord:
    
    async def test_record_sets_timestamp_and_digest(self, audit_trail, clock):
        event = await audit_trail.record(_failure())
        
        assert event is not None
        assert event.id is not None
        assert event.timestamp == clock()
        assert len(event.integrity_digest) == 64
        assert AuditTrail.verify(event) is True
    
    async def test_stored_event_verifies(self, audit_trail):
        await audit_trail.record(_failure())
        
        [stored] = await audit_trail.events_for_email("john.doe@example.com")
        
        assert stored.kind_value == "LOGIN_FAILURE"
        assert stored.failure_reason == "invalid_credentials"
        assert AuditTrail.verify(stored) is True
    
    async def test_tampering_detected(self, audit_trail, session_factory):
        event = await audit_trail.record(_failure(reason=FailureReason.USER_NOT_FOUND.value))
        
        async with session_factory() as session:
            await session.execute(
                update(AuditEvent)
                .where(AuditEvent.id == event.id)
                .values(failure_reason=FailureReason.INVALID_CREDENTIALS.value)
            )
            await session.commit()
        
        [stored] = await audit_trail.events_for_email("john.doe@example.com")
        assert AuditTrail.verify(stored) is False
    
    async def test_digest_covers_timestamp(self, clock):
        first = compute_integrity_digest(email="a@example.com", event_kind="LOGIN_SUCCESS", timestamp=clock())
        clock.advance(microseconds=1)
        second = compute_integrity_digest(email="a@example.com", event_kind="LOGIN_SUCCESS", timestamp=clock())
        
        assert first != second
    
    async def test_enum_and_string_kinds_digest_alike(self, clock):
        as_enum = compute_integrity_digest(
            email="a@example.com", event_kind=AuditEventKind.LOGIN_SUCCESS, timestamp=clock()
        )
        as_str = compute_integrity_digest(
            email="a@example.com", event_kind="LOGIN_SUCCESS", timestamp=clock()
        )
        
        assert as_enum == as_str


class TestAuditQueries:
    
    async def test_events_for_email_case_insensitive_and_ordered(self, audit_trail, clock):
        await audit_trail.record(_failure("John.Doe@Example.com", FailureReason.USER_NOT_FOUND.value))
        clock.advance(seconds=1)
        await audit_trail.record(_failure("john.doe@example.com"))
        await audit_trail.record(_failure("jane.roe@example.com"))
        
        events = await audit_trail.events_for_email("JOHN.DOE@EXAMPLE.COM")
        
        assert [e.failure_reason for e in events] == ["user_not_found", "invalid_credentials"]
    
    async def test_filter_by_kind(self, audit_trail):
        await audit_trail.record(_failure())
        await audit_trail.record(AuditEntry(
            event_kind=AuditEventKind.ACCOUNT_LOCKOUT,
            email="john.doe@example.com",
            lockout_minutes=30,
            trigger="3_failed_logins",
        ))
        
        [lockout] = await audit_trail.events_for_email(
            "john.doe@example.com", event_kinds=[AuditEventKind.ACCOUNT_LOCKOUT]
        )
        
        assert lockout.lockout_minutes == 30
        assert lockout.trigger == "3_failed_logins"
    
    async def test_recent_newest_first(self, audit_trail):
        for email in ("a@example.com", "b@example.com", "c@example.com"):
            await audit_trail.record(_failure(email))
        
        events = await audit_trail.recent(limit=2)
        
        assert [e.email for e in events] == ["c@example.com", "b@example.com"]


class TestAuditDegradation:
    """A broken store never raises into the caller."""
    
    async def test_store_failure_goes_to_fallback_log(self, session_factory, clock, caplog):
        broken = MagicMock(side_effect=OperationalError("INSERT", {}, Exception("database is locked")))
        trail = AuditTrail(broken, clock=clock)
        caplog.set_level(logging.ERROR, logger="authcore.audit.fallback")
        
        result = await trail.record(_failure())
        
        assert result is None
        assert trail.degraded_writes == 1
        fallback = [r for r in caplog.records if r.name == "authcore.audit.fallback"]
        assert len(fallback) == 1
        assert fallback[0].audit_event_kind == "LOGIN_FAILURE"
        assert fallback[0].audit_failure_reason == "invalid_credentials"
        assert len(fallback[0].audit_integrity_digest) == 64
