"""
Immutable audit events for authentication activity.

This table is append-only: rows are inserted once and never updated.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from authcore.kernel.models.base import Base


class AuditEventKind(str, Enum):
    """All event kinds recorded by the audit trail."""
    
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    ACCOUNT_LOCKOUT = "ACCOUNT_LOCKOUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    ACCOUNT_REGISTERED = "ACCOUNT_REGISTERED"
    ACCOUNT_STATUS_CHANGED = "ACCOUNT_STATUS_CHANGED"


class FailureReason(str, Enum):
    """Reasons attached to LOGIN_FAILURE events."""

    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"


class AuditEvent(Base):
    """
    Tamper-evident audit record.

    integrity_digest is a SHA-256 over the semantic fields; see
    authcore.kernel.events.audit_trail.compute_integrity_digest.
    """
    
    __tablename__ = "audit_events"
    
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,  # unknown for attempts against nonexistent accounts
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    origin_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    client_label: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    event_kind: Mapped[AuditEventKind] = mapped_column(
        String(40),
        nullable=False,
    )
    failure_reason: Mapped[Optional[str]] = mapped_column(
        String(40),
        nullable=True,
    )
    lockout_minutes: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    trigger: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    integrity_digest: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    
    __table_args__ = (
        Index("ix_audit_events_email_time", "email", "timestamp"),
        Index("ix_audit_events_kind_time", "event_kind", "timestamp"),
    )

    @property
    def kind_value(self) -> str:
        return self.event_kind.value if hasattr(self.event_kind, "value") else self.event_kind
    
    def __repr__(self) -> str:
        return f"<AuditEvent {self.kind_value} {self.email}>"
