"""
SQLAlchemy models for the authentication core.
"""

from authcore.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from authcore.kernel.models.account import Account, AccountRole, AccountStatus
from authcore.kernel.models.audit_event import AuditEvent, AuditEventKind, FailureReason

__all__ = [
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    "Account",
    "AccountRole",
    "AccountStatus",
    "AuditEvent",
    "AuditEventKind",
    "FailureReason",
]
