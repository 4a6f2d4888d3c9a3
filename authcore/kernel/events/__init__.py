"""
Append-only audit logging for authentication events.
"""

from authcore.kernel.events.audit_trail import (
    AuditEntry,
    AuditTrail,
    compute_integrity_digest,
)

__all__ = [
    "AuditEntry",
    "AuditTrail",
    "compute_integrity_digest",
]
