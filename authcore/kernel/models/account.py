"""
Account model for identity management.
"""

import uuid
from enum import Enum

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from authcore.kernel.models.base import Base, TimestampMixin, generate_uuid


class AccountRole(str, Enum):
    """Account roles in the system."""
    NORMAL_USER = "NORMAL_USER"
    AUDITOR = "AUDITOR"
    ADMIN = "ADMIN"


class AccountStatus(str, Enum):
    """Account lifecycle status."""
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    DISABLED = "DISABLED"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"


class Account(Base, TimestampMixin):
    """
    Registered user account.

    Email is stored lowercase; the UNIQUE constraint on it is what
    arbitrates concurrent registrations of the same address.
    """
    
    __tablename__ = "accounts"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[AccountRole] = mapped_column(
        String(30),
        default=AccountRole.NORMAL_USER.value,
        nullable=False,
    )
    status: Mapped[AccountStatus] = mapped_column(
        String(30),
        default=AccountStatus.ACTIVE.value,
        nullable=False,
    )

    @property
    def role_value(self) -> str:
        # role may come back as a plain str when loaded from the database
        return self.role.value if hasattr(self.role, "value") else self.role

    @property
    def status_value(self) -> str:
        return self.status.value if hasattr(self.status, "value") else self.status
    
    def __repr__(self) -> str:
        return f"<Account {self.email}>"
