"""
Durable account records keyed by case-insensitive email.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.kernel.identity.errors import DuplicateEmailError
from authcore.kernel.models.account import Account, AccountRole, AccountStatus


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class AccountStore:
    """
    Repository for Account rows.

    Every method runs in its own short-lived session. The UNIQUE constraint
    on email is the final arbiter when two registrations race.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get an account by email, ignoring case."""
        query = select(Account).where(Account.email == normalize_email(email))
        async with self.session_factory() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def get_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        """Get an account by ID."""
        async with self.session_factory() as session:
            return await session.get(Account, account_id)

    async def exists(self, email: str) -> bool:
        query = select(func.count(Account.id)).where(
            Account.email == normalize_email(email)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return (result.scalar() or 0) > 0

    async def create(
        self,
        email: str,
        password_hash: str,
        role: AccountRole = AccountRole.NORMAL_USER,
        status: AccountStatus = AccountStatus.ACTIVE,
    ) -> Account:
        """
        Persist a new account.

        Raises:
            DuplicateEmailError: If the email is already taken
            ValueError: If password_hash is empty
        """
        if not password_hash:
            raise ValueError("password_hash must not be empty")

        account = Account(
            email=normalize_email(email),
            password_hash=password_hash,
            role=AccountRole(role).value,
            status=AccountStatus(status).value,
        )
        try:
            async with self.session_factory() as session:
                session.add(account)
                await session.commit()
        except IntegrityError as e:
            raise DuplicateEmailError(email) from e
        return account

    async def update_password_hash(self, account_id: uuid.UUID, password_hash: str) -> None:
        if not password_hash:
            raise ValueError("password_hash must not be empty")
        async with self.session_factory() as session:
            await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(password_hash=password_hash)
            )
            await session.commit()

    async def set_status(self, account_id: uuid.UUID, status: AccountStatus) -> bool:
        """Change an account's status. Returns False if the account does not exist."""
        async with self.session_factory() as session:
            result = await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(status=AccountStatus(status).value)
            )
            await session.commit()
            return result.rowcount > 0
