"""
Pytest fixtures for AuthCore tests.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from authcore.config import Settings
from authcore.database import close_db, create_engine, create_session_factory, init_db
from authcore.kernel.events.audit_trail import AuditTrail
from authcore.kernel.identity.auth_service import AuthCore
from authcore.kernel.throttle.login_throttle import LoginThrottle


# In-memory database shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"

STRONG_PASSWORD = "Str0ng!Passw0rd"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    """Settings with a test signing secret and in-memory database."""
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url=TEST_DATABASE_URL,
        environment="test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture(scope="function")
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables."""
    engine = create_engine(settings)
    await init_db(engine)

    yield engine

    await close_db(engine)


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def audit_trail(session_factory, clock: FakeClock) -> AuditTrail:
    return AuditTrail(session_factory, clock=clock)


@pytest_asyncio.fixture
async def throttle(settings: Settings, audit_trail: AuditTrail, clock: FakeClock) -> LoginThrottle:
    return LoginThrottle(settings.throttle, audit_trail, clock=clock)


@pytest_asyncio.fixture
async def auth_core(settings: Settings, session_factory, clock: FakeClock) -> AuthCore:
    """Fully wired AuthCore on the in-memory database."""
    return AuthCore.from_settings(settings, session_factory, clock=clock)


@pytest_asyncio.fixture
async def registered_account(auth_core: AuthCore):
    """A registered, active account: john.doe@example.com / STRONG_PASSWORD."""
    return await auth_core.register("john.doe@example.com", STRONG_PASSWORD, STRONG_PASSWORD)
