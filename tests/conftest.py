"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.clock import FixedClock
from app.database import Base, get_db
from app.dependencies import get_clock, get_notifier
from app.main import app
from app.models.user import User
from app.schemas.user import UserRole


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Reference "now" for tests: mid-February, inside the delegation windows used below
NOW = datetime(2026, 2, 5, 12, 0, tzinfo=timezone.utc)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class RecordingNotifier:
    """Notifier that keeps every notification for assertions."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def notify(self, event: str, payload: dict[str, Any]) -> None:
        self.sent.append((event, payload))

    def events(self) -> list[str]:
        return [event for event, _ in self.sent]


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


async def _make_user(
    session: AsyncSession,
    email: str,
    name: str,
    role: UserRole,
    is_active: bool = True,
) -> User:
    user = User(email=email, name=name, role=role.value, is_active=is_active)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def requester(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "lee@example.com", "Lee Chen", UserRole.REQUESTER)


@pytest_asyncio.fixture
async def approver(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "maria@example.com", "Maria Lopez", UserRole.APPROVER)


@pytest_asyncio.fixture
async def delegate(db_session: AsyncSession) -> User:
    """Second approver, used as the receiving side of delegations."""
    return await _make_user(db_session, "sam@example.com", "Sam Okafor", UserRole.APPROVER)


@pytest_asyncio.fixture
async def outsider(db_session: AsyncSession) -> User:
    """Approver with no relationship to the requests under test."""
    return await _make_user(db_session, "kim@example.com", "Kim Novak", UserRole.APPROVER)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "ada@example.com", "Ada Admin", UserRole.ADMIN)


def make_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "exp": now + timedelta(hours=1),
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth_headers(user: User) -> dict:
    """Authorization headers for a user."""
    return {
        "Authorization": f"Bearer {make_token(user)}",
        "Content-Type": "application/json",
    }


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    clock: FixedClock,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database, clock and notifier overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
