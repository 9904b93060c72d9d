"""
Pytest fixtures for testing.

Provides:
- Async database session on in-memory SQLite
- Factory fixtures for creating users
- Registry and hook isolation between tests
"""

from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from extauth.core.config import ExtensionConfig
from extauth.core.extensions import ExtensionRegistry
from extauth.core.extensions.registry import _resolve_all
from extauth.core.hooks import hooks
from extauth.extensions.invitation import InvitationContext
from extauth.models.base import Base
from extauth.models.database import create_engine
from extauth.models.user import User, hash_password


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_engine(
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


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session, rolled back after each test."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


# ============ Isolation ============


@pytest.fixture(autouse=True)
def isolated_registry():
    """Drop extensions registered by a test."""
    registered = dict(ExtensionRegistry._extensions)
    yield
    ExtensionRegistry._extensions.clear()
    ExtensionRegistry._extensions.update(registered)
    _resolve_all.cache_clear()


@pytest.fixture(autouse=True)
def isolated_hooks():
    yield
    hooks.clear()


@pytest.fixture
def base() -> type[DeclarativeBase]:
    """A fresh declarative base, so test hosts don't touch the app metadata."""

    class TestBase(DeclarativeBase):
        pass

    return TestBase


# ============ Factory Fixtures ============


class UserFactory:
    """Factory for creating registered test users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        email: str | None = None,
        password: str = "testpassword123",
        name: str = "Test User",
    ) -> User:
        """Create a user in the database."""
        email = email or f"test-{uuid4().hex[:8]}@example.com"

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, User.__extension_config__),
        )
        self.db.add(user)
        await self.db.commit()
        return user


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession) -> UserFactory:
    """Fixture that provides UserFactory."""
    return UserFactory(db)


@pytest_asyncio.fixture
async def inviter(user_factory: UserFactory) -> User:
    """A registered user who sends invitations."""
    return await user_factory.create(email="inviter@example.com", name="Inviter")


@pytest.fixture
def config() -> ExtensionConfig:
    """Extension config bound to the app's User."""
    return User.__extension_config__


@pytest_asyncio.fixture
async def invitations(db: AsyncSession, config: ExtensionConfig) -> InvitationContext:
    return InvitationContext(db, config)
