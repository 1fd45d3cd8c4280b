import uuid
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.database import enable_sqlite_foreign_keys
from app.models import Profile, TeacherProfile
from app.models.base import Base
from tests.helpers import (
    TEST_AUTH_SECRET,
    TEST_USER_EMAIL,
    TEST_USER_ID,
    USER_B_EMAIL,
    USER_B_ID,
    FakeObjectStore,
    create_test_jwt,
)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a throwaway SQLite database for one test.

    A file database (not :memory:) gives every session its own connection,
    so the app's transactions are isolated from the test's session.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# Object storage
# =============================================================================


@pytest.fixture
def object_store() -> FakeObjectStore:
    """Fake object store; the avatar bucket does not exist yet."""
    return FakeObjectStore()


# =============================================================================
# Profile fixtures
# =============================================================================


async def _create_teacher(
    db: AsyncSession, user_id: uuid.UUID, email: str, full_name: str
) -> TeacherProfile:
    db.add(Profile(id=user_id, full_name=full_name, email=email, user_type="teacher"))
    await db.flush()
    teacher = TeacherProfile(
        user_id=user_id,
        subject=["Mathematics"],
        location="Berlin",
        fee="40 EUR/hour",
        about="Patient maths tutor.",
        tags=["algebra"],
    )
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)
    return teacher


@pytest_asyncio.fixture
async def teacher_profile(db_session: AsyncSession) -> TeacherProfile:
    """Teacher profile owned by TEST_USER_ID."""
    return await _create_teacher(db_session, TEST_USER_ID, TEST_USER_EMAIL, "Test Teacher")


@pytest_asyncio.fixture
async def teacher_profile_b(db_session: AsyncSession) -> TeacherProfile:
    """Teacher profile owned by USER_B_ID (cross-user checks)."""
    return await _create_teacher(db_session, USER_B_ID, USER_B_EMAIL, "User B")


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(
    db_engine: AsyncEngine, object_store: FakeObjectStore
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client authenticated as TEST_USER_ID.

    Sets up:
    - Test database connection via dependency override
    - Object storage via the fake store
    - JWT auth with test secret (token sent as the session cookie)

    Yields:
        Configured AsyncClient for making authenticated API requests.
    """
    from app.core.database import get_db
    from app.core.storage import get_storage_client
    from app.main import app

    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    storage_client = object_store.client()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: storage_client

    original_auth_enabled = settings.auth_enabled
    original_auth_secret = settings.auth_secret
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={settings.auth_cookie_name: create_test_jwt(TEST_USER_ID)},
    ) as ac:
        yield ac

    settings.auth_enabled = original_auth_enabled
    settings.auth_secret = original_auth_secret
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unauthenticated_client(
    client: AsyncClient,  # noqa: ARG001 - ensures DB override and auth config
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client without credentials (auth enabled, no token)."""
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def client_user_b(
    client: AsyncClient,  # noqa: ARG001 - ensures DB override and auth config
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client authenticated as USER_B_ID for cross-user tests."""
    from app.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {create_test_jwt(USER_B_ID, email=USER_B_EMAIL)}"},
    ) as ac:
        yield ac


# =============================================================================
# Autouse Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_onboarding_drafts() -> Iterator[None]:
    """Reset the onboarding draft store before and after each test."""
    from app.services.onboarding_draft_store import reset_draft_store

    reset_draft_store()
    yield
    reset_draft_store()


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Rate limiting is tested separately; disable it elsewhere to avoid
    flaky failures from limit triggers.
    """
    from app.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled
