"""
Pytest configuration and shared fixtures for the Concert Wishlist tests.

Provides an in-memory SQLite DB per test, an httpx client bound to the
FastAPI app, JWT helpers and raw Ticketmaster event factories.
"""
import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings
from middleware.rate_limit import limiter
from tests.factories import auth_headers, make_raw_event

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only-not-for-production"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client talking to the app in-process.

    Overrides get_db dependency to use test DB session.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Every test starts with an empty rate-limit window."""
    limiter.reset()
    yield
    limiter.reset()


# ── Auth Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers(1, "ADMIN")


@pytest.fixture
def other_admin_headers() -> dict:
    return auth_headers(2, "ADMIN")


@pytest.fixture
def system_headers() -> dict:
    return auth_headers(99, "SYSTEM")


# ── Test Data Fixtures ────────────────────────────────────────────────

@pytest.fixture
def raw_event():
    """Factory for raw Ticketmaster events."""
    return make_raw_event


@pytest.fixture
async def sample_band(db_session: AsyncSession):
    """A stored band with a Ticketmaster id."""
    from db_models import Band

    band = Band(name="Band A", ticketmaster_id="K8vZ917Gku7")
    db_session.add(band)
    await db_session.commit()
    await db_session.refresh(band)
    return band


@pytest.fixture
async def other_band(db_session: AsyncSession):
    from db_models import Band

    band = Band(name="Band B", ticketmaster_id="K8vZ917_bbb")
    db_session.add(band)
    await db_session.commit()
    await db_session.refresh(band)
    return band


@pytest.fixture
async def sample_wishlist(db_session: AsyncSession):
    """Wishlist owned by user 1."""
    from db_models import Wishlist

    wishlist = Wishlist(name="Summer 2024", user_id=1)
    db_session.add(wishlist)
    await db_session.commit()
    await db_session.refresh(wishlist)
    return wishlist
