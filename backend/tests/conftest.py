"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database (aiosqlite + StaticPool, so
every connection sees the same database). API tests share the test's session
through an override of ``get_db``; nothing is committed.
"""

import uuid
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import campreserv.models  # noqa: F401  (registers every table on Base.metadata)
from campreserv.database import Base, get_db
from campreserv.main import app
from campreserv.models.campground import Campground, Site, SiteClass
from campreserv.tenancy import TenantContext

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory engine with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session that is rolled back after the test."""
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.rollback()
        await session.close()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: campground, site classes and sites via the API
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_campground(client: AsyncClient) -> dict:
    """Create and return a campground with the default 1-28 night limits."""
    unique = uuid.uuid4().hex[:8]
    response = await client.post(
        "/api/v1/campgrounds",
        json={"name": "Pine Hollow", "slug": f"pine-hollow-{unique}"},
    )
    assert response.status_code == 201, f"Failed to create test campground: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def other_campground(client: AsyncClient) -> dict:
    """A second tenant, for isolation tests."""
    unique = uuid.uuid4().hex[:8]
    response = await client.post(
        "/api/v1/campgrounds",
        json={"name": "Cedar Flats", "slug": f"cedar-flats-{unique}"},
    )
    assert response.status_code == 201, f"Failed to create other campground: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def rv_class(client: AsyncClient, test_campground: dict) -> dict:
    """An RV site class with a $50.00 default nightly rate."""
    response = await client.post(
        f"/api/v1/campgrounds/{test_campground['id']}/site-classes",
        json={"name": "RV", "default_rate_cents": 5000},
    )
    assert response.status_code == 201, f"Failed to create RV class: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def tent_class(client: AsyncClient, test_campground: dict) -> dict:
    """A tent site class with a $25.00 default nightly rate."""
    response = await client.post(
        f"/api/v1/campgrounds/{test_campground['id']}/site-classes",
        json={"name": "Tent", "default_rate_cents": 2500},
    )
    assert response.status_code == 201, f"Failed to create tent class: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def rv_site(client: AsyncClient, test_campground: dict, rv_class: dict) -> dict:
    response = await client.post(
        f"/api/v1/campgrounds/{test_campground['id']}/sites",
        json={"site_class_id": rv_class["id"], "site_number": "A1"},
    )
    assert response.status_code == 201, f"Failed to create RV site: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def campground_base(test_campground: dict) -> str:
    """URL prefix of the test campground's rule endpoints."""
    return f"/api/v1/campgrounds/{test_campground['id']}"


# ---------------------------------------------------------------------------
# Convenience fixtures: rows created directly in the DB (service tests)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_campground(db_session: AsyncSession) -> Campground:
    campground = Campground(
        name="Service Test Park",
        slug=f"service-{uuid.uuid4().hex[:8]}",
        default_min_nights=1,
        default_max_nights=28,
    )
    db_session.add(campground)
    await db_session.flush()
    return campground


@pytest_asyncio.fixture
async def tenant(db_campground: Campground) -> TenantContext:
    return TenantContext(db_campground.id)


@pytest_asyncio.fixture
async def db_site_class(db_session: AsyncSession, db_campground: Campground) -> SiteClass:
    site_class = SiteClass(campground_id=db_campground.id, name="RV", default_rate_cents=5000)
    db_session.add(site_class)
    await db_session.flush()
    return site_class


@pytest_asyncio.fixture
async def db_site(db_session: AsyncSession, db_campground: Campground, db_site_class: SiteClass) -> Site:
    site = Site(campground_id=db_campground.id, site_class_id=db_site_class.id, site_number="A1")
    db_session.add(site)
    await db_session.flush()
    return site
