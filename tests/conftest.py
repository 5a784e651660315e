"""Shared test fixtures — async SQLite in-memory DB + test client."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.core.database import get_session
from app.main import app
from app.models.tenant import Subscription, Tenant
from app.models.user import UserRole
from app.services.accounts import AccountService

PASSWORD = "testpass123"


@pytest.fixture
async def engine():
    # One in-memory database per test; StaticPool keeps it on a single connection.
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Tenant helpers ───────────────────────────────────────────

async def make_tenant(
    session: AsyncSession,
    slug: str,
    subscription: Subscription = Subscription.FREE,
) -> Tenant:
    """Onboard a tenant with admin@<slug>.test and user@<slug>.test."""
    accounts = AccountService(session)
    tenant = await accounts.onboard_tenant(name=f"{slug.title()} Co", slug=slug, subscription=subscription)
    await accounts.create_user(tenant, f"admin@{slug}.test", PASSWORD, UserRole.ADMIN)
    await accounts.create_user(tenant, f"user@{slug}.test", PASSWORD, UserRole.MEMBER)
    return tenant


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    """Log in through the API and return bearer headers."""
    resp = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
async def acme(session) -> Tenant:
    return await make_tenant(session, "acme")


@pytest.fixture
async def globex(session) -> Tenant:
    return await make_tenant(session, "globex")
