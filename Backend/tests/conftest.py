"""
Pytest configuration and fixtures for async API testing.

Tests run against an in-memory SQLite database (aiosqlite). Every test gets a
fresh engine, so data never leaks between tests.

Seeded tenants:
    T1: t1-shipping (SHIPPING), t1-admin (ADMIN), t1-retail (ADMIN_RETAIL),
        t1-super (SUPERADMIN), t1-customer (CUSTOMER), t1-catalogue (ADMIN_CATALOGUE)
    T2: t2-shipping (SHIPPING)
    DEFAULT: default-admin (ADMIN)
"""
import os

# Must be set before the app (and its cached settings) is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-for-unit-tests-only-0123456789"
os.environ["SEED_DEFAULT_STORE"] = "false"
os.environ["DISABLE_AUTH_CHECKS"] = "false"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import Base
from app.jwt_auth import issue_access_token
from app.models import MerchantStore, StoreMember, StoreMemberRole


TEST_DATABASE_URL = "sqlite+aiosqlite://"

MEMBERSHIPS = {
    "T1": [
        ("t1-shipping", StoreMemberRole.SHIPPING),
        ("t1-admin", StoreMemberRole.ADMIN),
        ("t1-retail", StoreMemberRole.ADMIN_RETAIL),
        ("t1-super", StoreMemberRole.SUPERADMIN),
        ("t1-customer", StoreMemberRole.CUSTOMER),
        ("t1-catalogue", StoreMemberRole.ADMIN_CATALOGUE),
    ],
    "T2": [
        ("t2-shipping", StoreMemberRole.SHIPPING),
    ],
    "DEFAULT": [
        ("default-admin", StoreMemberRole.ADMIN),
    ],
}


@pytest.fixture(scope="function")
async def async_engine():
    """
    Create async SQLAlchemy engine for the test database.

    StaticPool keeps the single in-memory connection alive for the whole test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine):
    """Session shared by fixtures and by the app under test."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def stores(async_session) -> dict[str, MerchantStore]:
    """Create the T1, T2 and DEFAULT stores with their role bindings."""
    created = {
        "T1": MerchantStore(code="T1", name="Tenant One", default_language="en", supported_languages="en,fr"),
        "T2": MerchantStore(code="T2", name="Tenant Two", default_language="fr", supported_languages="fr"),
        "DEFAULT": MerchantStore(code="DEFAULT", name="Default store", default_language="en", supported_languages="en"),
    }
    async_session.add_all(created.values())
    await async_session.flush()

    for code, members in MEMBERSHIPS.items():
        for user_id, role in members:
            async_session.add(
                StoreMember(store_id=created[code].id, user_id=user_id, role=role.value)
            )
    await async_session.commit()
    return created


@pytest.fixture(scope="function")
async def client(async_session, stores):
    """
    Create FastAPI AsyncClient with database session override.

    ASGITransport does not run startup events, so no default seeding happens.
    """
    # Import here so the environment above is applied first
    from app.main import app
    from app.core.db import get_session

    async def override_get_session():
        yield async_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


def bearer(user_id: str) -> dict[str, str]:
    """Authorization header for user_id."""
    return {"Authorization": f"Bearer {issue_access_token(user_id)}"}


@pytest.fixture
def auth_headers():
    return bearer
