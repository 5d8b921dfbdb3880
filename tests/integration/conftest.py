"""Integration test fixtures backed by PostgreSQL.

These fixtures require a reachable database at DATABASE_URL. The store,
organization and account fixtures shadow the in-memory ones from the root
conftest, so the services under test read and write real tables while the
identity provider and email stay faked.
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from src.agency.core.config import get_settings
from src.agency.core.db import Store, dispose_engine, run_migrations_sync
from src.agency.models import Account, Organization
from tests.factories import AccountFactory, OrganizationFactory
from tests.utils import cleanup_organization_cascade


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure public schema migrations are applied."""
    await dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (sa_exc.SQLAlchemyError, OSError) as e:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL is not reachable at DATABASE_URL ({type(e).__name__})")

    await asyncio.to_thread(run_migrations_sync)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for seeding rows. Tests must commit explicitly."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def store(engine: AsyncEngine) -> Store:
    return Store(engine, default_timeout_ms=10_000)


@pytest.fixture
def seed(db_session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Commit rows directly, bypassing the services under test.

    Seed referencing rows in a later call than the rows they point at.
    """

    async def _seed(*rows: SQLModel) -> None:
        db_session.add_all(rows)
        await db_session.commit()

    return _seed


@pytest.fixture
async def organization(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[Organization]:
    """Isolated organization per test, removed with everything it owns."""
    org = OrganizationFactory.build(name="Brightside Agency")
    db_session.add(org)
    await db_session.commit()

    yield org

    async with engine.connect() as conn:
        await cleanup_organization_cascade(conn, org.id)
        await conn.commit()


@pytest.fixture
async def admin(organization: Organization, seed) -> Account:
    account = AccountFactory.admin(
        organization_id=organization.id,
        first_name="Ada",
        last_name="Admin",
        display_name="Ada Admin",
        email="ada@brightside.test",
    )
    await seed(account)
    return account
