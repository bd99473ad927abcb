import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.database import Base, get_db
from app.api.deps import get_password_hash, create_access_token
from app.core.schema import schema_registry
from app.models.job_order import JobOrder
from app.models.profile import Profile
from tests.factories import JobOrderFactory, ProfileFactory

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    schema_registry.reset()

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    schema_registry.reset()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def make_profile(db: AsyncSession, **overrides) -> Profile:
    profile = Profile(**ProfileFactory(**overrides))
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


def auth_headers(profile: Profile) -> dict:
    token = create_access_token(data={"sub": profile.id})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession):
    """Create an admin profile."""
    return await make_profile(
        test_db,
        email="admin@example.com",
        full_name="Avery Admin",
        role="admin",
        hashed_password=get_password_hash("adminpassword123"),
    )


@pytest_asyncio.fixture
async def operator_user(test_db: AsyncSession):
    """Create an operator profile."""
    return await make_profile(
        test_db,
        email="operator@example.com",
        full_name="Olive Operator",
        role="operator",
    )


@pytest_asyncio.fixture
async def other_operator(test_db: AsyncSession):
    """An operator with no jobs assigned."""
    return await make_profile(
        test_db,
        email="other@example.com",
        full_name="Oscar Other",
        role="operator",
    )


@pytest.fixture
def admin_headers(admin_user: Profile) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def operator_headers(operator_user: Profile) -> dict:
    return auth_headers(operator_user)


@pytest.fixture
def other_headers(other_operator: Profile) -> dict:
    return auth_headers(other_operator)


@pytest_asyncio.fixture
async def job(test_db: AsyncSession, operator_user: Profile):
    """A job order assigned to ``operator_user``."""
    job = JobOrder(**JobOrderFactory(
        assigned_to=operator_user.id,
        operator_name=operator_user.full_name,
        status="assigned",
    ))
    test_db.add(job)
    await test_db.commit()
    await test_db.refresh(job)
    return job


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """Create test client with overridden database."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
