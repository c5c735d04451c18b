from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.database import Base, get_db
from src.main import app
from src.modules.events.models import EventCategory

# In-memory SQLite; a fresh schema per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Same rows the initial migration seeds, plus one category the ledger does not map
REPORT_CATEGORIES = {
    "area-based-1": "Area Based - 1",
    "area-based-2": "Area Based - 2",
    "university-based": "University Based",
    "college-based": "College Based",
    "workshop": "Workshop",
}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def categories(db_session: AsyncSession) -> dict[str, EventCategory]:
    """Event categories keyed by code."""
    rows = {
        code: EventCategory(code=code, category_name=name, is_active=True)
        for code, name in REPORT_CATEGORIES.items()
    }
    db_session.add_all(rows.values())
    await db_session.flush()
    return rows


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
