"""
Test fixtures for storekeeper tests.

Provides:
- In-memory SQLite database for isolated testing
- Async test client with proper session management
- Test data factories for cart lines and inventory items
"""
# IMPORTANT: Set environment variables BEFORE any other imports
import os

# DB settings required by Settings validation; the app engine points at SQLite too
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
# Development mode for tests (disables ALLOWED_ORIGINS requirement)
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from decimal import Decimal
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from storekeeper.app.core.base import Base
from storekeeper.app.core.clock import utcnow
from storekeeper.app.main import app
from storekeeper.app.api.deps import get_session
from storekeeper.app.models.cart import CartLine
from storekeeper.app.models.inventory import InventoryItem


# Test database URL - SQLite in-memory
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_USER_ID = "user-123"
OTHER_USER_ID = "user-456"


# Create test engine with StaticPool for in-memory SQLite
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
async def test_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    Creates all tables before and drops after each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing API endpoints.
    Overrides the database dependency.

    Note: We create a fresh session for each API call to avoid
    transaction conflicts with the test_session used for fixtures.
    """
    async def override_get_session():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> dict:
    return {"X-User-Id": TEST_USER_ID}


# --- Test Data Factories ---

@pytest.fixture
async def test_cart_line(test_session: AsyncSession) -> CartLine:
    """Cart line: 3 x sku-1 for TEST_USER_ID."""
    now = utcnow()
    line = CartLine(
        user_id=TEST_USER_ID,
        item_id="sku-1",
        quantity=3,
        added_at=now,
        updated_at=now,
    )
    test_session.add(line)
    await test_session.commit()
    await test_session.refresh(line)
    return line


@pytest.fixture
async def test_item(test_session: AsyncSession) -> InventoryItem:
    """Inventory item with 20 units in stock."""
    now = utcnow()
    item = InventoryItem(
        id="sku-1",
        name="Widget",
        price=Decimal("5.00"),
        stock=20,
        category="Tools",
        description="A test widget",
        created_at=now,
        updated_at=now,
    )
    test_session.add(item)
    await test_session.commit()
    await test_session.refresh(item)
    return item


@pytest.fixture
async def test_catalog(test_session: AsyncSession) -> list:
    """Five items created in order, with mixed categories, prices and stock."""
    rows = [
        ("sku-a", "Hammer", "12.50", 4, "Hand Tools"),
        ("sku-b", "Anvil", "99.00", 10, "Tools"),
        ("sku-c", "Bolt", "0.10", 0, "Hardware"),
        ("sku-d", "Chisel", "7.25", 11, "hand tools"),
        ("sku-e", "Drill", "45.00", 10, None),
    ]
    items = []
    for item_id, name, price, stock, category in rows:
        now = utcnow()
        item = InventoryItem(
            id=item_id,
            name=name,
            price=Decimal(price),
            stock=stock,
            category=category,
            created_at=now,
            updated_at=now,
        )
        test_session.add(item)
        items.append(item)
    await test_session.commit()
    return items
