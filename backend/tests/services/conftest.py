"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB
    - db_manager patched so the readiness check sees the test engine
    - seeded_catalog fixture seeds two categories and five products
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from catalog.db.base import Base
from catalog.infrastructure.database import get_db, DatabaseSessionManager
from catalog.models.category import Category
from catalog.models.product import Product
import catalog.infrastructure.database as db_module
from catalog.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Readiness check reads db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def seeded_catalog(test_db):
    """Seed Tools/Garden and five products; return them keyed by name."""
    tools = Category(name="Tools")
    garden = Category(name="Garden")
    test_db.add_all([tools, garden])
    await test_db.flush()

    products = [
        Product(name="Hammer", price=10, description="Steel claw hammer",
                img_url="hammer.png", category_id=tools.id),
        Product(name="Wrench", price=4, description="Adjustable wrench",
                img_url="wrench.png", category_id=tools.id),
        Product(name="Screwdriver", price=1.5, description="Flat head",
                img_url="screwdriver.png", category_id=tools.id),
        Product(name="Shovel", price=25, description="Round point shovel",
                img_url="shovel.png", category_id=garden.id),
        Product(name="Rake", price=8, description="Leaf rake",
                img_url="rake.png", category_id=garden.id),
    ]
    test_db.add_all(products)
    await test_db.commit()
    return {
        "categories": {"Tools": tools, "Garden": garden},
        "products": {p.name: p for p in products},
    }
