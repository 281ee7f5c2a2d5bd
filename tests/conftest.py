"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os

# Environment must be set before config.py is imported anywhere
os.environ.setdefault("RUNTIME_ENVIRONMENT", "test")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PAYMENT_GATEWAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("PAYMENT_GATEWAY_KEY_SECRET", "test_gateway_secret_1234567890")
os.environ.setdefault("CURRENCY", "INR")
os.environ.setdefault("LOG_DIR", "logs")

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from enums.user_role import UserRole
from models.product import ProductDTO, ProductVariantDTO, ProductColorDTO
from models.user import UserDTO
from repositories.product import ProductRepository
from repositories.user import UserRepository


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite shared by all sessions of a test)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool
    )

    # Import and create all tables
    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Seed Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def user_id(test_session) -> int:
    """Regular customer."""
    created_id = await UserRepository.create(
        UserDTO(email="buyer@example.com", name="Buyer", role=UserRole.USER, created_at=datetime.now()),
        test_session
    )
    await test_session.commit()
    return created_id


@pytest_asyncio.fixture
async def other_user_id(test_session) -> int:
    created_id = await UserRepository.create(
        UserDTO(email="other@example.com", name="Other", role=UserRole.USER, created_at=datetime.now()),
        test_session
    )
    await test_session.commit()
    return created_id


@pytest.fixture
def create_product(test_session):
    """
    Factory for products.

    Usage:
        product_id = await create_product(price=500.0, stock=10,
                                          variants=[("XL", 650.0, 3)], colors=[("Red", 4)])
    """

    async def _create(name: str = "Test Product",
                      price: float = 500.0,
                      stock: int = 10,
                      category: str | None = "Electronics",
                      sold_count: int = 0,
                      variants: list[tuple[str, float | None, int]] | None = None,
                      colors: list[tuple[str, int]] | None = None) -> int:
        product_id = await ProductRepository.create(ProductDTO(
            name=name,
            description=f"{name} description",
            price=price,
            stock=stock,
            sold_count=sold_count,
            category=category,
            images=[f"https://cdn.example.com/{name.lower().replace(' ', '-')}.jpg"],
            variants=[ProductVariantDTO(label=label, price=variant_price, stock=variant_stock)
                      for label, variant_price, variant_stock in (variants or [])],
            colors=[ProductColorDTO(name=color_name, code=None, stock=color_stock)
                    for color_name, color_stock in (colors or [])]
        ), test_session)
        await test_session.commit()
        return product_id

    return _create


@pytest.fixture
def shipping_address() -> dict:
    return {
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "country": "India",
        "postal_code": "560001"
    }


@pytest.fixture
def gateway_client():
    """Payment gateway client double returning a fixed gateway order."""
    from unittest.mock import AsyncMock
    from models.order import GatewayOrderDTO
    from services.payment_gateway import PaymentGatewayClient

    client = AsyncMock(spec=PaymentGatewayClient)

    async def _create_order(amount: int, currency: str, receipt: str) -> GatewayOrderDTO:
        return GatewayOrderDTO(id="order_TEST123", amount=amount, currency=currency, receipt=receipt,
                               status="created")

    client.create_order.side_effect = _create_order
    return client
