"""
Test Suite Configuration
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional, Tuple
import itertools

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.config import AnalyticsSettings
from marketplace.database.models import (
    Base,
    Category,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    ProductStatus,
    SellerProfile,
    User,
    UserRole,
)

# Fixed reference instant for window arithmetic
NOW = datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    """Analytics defaults used by the reporting tests"""
    return AnalyticsSettings()


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


class MarketplaceFactory:
    """Builds users, sellers, catalog rows and orders in the test session"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = itertools.count(1)

    async def _add(self, instance):
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def user(
        self,
        role: UserRole = UserRole.CUSTOMER,
        created_at: Optional[datetime] = None,
        is_active: bool = True,
    ) -> User:
        n = next(self._seq)
        return await self._add(User(
            email=f"user{n}@example.com",
            first_name="Test",
            last_name=f"User{n}",
            role=role,
            is_active=is_active,
            created_at=created_at or NOW - timedelta(days=60),
        ))

    async def seller(
        self,
        business_name: str = "Store",
        is_verified: bool = True,
        created_at: Optional[datetime] = None,
    ) -> SellerProfile:
        user = await self.user(UserRole.SELLER, created_at=created_at)
        return await self._add(SellerProfile(
            user_id=user.id,
            business_name=business_name,
            is_verified=is_verified,
            created_at=created_at or NOW - timedelta(days=60),
        ))

    async def category(self, name: str = "Category") -> Category:
        n = next(self._seq)
        return await self._add(Category(name=name, slug=f"{name.lower()}-{n}"))

    async def product(
        self,
        seller: SellerProfile,
        category: Category,
        price: str = "10.00",
        stock: int = 100,
        status: ProductStatus = ProductStatus.ACTIVE,
        name: Optional[str] = None,
    ) -> Product:
        n = next(self._seq)
        return await self._add(Product(
            seller_id=seller.id,
            category_id=category.id,
            name=name or f"Product {n}",
            slug=f"product-{n}",
            sku=f"SKU-{n:04d}",
            status=status,
            base_price=Decimal(price),
            stock_quantity=stock,
        ))

    async def order(
        self,
        customer: User,
        seller: SellerProfile,
        lines: Iterable[Tuple[Product, int]],
        created_at: datetime = NOW,
        status: OrderStatus = OrderStatus.DELIVERED,
    ) -> Order:
        n = next(self._seq)
        lines = list(lines)
        subtotal = sum((product.base_price * quantity for product, quantity in lines), Decimal("0"))
        order = await self._add(Order(
            order_number=f"ORD-{n:05d}",
            user_id=customer.id,
            seller_id=seller.id,
            status=status,
            subtotal=subtotal,
            total_amount=subtotal,
            created_at=created_at,
        ))
        for product, quantity in lines:
            await self._add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=product.base_price,
                total_price=product.base_price * quantity,
                product_name=product.name,
                created_at=created_at,
            ))
        return order


@pytest.fixture
def factory(test_db) -> MarketplaceFactory:
    return MarketplaceFactory(test_db)


@pytest_asyncio.fixture
async def two_sellers(factory):
    """
    Two sellers with orders in the same window.

    Seller A: orders of 30.00 (day -1) and 20.00 (day -2), a cancelled 500.00
    and one 10.00 order in the preceding window.
    Seller B: one 100.00 order (day -1).
    """
    category = await factory.category("Books")
    seller_a = await factory.seller("Alpha Books")
    seller_b = await factory.seller("Beta Books")
    alice = await factory.user()
    bob = await factory.user()

    a_cheap = await factory.product(seller_a, category, price="10.00", stock=5)
    a_fancy = await factory.product(seller_a, category, price="20.00")
    b_item = await factory.product(seller_b, category, price="50.00")

    await factory.order(alice, seller_a, [(a_cheap, 1), (a_fancy, 1)], created_at=NOW - timedelta(days=1))
    await factory.order(bob, seller_a, [(a_fancy, 1)], created_at=NOW - timedelta(days=2))
    await factory.order(
        alice, seller_a, [(a_cheap, 50)],
        created_at=NOW - timedelta(days=3), status=OrderStatus.CANCELLED,
    )
    await factory.order(alice, seller_a, [(a_cheap, 1)], created_at=NOW - timedelta(days=40))
    await factory.order(bob, seller_b, [(b_item, 2)], created_at=NOW - timedelta(days=1))

    return {
        "category": category,
        "seller_a": seller_a,
        "seller_b": seller_b,
        "alice": alice,
        "bob": bob,
        "a_cheap": a_cheap,
        "a_fancy": a_fancy,
        "b_item": b_item,
    }
