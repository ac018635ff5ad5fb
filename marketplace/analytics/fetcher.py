"""
Record Fetcher

Async SQLAlchemy queries that feed the aggregator. Every fetch is read-only
and independent; callers run them one after another on the request session.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import uuid

import structlog
from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.analytics.periods import ReportingWindow
from marketplace.analytics.scope import ReportScope, GLOBAL_SCOPE
from marketplace.core.exceptions import InternalError
from marketplace.database.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    ProductStatus,
    SellerProfile,
    User,
    UserRole,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def _persistence(operation: str):
    """Turn driver/ORM failures into INTERNAL errors after logging them."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Reporting query failed", operation=operation, error=str(e), error_type=type(e).__name__)
        raise InternalError(f"Failed to load {operation}") from e


def _in_window(column, window: Optional[ReportingWindow]):
    if window is None:
        return None
    return and_(column >= window.start, column <= window.end)


def _scope_orders(query: Select, scope: ReportScope) -> Select:
    if scope.seller_id is not None:
        query = query.where(Order.seller_id == scope.seller_id)
    if scope.product_id is not None:
        query = query.where(
            Order.items.any(OrderItem.product_id == scope.product_id)
        )
    if scope.category_id is not None:
        query = query.where(
            Order.items.any(OrderItem.product.has(Product.category_id == scope.category_id))
        )
    return query


def _scope_items(query: Select, scope: ReportScope) -> Select:
    if scope.seller_id is not None:
        query = query.where(Order.seller_id == scope.seller_id)
    if scope.category_id is not None:
        query = query.where(Product.category_id == scope.category_id)
    if scope.product_id is not None:
        query = query.where(OrderItem.product_id == scope.product_id)
    return query


class RecordFetcher:
    """
    Read-only queries over orders, items, users, products and sellers.

    Example:
        fetcher = RecordFetcher(session)
        orders = await fetcher.fetch_orders(window, ReportScope(seller_id=sid))
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    async def fetch_orders(
        self,
        window: ReportingWindow,
        scope: ReportScope = GLOBAL_SCOPE,
    ) -> List[Order]:
        """Non-cancelled orders created inside the window, oldest first."""
        query = (
            select(Order)
            .where(
                _in_window(Order.created_at, window),
                Order.status != OrderStatus.CANCELLED,
            )
            .options(
                selectinload(Order.items)
                .selectinload(OrderItem.product)
                .selectinload(Product.category)
            )
            .order_by(Order.created_at, Order.id)
        )
        query = _scope_orders(query, scope)

        async with _persistence("orders"):
            result = await self.session.execute(query)
            orders = list(result.scalars().unique().all())

        logger.debug("Fetched orders", count=len(orders), start=str(window.start), end=str(window.end))
        return orders

    async def fetch_order_items(
        self,
        window: Optional[ReportingWindow] = None,
        scope: ReportScope = GLOBAL_SCOPE,
    ) -> List[OrderItem]:
        """Items of non-cancelled orders; ``window=None`` means all time."""
        query = (
            select(OrderItem)
            .join(OrderItem.order)
            .join(OrderItem.product)
            .where(Order.status != OrderStatus.CANCELLED)
            .options(
                selectinload(OrderItem.order),
                selectinload(OrderItem.product).selectinload(Product.category),
                selectinload(OrderItem.product).selectinload(Product.seller),
            )
            .order_by(Order.created_at, OrderItem.created_at, OrderItem.id)
        )
        if window is not None:
            query = query.where(_in_window(Order.created_at, window))
        query = _scope_items(query, scope)

        async with _persistence("order items"):
            result = await self.session.execute(query)
            items = list(result.scalars().all())

        logger.debug("Fetched order items", count=len(items))
        return items

    async def fetch_users(
        self,
        window: ReportingWindow,
        role: Optional[UserRole] = None,
    ) -> List[User]:
        """Users created inside the window."""
        query = select(User).where(_in_window(User.created_at, window)).order_by(User.created_at)
        if role is not None:
            query = query.where(User.role == role)

        async with _persistence("users"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def fetch_recent_orders(
        self,
        limit: int,
        scope: ReportScope = GLOBAL_SCOPE,
    ) -> List[Order]:
        """Latest orders of any status, newest first."""
        query = (
            select(Order)
            .options(
                selectinload(Order.items)
                .selectinload(OrderItem.product)
                .selectinload(Product.category)
            )
            .order_by(Order.created_at.desc(), Order.id)
            .limit(limit)
        )
        query = _scope_orders(query, scope)

        async with _persistence("recent orders"):
            result = await self.session.execute(query)
            return list(result.scalars().unique().all())

    async def fetch_seller_profiles(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, SellerProfile]:
        ids = list(ids)
        if not ids:
            return {}

        async with _persistence("seller profiles"):
            result = await self.session.execute(
                select(SellerProfile).where(SellerProfile.id.in_(ids))
            )
            return {profile.id: profile for profile in result.scalars().all()}

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    async def _scalar_count(self, query: Select, operation: str) -> int:
        async with _persistence(operation):
            result = await self.session.execute(query)
            return result.scalar_one() or 0

    async def count_users(
        self,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        query = select(func.count(User.id))
        if role is not None:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        if created_since is not None:
            query = query.where(User.created_at >= created_since)
        return await self._scalar_count(query, "user count")

    async def count_products(
        self,
        seller_id: Optional[uuid.UUID] = None,
        status: Optional[ProductStatus] = None,
        low_stock: bool = False,
    ) -> int:
        query = select(func.count(Product.id))
        if seller_id is not None:
            query = query.where(Product.seller_id == seller_id)
        if status is not None:
            query = query.where(Product.status == status)
        if low_stock:
            query = query.where(
                Product.track_inventory.is_(True),
                Product.stock_quantity <= Product.low_stock_threshold,
            )
        return await self._scalar_count(query, "product count")

    async def count_pending_sellers(self) -> int:
        query = select(func.count(SellerProfile.id)).where(SellerProfile.is_verified.is_(False))
        return await self._scalar_count(query, "pending seller count")

    async def count_orders(
        self,
        scope: ReportScope = GLOBAL_SCOPE,
        statuses: Optional[Sequence[OrderStatus]] = None,
    ) -> int:
        query = select(func.count(Order.id))
        if statuses:
            query = query.where(Order.status.in_(list(statuses)))
        query = _scope_orders(query, scope)
        return await self._scalar_count(query, "order count")

    async def count_orders_by_status(
        self,
        window: ReportingWindow,
        scope: ReportScope = GLOBAL_SCOPE,
    ) -> List[Tuple[OrderStatus, int]]:
        """Orders of every status (cancelled included) inside the window."""
        query = (
            select(Order.status, func.count(Order.id))
            .where(_in_window(Order.created_at, window))
            .group_by(Order.status)
            .order_by(Order.status)
        )
        query = _scope_orders(query, scope)

        async with _persistence("orders by status"):
            result = await self.session.execute(query)
            return [(status, count) for status, count in result.all()]

    async def count_users_by_role(self) -> List[Tuple[UserRole, int]]:
        query = select(User.role, func.count(User.id)).group_by(User.role).order_by(User.role)

        async with _persistence("users by role"):
            result = await self.session.execute(query)
            return [(role, count) for role, count in result.all()]

    async def count_products_by_seller(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        ids = list(ids)
        if not ids:
            return {}

        query = (
            select(Product.seller_id, func.count(Product.id))
            .where(Product.seller_id.in_(ids))
            .group_by(Product.seller_id)
        )
        async with _persistence("products by seller"):
            result = await self.session.execute(query)
            return {seller_id: count for seller_id, count in result.all()}
