"""
Reporting Service

Composes the record fetcher and the aggregator into the report shapes served
by the admin (global scope) and seller (seller scope) APIs. Reports are
recomputed on every call; nothing is cached or persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.analytics import aggregator
from marketplace.analytics.aggregator import (
    CategorySales,
    DailySales,
    ProductSales,
    SellerSales,
    UserGrowthPoint,
)
from marketplace.analytics.fetcher import RecordFetcher
from marketplace.analytics.periods import ReportingWindow, start_of_day
from marketplace.analytics.scope import ReportScope, GLOBAL_SCOPE
from marketplace.config import AnalyticsSettings, get_settings
from marketplace.database.models import (
    Order,
    OrderStatus,
    ProductStatus,
    SellerProfile,
    UserRole,
)

logger = structlog.get_logger(__name__)

PENDING_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


# =============================================================================
# REPORTS
# =============================================================================

@dataclass
class SellerRanking:
    """A top seller with its profile and catalog size"""
    seller: Optional[SellerProfile]
    seller_id: uuid.UUID
    total_revenue: Decimal
    total_orders: int
    total_products: int


@dataclass
class PlatformReport:
    window: ReportingWindow
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    revenue_growth: float
    order_growth: float
    conversion_rate: float
    total_customers: int
    total_sellers: int
    total_products: int
    active_products: int
    pending_sellers: int
    top_selling_products: List[ProductSales] = field(default_factory=list)
    top_performing_sellers: List[SellerRanking] = field(default_factory=list)
    recent_orders: List[Order] = field(default_factory=list)
    sales_by_day: List[DailySales] = field(default_factory=list)
    sales_by_category: List[CategorySales] = field(default_factory=list)
    orders_by_status: List[Tuple[OrderStatus, int]] = field(default_factory=list)


@dataclass
class UserReport:
    window: ReportingWindow
    total_users: int
    new_users_today: int
    new_users_this_week: int
    new_users_this_month: int
    active_customers: int
    active_sellers: int
    user_growth_rate: float
    users_by_role: List[Tuple[UserRole, int]] = field(default_factory=list)
    user_growth: List[UserGrowthPoint] = field(default_factory=list)


@dataclass
class SellerSalesReport:
    window: ReportingWindow
    seller_id: uuid.UUID
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    revenue_growth: float
    order_growth: float
    total_products: int
    low_stock_products: int
    pending_orders: int
    recent_sales: List[DailySales] = field(default_factory=list)
    sales_by_category: List[CategorySales] = field(default_factory=list)


class ReportingService:
    """
    Builds analytics reports for one request session.

    Example:
        service = ReportingService(session)
        report = await service.platform_analytics(window)
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[AnalyticsSettings] = None,
    ):
        self.fetcher = RecordFetcher(session)
        self.settings = settings or get_settings().analytics

    async def _sales_window(
        self,
        window: ReportingWindow,
        scope: ReportScope,
    ) -> Tuple[List[Order], aggregator.SalesSummary]:
        """Current-window orders and the shared summary against the previous window."""
        orders = await self.fetcher.fetch_orders(window, scope)
        previous_orders = await self.fetcher.fetch_orders(window.previous(), scope)
        summary = aggregator.summarize_sales(orders, previous_orders, scope)
        return orders, summary

    async def platform_analytics(self, window: ReportingWindow) -> PlatformReport:
        """Platform-wide sales, catalog and seller figures for the window."""
        logger.info("Building platform analytics", start=str(window.start), end=str(window.end))

        orders, summary = await self._sales_window(window, GLOBAL_SCOPE)
        items = await self.fetcher.fetch_order_items(window, GLOBAL_SCOPE)

        total_customers = await self.fetcher.count_users(role=UserRole.CUSTOMER)
        total_sellers = await self.fetcher.count_users(role=UserRole.SELLER)
        total_products = await self.fetcher.count_products()
        active_products = await self.fetcher.count_products(status=ProductStatus.ACTIVE)
        pending_sellers = await self.fetcher.count_pending_sellers()

        top_products = aggregator.top_n(
            aggregator.group_by_product(items), self.settings.top_n, key="total_revenue"
        )
        top_sellers = await self._rank_sellers(
            aggregator.top_n(aggregator.group_by_seller(orders), self.settings.top_n, key="total_revenue")
        )

        report = PlatformReport(
            window=window,
            total_revenue=summary.total_revenue,
            total_orders=summary.total_orders,
            average_order_value=summary.average_order_value,
            revenue_growth=summary.revenue_growth,
            order_growth=summary.order_growth,
            conversion_rate=aggregator.conversion_rate(summary.total_orders, total_customers),
            total_customers=total_customers,
            total_sellers=total_sellers,
            total_products=total_products,
            active_products=active_products,
            pending_sellers=pending_sellers,
            top_selling_products=top_products,
            top_performing_sellers=top_sellers,
            recent_orders=await self.fetcher.fetch_recent_orders(self.settings.recent_orders),
            sales_by_day=summary.daily,
            sales_by_category=aggregator.group_by_category(items),
            orders_by_status=await self.fetcher.count_orders_by_status(window),
        )

        logger.info(
            "Platform analytics built",
            revenue=str(report.total_revenue),
            orders=report.total_orders,
            revenue_growth=report.revenue_growth,
        )
        return report

    async def _rank_sellers(self, ranked: List[SellerSales]) -> List[SellerRanking]:
        ids = [entry.seller_id for entry in ranked]
        profiles = await self.fetcher.fetch_seller_profiles(ids)
        product_counts = await self.fetcher.count_products_by_seller(ids)

        return [
            SellerRanking(
                seller=profiles.get(entry.seller_id),
                seller_id=entry.seller_id,
                total_revenue=entry.total_revenue,
                total_orders=entry.total_orders,
                total_products=product_counts.get(entry.seller_id, 0),
            )
            for entry in ranked
        ]

    async def user_analytics(
        self,
        window: ReportingWindow,
        now: Optional[datetime] = None,
    ) -> UserReport:
        """Sign-up and activity figures; the rolling counts are anchored on UTC midnight."""
        logger.info("Building user analytics", start=str(window.start), end=str(window.end))

        today = start_of_day(now or datetime.utcnow())

        users = await self.fetcher.fetch_users(window)
        previous_users = await self.fetcher.fetch_users(window.previous())

        return UserReport(
            window=window,
            total_users=await self.fetcher.count_users(),
            new_users_today=await self.fetcher.count_users(created_since=today),
            new_users_this_week=await self.fetcher.count_users(created_since=today - timedelta(days=7)),
            new_users_this_month=await self.fetcher.count_users(created_since=today - timedelta(days=30)),
            active_customers=await self.fetcher.count_users(role=UserRole.CUSTOMER, is_active=True),
            active_sellers=await self.fetcher.count_users(role=UserRole.SELLER, is_active=True),
            user_growth_rate=aggregator.growth_percent(len(users), len(previous_users)),
            users_by_role=await self.fetcher.count_users_by_role(),
            user_growth=aggregator.group_users_by_day(users),
        )

    async def sales_analytics(
        self,
        window: ReportingWindow,
        seller_id: uuid.UUID,
    ) -> SellerSalesReport:
        """Sales figures restricted to one seller's orders."""
        logger.info("Building seller sales analytics", seller_id=str(seller_id))

        scope = ReportScope(seller_id=seller_id)
        _, summary = await self._sales_window(window, scope)
        items = [
            item for item in await self.fetcher.fetch_order_items(window, scope)
            if scope.admits_item(item)
        ]

        return SellerSalesReport(
            window=window,
            seller_id=seller_id,
            total_revenue=summary.total_revenue,
            total_orders=summary.total_orders,
            average_order_value=summary.average_order_value,
            revenue_growth=summary.revenue_growth,
            order_growth=summary.order_growth,
            total_products=await self.fetcher.count_products(seller_id=seller_id),
            low_stock_products=await self.fetcher.count_products(seller_id=seller_id, low_stock=True),
            pending_orders=await self.fetcher.count_orders(scope, statuses=PENDING_STATUSES),
            recent_sales=summary.daily,
            sales_by_category=aggregator.group_by_category(items),
        )

    async def top_products(
        self,
        seller_id: uuid.UUID,
        limit: Optional[int] = None,
    ) -> List[ProductSales]:
        """All-time best sellers of one seller, ranked by item revenue."""
        scope = ReportScope(seller_id=seller_id)
        items = await self.fetcher.fetch_order_items(None, scope)
        items = [item for item in items if scope.admits_item(item)]
        return aggregator.top_n(
            aggregator.group_by_product(items),
            limit if limit is not None else self.settings.top_n,
        )
