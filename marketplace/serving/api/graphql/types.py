"""
GraphQL Types

Strawberry types shared by the shop, seller and admin schemas, plus the
converters from ORM rows and report objects. Money is exposed as Float.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
import uuid

import strawberry
from sqlalchemy import inspect as sa_inspect

from marketplace.analytics.aggregator import CategorySales, DailySales, ProductSales, UserGrowthPoint
from marketplace.analytics.periods import ReportingWindow, resolve_window
from marketplace.analytics.service import PlatformReport, SellerRanking, SellerSalesReport, UserReport
from marketplace.config import AnalyticsSettings
from marketplace.core.exceptions import ValidationFailed
from marketplace.database import models
from marketplace.database.models import OrderStatus, PaymentStatus, ProductStatus, UserRole

# Expose the model enums as GraphQL enums
strawberry.enum(UserRole)
strawberry.enum(OrderStatus)
strawberry.enum(PaymentStatus)
strawberry.enum(ProductStatus)


# =============================================================================
# HELPERS
# =============================================================================

def _float(value: Any) -> float:
    return float(value or 0)


def _optional_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _id(value: Any) -> Optional[strawberry.ID]:
    return strawberry.ID(str(value)) if value is not None else None


def _loaded(instance: Any, attr: str) -> bool:
    """Whether a relationship was eagerly loaded, so reading it does no I/O."""
    return attr not in sa_inspect(instance).unloaded


def parse_id(value: strawberry.ID, label: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationFailed(f"Invalid {label}: {value}") from e


def require_positive(value: Optional[int], label: str = "limit") -> Optional[int]:
    if value is not None and value <= 0:
        raise ValidationFailed(f"{label} must be positive")
    return value


def require_page(limit: int, offset: int) -> None:
    require_positive(limit)
    if offset < 0:
        raise ValidationFailed("offset must not be negative")


def reporting_window(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    settings: AnalyticsSettings,
) -> ReportingWindow:
    """Resolve the optional date arguments, rejecting reversed ranges."""
    window = resolve_window(start_date, end_date, default_days=settings.default_window_days)
    if window.start > window.end:
        raise ValidationFailed("startDate must not be after endDate")
    return window


# =============================================================================
# CATALOG & ACCOUNTS
# =============================================================================

@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_model(cls, user: models.User) -> "UserType":
        return cls(
            id=_id(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            role=user.role,
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
        )


@strawberry.type(name="SellerProfile")
class SellerProfileType:
    id: strawberry.ID
    user_id: strawberry.ID
    business_name: str
    business_type: Optional[str]
    description: Optional[str]
    phone: Optional[str]
    website: Optional[str]
    is_verified: bool
    is_active: bool
    commission_rate: float
    created_at: datetime
    user: Optional[UserType] = None

    @classmethod
    def from_model(cls, profile: models.SellerProfile) -> "SellerProfileType":
        user = profile.user if _loaded(profile, "user") else None
        return cls(
            id=_id(profile.id),
            user_id=_id(profile.user_id),
            business_name=profile.business_name,
            business_type=profile.business_type,
            description=profile.description,
            phone=profile.phone,
            website=profile.website,
            is_verified=profile.is_verified,
            is_active=profile.is_active,
            commission_rate=_float(profile.commission_rate),
            created_at=profile.created_at,
            user=UserType.from_model(user) if user is not None else None,
        )


@strawberry.type(name="Category")
class CategoryType:
    id: strawberry.ID
    name: str
    slug: str
    description: Optional[str]
    image: Optional[str]
    parent_id: Optional[strawberry.ID]
    is_active: bool
    sort_order: int

    @classmethod
    def from_model(cls, category: models.Category) -> "CategoryType":
        return cls(
            id=_id(category.id),
            name=category.name,
            slug=category.slug,
            description=category.description,
            image=category.image,
            parent_id=_id(category.parent_id),
            is_active=category.is_active,
            sort_order=category.sort_order,
        )


@strawberry.type(name="Product")
class ProductType:
    id: strawberry.ID
    seller_id: strawberry.ID
    category_id: strawberry.ID
    name: str
    slug: str
    sku: str
    description: Optional[str]
    status: ProductStatus
    base_price: float
    sale_price: Optional[float]
    cost_price: Optional[float]
    stock_quantity: int
    low_stock_threshold: int
    track_inventory: bool
    created_at: datetime
    updated_at: datetime
    category: Optional[CategoryType] = None

    @classmethod
    def from_model(cls, product: models.Product) -> "ProductType":
        category = product.category if _loaded(product, "category") else None
        return cls(
            id=_id(product.id),
            seller_id=_id(product.seller_id),
            category_id=_id(product.category_id),
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            description=product.description,
            status=product.status,
            base_price=_float(product.base_price),
            sale_price=_optional_float(product.sale_price),
            cost_price=_optional_float(product.cost_price),
            stock_quantity=product.stock_quantity,
            low_stock_threshold=product.low_stock_threshold,
            track_inventory=product.track_inventory,
            created_at=product.created_at,
            updated_at=product.updated_at,
            category=CategoryType.from_model(category) if category is not None else None,
        )


# =============================================================================
# ORDERS
# =============================================================================

@strawberry.type(name="OrderItem")
class OrderItemType:
    id: strawberry.ID
    product_id: strawberry.ID
    quantity: int
    unit_price: float
    total_price: float
    product_name: str
    product_image: Optional[str]

    @classmethod
    def from_model(cls, item: models.OrderItem) -> "OrderItemType":
        return cls(
            id=_id(item.id),
            product_id=_id(item.product_id),
            quantity=item.quantity,
            unit_price=_float(item.unit_price),
            total_price=_float(item.total_price),
            product_name=item.product_name,
            product_image=item.product_image,
        )


@strawberry.type(name="Order")
class OrderType:
    id: strawberry.ID
    order_number: str
    user_id: strawberry.ID
    seller_id: strawberry.ID
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: float
    tax_amount: float
    shipping_amount: float
    discount_amount: float
    total_amount: float
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemType]

    @classmethod
    def from_model(cls, order: models.Order) -> "OrderType":
        items = order.items if _loaded(order, "items") else []
        return cls(
            id=_id(order.id),
            order_number=order.order_number,
            user_id=_id(order.user_id),
            seller_id=_id(order.seller_id),
            status=order.status,
            payment_status=order.payment_status,
            subtotal=_float(order.subtotal),
            tax_amount=_float(order.tax_amount),
            shipping_amount=_float(order.shipping_amount),
            discount_amount=_float(order.discount_amount),
            total_amount=_float(order.total_amount),
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[OrderItemType.from_model(item) for item in items],
        )


# =============================================================================
# ANALYTICS
# =============================================================================

@strawberry.type
class TopProduct:
    product: ProductType
    total_sold: int
    total_revenue: float

    @classmethod
    def from_sales(cls, sales: ProductSales) -> "TopProduct":
        return cls(
            product=ProductType.from_model(sales.product),
            total_sold=sales.total_sold,
            total_revenue=_float(sales.total_revenue),
        )


@strawberry.type
class TopSeller:
    seller: Optional[SellerProfileType]
    total_revenue: float
    total_orders: int
    total_products: int

    @classmethod
    def from_ranking(cls, ranking: SellerRanking) -> "TopSeller":
        return cls(
            seller=SellerProfileType.from_model(ranking.seller) if ranking.seller is not None else None,
            total_revenue=_float(ranking.total_revenue),
            total_orders=ranking.total_orders,
            total_products=ranking.total_products,
        )


@strawberry.type(name="DailySales")
class DailySalesType:
    date: str
    revenue: float
    orders: int
    customers: int

    @classmethod
    def from_daily(cls, daily: DailySales) -> "DailySalesType":
        return cls(
            date=daily.date.isoformat(),
            revenue=_float(daily.revenue),
            orders=daily.orders,
            customers=daily.customers,
        )


@strawberry.type(name="CategorySales")
class CategorySalesType:
    category: Optional[CategoryType]
    revenue: float
    orders: int
    products: int

    @classmethod
    def from_sales(cls, sales: CategorySales) -> "CategorySalesType":
        return cls(
            category=CategoryType.from_model(sales.category) if sales.category is not None else None,
            revenue=_float(sales.revenue),
            orders=sales.orders,
            products=sales.products,
        )


@strawberry.type
class OrderStatusCount:
    status: OrderStatus
    count: int


@strawberry.type
class UserRoleCount:
    role: UserRole
    count: int


@strawberry.type
class UserGrowthData:
    date: str
    customers: int
    sellers: int

    @classmethod
    def from_point(cls, point: UserGrowthPoint) -> "UserGrowthData":
        return cls(date=point.date.isoformat(), customers=point.customers, sellers=point.sellers)


@strawberry.type
class PlatformAnalytics:
    total_revenue: float
    total_orders: int
    total_customers: int
    total_sellers: int
    total_products: int
    active_products: int
    pending_sellers: int
    average_order_value: float
    conversion_rate: float
    revenue_growth: float
    order_growth: float
    period_start: datetime
    period_end: datetime
    top_selling_products: List[TopProduct]
    top_performing_sellers: List[TopSeller]
    recent_orders: List[OrderType]
    sales_by_day: List[DailySalesType]
    sales_by_category: List[CategorySalesType]
    orders_by_status: List[OrderStatusCount]

    @classmethod
    def from_report(cls, report: PlatformReport) -> "PlatformAnalytics":
        return cls(
            total_revenue=_float(report.total_revenue),
            total_orders=report.total_orders,
            total_customers=report.total_customers,
            total_sellers=report.total_sellers,
            total_products=report.total_products,
            active_products=report.active_products,
            pending_sellers=report.pending_sellers,
            average_order_value=_float(report.average_order_value),
            conversion_rate=report.conversion_rate,
            revenue_growth=report.revenue_growth,
            order_growth=report.order_growth,
            period_start=report.window.start,
            period_end=report.window.end,
            top_selling_products=[TopProduct.from_sales(p) for p in report.top_selling_products],
            top_performing_sellers=[TopSeller.from_ranking(s) for s in report.top_performing_sellers],
            recent_orders=[OrderType.from_model(o) for o in report.recent_orders],
            sales_by_day=[DailySalesType.from_daily(d) for d in report.sales_by_day],
            sales_by_category=[CategorySalesType.from_sales(c) for c in report.sales_by_category],
            orders_by_status=[
                OrderStatusCount(status=status, count=count)
                for status, count in report.orders_by_status
            ],
        )


@strawberry.type
class UserAnalytics:
    total_users: int
    new_users_today: int
    new_users_this_week: int
    new_users_this_month: int
    active_customers: int
    active_sellers: int
    user_growth_rate: float
    users_by_role: List[UserRoleCount]
    user_growth: List[UserGrowthData]

    @classmethod
    def from_report(cls, report: UserReport) -> "UserAnalytics":
        return cls(
            total_users=report.total_users,
            new_users_today=report.new_users_today,
            new_users_this_week=report.new_users_this_week,
            new_users_this_month=report.new_users_this_month,
            active_customers=report.active_customers,
            active_sellers=report.active_sellers,
            user_growth_rate=report.user_growth_rate,
            users_by_role=[UserRoleCount(role=role, count=count) for role, count in report.users_by_role],
            user_growth=[UserGrowthData.from_point(p) for p in report.user_growth],
        )


@strawberry.type
class SalesAnalytics:
    total_revenue: float
    total_orders: int
    average_order_value: float
    revenue_growth: float
    order_growth: float
    total_products: int
    low_stock_products: int
    pending_orders: int
    recent_sales: List[DailySalesType]
    sales_by_category: List[CategorySalesType]

    @classmethod
    def from_report(cls, report: SellerSalesReport) -> "SalesAnalytics":
        return cls(
            total_revenue=_float(report.total_revenue),
            total_orders=report.total_orders,
            average_order_value=_float(report.average_order_value),
            revenue_growth=report.revenue_growth,
            order_growth=report.order_growth,
            total_products=report.total_products,
            low_stock_products=report.low_stock_products,
            pending_orders=report.pending_orders,
            recent_sales=[DailySalesType.from_daily(d) for d in report.recent_sales],
            sales_by_category=[CategorySalesType.from_sales(c) for c in report.sales_by_category],
        )


# =============================================================================
# INPUTS
# =============================================================================

@strawberry.input
class ProductFilterInput:
    category_id: Optional[strawberry.ID] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None


@strawberry.input
class UpdateProductInput:
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    category_id: Optional[strawberry.ID] = None
    status: Optional[ProductStatus] = None
    base_price: Optional[float] = None
    sale_price: Optional[float] = None
    cost_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    low_stock_threshold: Optional[int] = None
    track_inventory: Optional[bool] = None


@strawberry.input
class UpdateOrderStatusInput:
    order_id: strawberry.ID
    status: OrderStatus
