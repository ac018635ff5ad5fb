"""
Reporting Aggregator

Pure functions that fold already-fetched orders, order items and users into
report figures. Nothing here performs I/O, and empty inputs degrade to zero
values instead of raising.

Conventions:
- Money is summed as Decimal; averages are quantized to cents.
- Ratios (growth, conversion) are floats and are 0 when the denominator is 0.
- Cancelled orders never contribute revenue, whichever path reaches them.
- Day buckets are UTC calendar dates.
- Groupings keep first-seen order so that rankings break ties by fetch order.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from marketplace.analytics.periods import utc_day
from marketplace.analytics.scope import ReportScope, GLOBAL_SCOPE
from marketplace.database.models import OrderStatus, UserRole

ZERO = Decimal("0")
CENT = Decimal("0.01")

T = TypeVar("T")


# =============================================================================
# RESULT SHAPES
# =============================================================================

@dataclass
class DailySales:
    """Sales figures for one UTC day"""
    date: date
    revenue: Decimal = ZERO
    orders: int = 0
    customers: int = 0


@dataclass
class CategorySales:
    """Item revenue attributed to one category"""
    category_id: Any
    category: Any = None
    revenue: Decimal = ZERO
    orders: int = 0
    products: int = 0


@dataclass
class ProductSales:
    """Units and revenue of one product"""
    product_id: Any
    product: Any = None
    total_sold: int = 0
    total_revenue: Decimal = ZERO


@dataclass
class SellerSales:
    """Revenue and order count of one seller"""
    seller_id: Any
    total_revenue: Decimal = ZERO
    total_orders: int = 0


@dataclass
class UserGrowthPoint:
    """Sign-ups per role for one UTC day"""
    date: date
    customers: int = 0
    sellers: int = 0


@dataclass
class SalesSummary:
    """Headline sales figures for a window compared with the previous one"""
    total_revenue: Decimal = ZERO
    total_orders: int = 0
    average_order_value: Decimal = ZERO
    revenue_growth: float = 0.0
    order_growth: float = 0.0
    daily: List[DailySales] = field(default_factory=list)


# =============================================================================
# HELPERS
# =============================================================================

def _money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_cancelled(order: Any) -> bool:
    return order.status == OrderStatus.CANCELLED


def billable(orders: Iterable[Any]) -> List[Any]:
    """Orders that count towards revenue."""
    return [order for order in orders if not is_cancelled(order)]


def _billable_item(item: Any) -> bool:
    order = getattr(item, "order", None)
    return order is None or not is_cancelled(order)


# =============================================================================
# SCALAR METRICS
# =============================================================================

def revenue_total(orders: Iterable[Any]) -> Decimal:
    """Sum of total_amount over non-cancelled orders."""
    return sum((_money(order.total_amount) for order in billable(orders)), ZERO)


def average_order_value(orders: Iterable[Any]) -> Decimal:
    """Revenue per non-cancelled order, 0 for an empty set."""
    counted = billable(orders)
    if not counted:
        return ZERO
    return (revenue_total(counted) / len(counted)).quantize(CENT, rounding=ROUND_HALF_UP)


def growth_percent(current: Any, previous: Any) -> float:
    """
    Percentage change from ``previous`` to ``current``.

    A zero (or missing) base yields 0 rather than an error.
    """
    base = _money(previous)
    if base == ZERO:
        return 0.0
    return float((_money(current) - base) / base * 100)


def conversion_rate(order_count: int, customer_count: int) -> float:
    """Orders per hundred customers, 0 when there are no customers."""
    if not customer_count:
        return 0.0
    return order_count / customer_count * 100


# =============================================================================
# GROUPINGS
# =============================================================================

def group_by_day(orders: Iterable[Any]) -> List[DailySales]:
    """Per-day revenue, order count and distinct customers, ascending by day."""
    buckets: Dict[date, DailySales] = {}
    customers: Dict[date, set] = {}

    for order in billable(orders):
        day = utc_day(order.created_at)
        bucket = buckets.get(day)
        if bucket is None:
            bucket = buckets[day] = DailySales(date=day)
            customers[day] = set()
        bucket.revenue += _money(order.total_amount)
        bucket.orders += 1
        customers[day].add(order.user_id)

    for day, bucket in buckets.items():
        bucket.customers = len(customers[day])

    return [buckets[day] for day in sorted(buckets)]


def group_by_category(items: Iterable[Any]) -> List[CategorySales]:
    """Item revenue, distinct orders and distinct products per category."""
    stats: Dict[Any, CategorySales] = {}
    order_ids: Dict[Any, set] = {}
    product_ids: Dict[Any, set] = {}

    for item in items:
        if not _billable_item(item):
            continue
        product = item.product
        category_id = product.category_id
        entry = stats.get(category_id)
        if entry is None:
            entry = stats[category_id] = CategorySales(
                category_id=category_id,
                category=getattr(product, "category", None),
            )
            order_ids[category_id] = set()
            product_ids[category_id] = set()
        entry.revenue += _money(item.total_price)
        order_ids[category_id].add(item.order_id)
        product_ids[category_id].add(item.product_id)

    for category_id, entry in stats.items():
        entry.orders = len(order_ids[category_id])
        entry.products = len(product_ids[category_id])

    return list(stats.values())


def group_by_product(items: Iterable[Any]) -> List[ProductSales]:
    """Units sold and item revenue per product."""
    stats: Dict[Any, ProductSales] = {}

    for item in items:
        if not _billable_item(item):
            continue
        entry = stats.get(item.product_id)
        if entry is None:
            entry = stats[item.product_id] = ProductSales(
                product_id=item.product_id,
                product=getattr(item, "product", None),
            )
        entry.total_sold += item.quantity
        entry.total_revenue += _money(item.total_price)

    return list(stats.values())


def group_by_seller(orders: Iterable[Any]) -> List[SellerSales]:
    """Revenue and order count per seller."""
    stats: Dict[Any, SellerSales] = {}

    for order in billable(orders):
        entry = stats.get(order.seller_id)
        if entry is None:
            entry = stats[order.seller_id] = SellerSales(seller_id=order.seller_id)
        entry.total_revenue += _money(order.total_amount)
        entry.total_orders += 1

    return list(stats.values())


def group_users_by_day(users: Iterable[Any]) -> List[UserGrowthPoint]:
    """Customer and seller sign-ups per day, ascending by day."""
    buckets: Dict[date, UserGrowthPoint] = {}

    for user in users:
        day = utc_day(user.created_at)
        point = buckets.get(day)
        if point is None:
            point = buckets[day] = UserGrowthPoint(date=day)
        if user.role == UserRole.CUSTOMER:
            point.customers += 1
        elif user.role == UserRole.SELLER:
            point.sellers += 1

    return [buckets[day] for day in sorted(buckets)]


def top_n(groups: Sequence[T], n: Optional[int], key: str = "total_revenue") -> List[T]:
    """
    Rank groups by ``key`` descending and keep the first ``n``.

    The sort is stable, so equal values keep their input order.
    """
    ranked = sorted(groups, key=lambda group: getattr(group, key), reverse=True)
    if n is None:
        return ranked
    if n <= 0:
        return []
    return ranked[:n]


# =============================================================================
# SHARED SUMMARY
# =============================================================================

def summarize_sales(
    orders: Iterable[Any],
    previous_orders: Iterable[Any] = (),
    scope: ReportScope = GLOBAL_SCOPE,
) -> SalesSummary:
    """
    Headline figures for a window, used by both platform and seller reports.

    Orders outside ``scope`` are dropped before anything is summed, so a
    seller summary can never include another seller's orders.
    """
    current = [order for order in billable(orders) if scope.admits_order(order)]
    previous = [order for order in billable(previous_orders) if scope.admits_order(order)]

    revenue = revenue_total(current)
    previous_revenue = revenue_total(previous)

    return SalesSummary(
        total_revenue=revenue,
        total_orders=len(current),
        average_order_value=average_order_value(current),
        revenue_growth=growth_percent(revenue, previous_revenue),
        order_growth=growth_percent(len(current), len(previous)),
        daily=group_by_day(current),
    )
